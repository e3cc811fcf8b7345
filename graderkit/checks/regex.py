"""Line-by-line regular expression checks on a text file."""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from graderkit.core.checks import Check
from graderkit.core.errors import PluginUseError

REGEX_PARAM_PREFIX = "regex"
REGEX_DESCRIPTION_SUFFIX = "description"
REGEX_GOAL_PREFIX = "matchRegex"
REGEX_SOURCE = "regexSource"
MISMATCH_MESSAGE = "Source file contents do not match pattern"


def compile_pattern(regex: str) -> re.Pattern[str]:
    try:
        return re.compile(regex)
    except re.error as exc:
        raise PluginUseError(f"Supplied string is not valid regular expression: {regex} ({exc})") from exc


def first_mismatch(pattern: re.Pattern[str], text: str) -> Optional[int]:
    """Return the 1-based number of the first line not fully matching ``pattern``."""

    for number, line in enumerate(text.splitlines(), start=1):
        if pattern.fullmatch(line) is None:
            return number
    return None


class RegexCheck(Check):
    """
    One goal per supplied pattern; a goal is reached when every line of the
    ``regexSource`` file matches its pattern.

    Patterns are passed as params ``regex0``, ``regex1``, ... and may be
    described by ``regex0description`` and so on. Goals are named
    ``matchRegex0``, ``matchRegex1``, ...
    """

    name = "regex"

    def _patterns(self) -> List[Tuple[int, str]]:
        found: List[Tuple[int, str]] = []
        index = 0
        while True:
            regex = self.param(f"{REGEX_PARAM_PREFIX}{index}")
            if regex is None:
                return found
            found.append((index, regex))
            index += 1

    def set_goals(self) -> None:
        for index, regex in self._patterns():
            label = self.param(f"{REGEX_PARAM_PREFIX}{index}{REGEX_DESCRIPTION_SUFFIX}")
            self.add_goal(f"{REGEX_GOAL_PREFIX}{index}", label or f"Match {regex}")

    def do_check(self) -> None:
        self.require_sources(REGEX_SOURCE)
        source = self.source_file(REGEX_SOURCE)
        text = self.load_text_file(source)

        for index, regex in self._patterns():
            line_number = first_mismatch(compile_pattern(regex), text)
            self.goal(f"{REGEX_GOAL_PREFIX}{index}").reach_on_condition(
                line_number is None,
                MISMATCH_MESSAGE,
                source.name,
                line_number,
            )


__all__ = [
    "MISMATCH_MESSAGE",
    "REGEX_DESCRIPTION_SUFFIX",
    "REGEX_GOAL_PREFIX",
    "REGEX_PARAM_PREFIX",
    "REGEX_SOURCE",
    "RegexCheck",
    "compile_pattern",
    "first_mismatch",
]
