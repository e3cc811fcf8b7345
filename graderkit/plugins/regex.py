"""Plugin checking that a submitted text file matches a line pattern."""

from __future__ import annotations

import sys
from typing import List, Sequence

from graderkit.checks.regex import REGEX_DESCRIPTION_SUFFIX, REGEX_PARAM_PREFIX, REGEX_SOURCE, RegexCheck
from graderkit.runtime.plugin import CheckPlugin

DEFAULT_SOURCE = "demo.txt"
# key: value lines, comments and blank lines, as in a properties file
DEFAULT_PATTERN = r"(^[a-zA-Z.]+:.+$)|(^#.*$)|(^$)"
DEFAULT_DESCRIPTION = "Match sample regex"


class RegexPlugin(CheckPlugin):
    """Arguments: ``[file] [pattern] [description]``; every line of ``file`` must match ``pattern``."""

    name = "regex"

    def set_up(self, params: List[str]) -> None:
        source = params[0] if len(params) > 0 else DEFAULT_SOURCE
        pattern = params[1] if len(params) > 1 else DEFAULT_PATTERN
        description = params[2] if len(params) > 2 else DEFAULT_DESCRIPTION
        regex_id = f"{REGEX_PARAM_PREFIX}0"
        self.add_check_as_criterion(
            RegexCheck(
                {REGEX_SOURCE: self.source_file(source)},
                {regex_id: pattern, f"{regex_id}{REGEX_DESCRIPTION_SUFFIX}": description},
            )
        )


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    print(RegexPlugin().run(args))
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry point
    raise SystemExit(main())
