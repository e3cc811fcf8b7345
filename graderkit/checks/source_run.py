"""
Compile submitted Python sources and run one of their entry points.

The check walks three steps, each guarded by a goal: the sources compile, the
entry point runs, and (optionally) its return value matches the expected
output. A failed step fails every later goal as skipped.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from graderkit.core.checks import Check
from graderkit.core.config import SandboxLimits
from graderkit.core.errors import ErrorKind
from graderkit.sandbox import Argument, ExecOutcome, SandboxRunner, compile_sources

LOGGER = logging.getLogger(__name__)

SOURCE_DIR = "sourceDir"
ENTRY_TYPE = "entryType"
METHOD = "method"
ARGUMENT = "argument"
EXPECTED_OUTPUT = "expectedOutput"
OUTPUT_FILE = "outputFile"

COMPILES = "compiles"
RUNS = "runs"
MATCHES_EXPECTED = "matchesExpected"
SKIPPED_MESSAGE = "Skipped: previous step failed"


def render_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class SourceRunCheck(Check):
    """Compiles ``sourceDir`` and calls ``entryType.method(argument)`` in the sandbox."""

    name = "source-run"

    def __init__(
        self,
        sources: Mapping[str, str | Path] | None = None,
        params: Mapping[str, str] | None = None,
        output_dir: Path | None = None,
        *,
        name: str | None = None,
        limits: SandboxLimits | None = None,
    ) -> None:
        super().__init__(sources, params, output_dir, name=name)
        self.limits = limits
        self.return_value: Any = None

    def set_goals(self) -> None:
        self.add_goal(COMPILES, "Source code compiles")
        self.add_goal(RUNS, "Submitted code runs without errors")
        if self.param(EXPECTED_OUTPUT) is not None:
            self.add_goal(MATCHES_EXPECTED, "Output matches the expected value")

    def _later_goals(self, goal_id: str) -> list[str]:
        order = [COMPILES, RUNS, MATCHES_EXPECTED]
        return [later for later in order[order.index(goal_id) + 1 :] if later in self._goals]

    def _fail_step(self, goal_id: str, outcome: ExecOutcome[Any]) -> None:
        """Fail ``goal_id`` with a data outcome and skip the rest; other kinds abort the run."""
        if outcome.kind is not ErrorKind.DATA:
            outcome.unwrap()
        self.goal(goal_id).fail(outcome.message, outcome.origin)
        for later in self._later_goals(goal_id):
            self.goal(later).fail(SKIPPED_MESSAGE)

    def do_check(self) -> None:
        self.require_sources(SOURCE_DIR)
        self.require_params(ENTRY_TYPE, METHOD)

        compiled = compile_sources(self.source_file(SOURCE_DIR))
        if not compiled.ok:
            self._fail_step(COMPILES, compiled)
            return
        self.goal(COMPILES).reach()

        runner = SandboxRunner(self.limits)
        loaded = runner.load(compiled.unwrap(), self.param(ENTRY_TYPE))
        if not loaded.ok:
            self._fail_step(RUNS, loaded)
            return

        argument = self.param(ARGUMENT)
        args = (Argument(str, argument),) if argument is not None else ()
        outcome = runner.invoke(loaded.unwrap(), self.param(METHOD), args)
        if not outcome.ok:
            self._fail_step(RUNS, outcome)
            return
        self.goal(RUNS).reach()

        self.return_value = outcome.value
        text = render_value(outcome.value)
        output_file = self.param(OUTPUT_FILE)
        if output_file:
            self.save_text_file(output_file, text)

        expected = self.param(EXPECTED_OUTPUT)
        if expected is not None:
            LOGGER.debug("Comparing output of %s with the expected value", self.param(ENTRY_TYPE))
            self.goal(MATCHES_EXPECTED).reach_on_condition(
                text.strip() == expected.strip(),
                f"Expected output {expected.strip()!r}, got {text.strip()!r}",
            )


__all__ = [
    "ARGUMENT",
    "COMPILES",
    "ENTRY_TYPE",
    "EXPECTED_OUTPUT",
    "MATCHES_EXPECTED",
    "METHOD",
    "OUTPUT_FILE",
    "RUNS",
    "SKIPPED_MESSAGE",
    "SOURCE_DIR",
    "SourceRunCheck",
    "render_value",
]
