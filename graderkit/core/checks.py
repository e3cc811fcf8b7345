"""
Goal-based checks and their adaptation into criteria.

A check declares its goals up front, then works through the submission and
reaches or fails each goal. Data problems raised while checking are recorded on
the check so the owning criterion can still report partial credit; every other
fault propagates and aborts the run.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .errors import PluginCodeError, PluginDataError, PluginUseError
from .goals import Goal, GoalState
from .registry import Criterion
from .results import Result

LOGGER = logging.getLogger(__name__)


class Check(ABC):
    """Base class for grading checks.

    Parameters
    ----------
    sources:
        Input files or folders keyed by the ids the check expects.
    params:
        String parameters keyed by id.
    output_dir:
        Folder receiving files the check produces; required only by checks
        that write output.
    name:
        Criterion name used when the check is registered; defaults to the
        class attribute ``name`` or the class name.
    """

    name: str = ""

    def __init__(
        self,
        sources: Mapping[str, str | Path] | None = None,
        params: Mapping[str, str] | None = None,
        output_dir: Path | None = None,
        *,
        name: str | None = None,
    ) -> None:
        self.sources: Dict[str, Path] = {key: Path(value) for key, value in (sources or {}).items()}
        self.params: Dict[str, str] = {key: str(value) for key, value in (params or {}).items()}
        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.name = name or self.name or type(self).__name__
        self.error: str | None = None
        self.completed = False
        self._goals: Dict[str, Goal] = {}

    @abstractmethod
    def set_goals(self) -> None:
        """Declare the goals of this check with ``add_goal``."""

    @abstractmethod
    def do_check(self) -> None:
        """Inspect the submission and reach or fail the declared goals."""

    def run(self) -> List[GoalState]:
        self._goals.clear()
        self.error = None
        self.completed = False
        self.set_goals()
        try:
            self.do_check()
        except PluginDataError as exc:
            LOGGER.info("Check %s stopped on a data error: %s", self.name, exc.message)
            self.error = exc.message
        self.completed = True
        return self.goal_states()

    # ------------------------------------------------------------------
    # goals

    def add_goal(self, goal_id: str, description: str) -> Goal:
        if goal_id in self._goals:
            raise PluginCodeError(f"Goal {goal_id} declared twice in check {self.name}")
        goal = Goal(description)
        self._goals[goal_id] = goal
        return goal

    def goal(self, goal_id: str) -> Goal:
        try:
            return self._goals[goal_id]
        except KeyError:
            raise PluginCodeError(f"Check {self.name} has no goal {goal_id}") from None

    def goal_states(self) -> List[GoalState]:
        return [goal.snapshot() for goal in self._goals.values()]

    # ------------------------------------------------------------------
    # sources and params

    def require_sources(self, *source_ids: str) -> None:
        missing = [source_id for source_id in source_ids if source_id not in self.sources]
        if missing:
            raise PluginCodeError(f"Check {self.name} requires sources: {', '.join(missing)}")
        for source_id in source_ids:
            path = self.sources[source_id]
            if not path.exists():
                raise PluginDataError(f"Required file or folder is missing from the submission: {path.name}")

    def require_params(self, *param_ids: str) -> None:
        missing = [param_id for param_id in param_ids if not self.params.get(param_id)]
        if missing:
            raise PluginUseError(f"Check {self.name} requires parameters: {', '.join(missing)}")

    def param(self, param_id: str, default: Optional[str] = None) -> Optional[str]:
        return self.params.get(param_id, default)

    def source_file(self, source_id: str) -> Path:
        try:
            return self.sources[source_id]
        except KeyError:
            raise PluginCodeError(f"Check {self.name} has no source {source_id}") from None

    def output_file(self, relative: str) -> Path:
        if self.output_dir is None:
            raise PluginCodeError(f"Check {self.name} was created without an output folder")
        root = self.output_dir.resolve()
        target = (root / relative).resolve()
        if target != root and root not in target.parents:
            raise PluginUseError(f"Output path {relative} points outside the output folder")
        return target

    # ------------------------------------------------------------------
    # file helpers

    def load_text_file(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            raise PluginDataError(f"Cannot read file {path.name}: {exc}") from exc

    def save_text_file(self, relative: str, text: str) -> Path:
        target = self.output_file(relative)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        return target


class CheckCriterion(Criterion):
    """Scores a completed check by the share of goals it reached."""

    def __init__(self, check: Check) -> None:
        self.check_instance = check

    def check(self) -> Result:
        check = self.check_instance
        if not check.completed:
            raise PluginCodeError(f"Check {check.name} was never run")

        states = check.goal_states()
        reached = sum(1 for state in states if state.reached)
        if states:
            fulfillment = round(100 * reached / len(states))
        else:
            fulfillment = 0 if check.error else 100

        lines: List[str] = []
        if check.error:
            lines.append(check.error)
        for state in states:
            if state.reached:
                continue
            reason = str(state.error) if state.error is not None else "Goal not reached"
            lines.append(f"{state.name}: {reason}")

        passed = check.error is None and reached == len(states)
        return Result(passed=passed, fulfillment=fulfillment, details="\n".join(lines))


__all__ = ["Check", "CheckCriterion"]
