"""Goal model used by checks to track partial success."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ErrorDetail:
    """Why a goal failed, optionally pointing at the offending file and line."""

    message: str
    source_path: str | None = None
    line_number: int | None = None

    def __str__(self) -> str:
        text = self.message
        if self.source_path is not None:
            location = self.source_path
            if self.line_number is not None and self.line_number > 0:
                location = f"{location} at line {self.line_number}"
            text = f"{text} ({location})"
        return text


@dataclass(frozen=True, slots=True)
class GoalState:
    """Immutable view of a goal at the moment it was read."""

    name: str
    reached: bool
    error: ErrorDetail | None = None


class Goal:
    """A single named pass/fail objective.

    A goal starts unreached without an error. ``reach`` and ``fail`` keep the
    invariant that a reached goal never carries an error and an error always
    means the goal is unreached.
    """

    __slots__ = ("name", "_reached", "_error")

    def __init__(self, name: str) -> None:
        self.name = name
        self._reached = False
        self._error: ErrorDetail | None = None

    @property
    def reached(self) -> bool:
        return self._reached

    @property
    def error(self) -> ErrorDetail | None:
        return self._error

    def reach(self) -> None:
        self._reached = True
        self._error = None

    def fail(self, message: str, source_path: str | None = None, line_number: int | None = None) -> None:
        self._reached = False
        self._error = ErrorDetail(message, source_path, line_number)

    def reach_on_condition(
        self,
        condition: bool,
        message: str,
        source_path: str | None = None,
        line_number: int | None = None,
    ) -> None:
        """Reach the goal if ``condition`` holds, otherwise fail it with ``message``."""
        if condition:
            self.reach()
        else:
            self.fail(message, source_path, line_number)

    def reach_on_no_error(self, error: str | None) -> None:
        """Reach the goal when ``error`` is ``None`` or empty, otherwise fail with it."""
        if error:
            self.fail(error)
        else:
            self.reach()

    def snapshot(self) -> GoalState:
        return GoalState(self.name, self._reached, self._error)

    def __repr__(self) -> str:
        return f"Goal(name={self.name!r}, reached={self._reached!r}, error={self._error!r})"


__all__ = ["ErrorDetail", "Goal", "GoalState"]
