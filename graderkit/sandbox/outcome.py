"""
Tagged outcomes passed between the sandbox and its callers.

Sandbox operations never raise for expected failures. They hand back an
``ExecOutcome`` that is either ``ok`` with a value or carries an error kind,
a message and, where known, the ``file:line`` the failure came from.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from graderkit.core.errors import ErrorKind, error_for_kind

T = TypeVar("T")


@dataclass(frozen=True)
class ExecOutcome(Generic[T]):
    """Structured result of a compile, load or invoke step."""

    ok: bool
    value: Optional[T] = None
    kind: Optional[ErrorKind] = None
    message: str = ""
    origin: Optional[str] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "ExecOutcome[T]":
        return cls(True, value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, origin: Optional[str] = None) -> "ExecOutcome[T]":
        return cls(False, None, kind, message, origin)

    def unwrap(self) -> T:
        """Return the value, or raise the plugin error matching the failure kind."""
        if self.ok:
            return self.value  # type: ignore[return-value]
        raise error_for_kind(self.kind or ErrorKind.INFRASTRUCTURE, self.message)


__all__ = ["ExecOutcome"]
