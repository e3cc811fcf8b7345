"""Error taxonomy shared by plugins, checks and the sandbox."""

from __future__ import annotations

from enum import Enum

from graderkit.utils.text import describe_origin, indent, message_trace


class ErrorKind(str, Enum):
    """Who is to blame for a failed step, most recoverable first."""

    USE = "use"
    DATA = "data"
    CODE = "code"
    INFRASTRUCTURE = "infrastructure"


class PluginError(Exception):
    """Base class for failures that carry a user-facing message."""

    kind: ErrorKind = ErrorKind.INFRASTRUCTURE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class PluginUseError(PluginError):
    """Caller supplied insufficient or invalid arguments."""

    kind = ErrorKind.USE


class PluginDataError(PluginError):
    """Submission contents are malformed or the submitted code failed."""

    kind = ErrorKind.DATA


class PluginCodeError(PluginError):
    """The plugin itself was assembled incorrectly."""

    kind = ErrorKind.CODE


_ERRORS_BY_KIND = {
    ErrorKind.USE: PluginUseError,
    ErrorKind.DATA: PluginDataError,
    ErrorKind.CODE: PluginCodeError,
    ErrorKind.INFRASTRUCTURE: PluginError,
}


def error_for_kind(kind: ErrorKind, message: str) -> PluginError:
    """Build the exception matching ``kind``."""

    return _ERRORS_BY_KIND[kind](message)


def classify(exc: BaseException) -> ErrorKind:
    if isinstance(exc, PluginError):
        return exc.kind
    return ErrorKind.INFRASTRUCTURE


def failure_message(exc: BaseException, *, verbose: bool = False) -> str:
    """Turn any exception into the text of a failure report.

    Plugin errors keep their message. Anything else is reported with its type
    name and originating ``file:line``; ``verbose`` appends the cause chain.
    """

    if isinstance(exc, PluginError) and not verbose:
        return exc.message
    if isinstance(exc, PluginError):
        message = exc.message
    else:
        message = f"Unexpected {type(exc).__name__}"
        text = str(exc)
        if text:
            message = f"{message}: {text}"
        origin = describe_origin(exc)
        if origin:
            message = f"{message} @ {origin}"
    if verbose and (exc.__cause__ is not None or exc.__context__ is not None or not isinstance(exc, PluginError)):
        message = f"{message}\n{indent(message_trace(exc, detailed=True))}".rstrip("\n")
    return message


__all__ = [
    "ErrorKind",
    "PluginCodeError",
    "PluginDataError",
    "PluginError",
    "PluginUseError",
    "classify",
    "error_for_kind",
    "failure_message",
]
