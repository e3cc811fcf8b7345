"""Text helpers shared by error reporting and the concrete checks."""

from __future__ import annotations

import traceback
from typing import Iterator, List

INDENT_STRING = "   "


def indent(text: str, count: int = 1, filler: str = INDENT_STRING) -> str:
    """Prefix every line of ``text`` with ``filler`` repeated ``count`` times.

    Every line, including the last, is terminated with a newline.
    """

    if count < 0:
        raise ValueError("Indentation depth must not be negative")
    prefix = filler * count
    return "".join(f"{prefix}{line}\n" for line in text.splitlines())


def indent_error(message: str, details: str) -> str:
    """Return ``message`` followed by ``details`` indented on the next lines."""

    return f"{message}\n{indent(details)}"


def iter_causes(exc: BaseException | None) -> Iterator[BaseException]:
    """Walk an exception and its explicit or implicit causes, outermost first."""

    seen: set[int] = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        yield exc
        if exc.__cause__ is not None:
            exc = exc.__cause__
        elif not exc.__suppress_context__:
            exc = exc.__context__
        else:
            exc = None


def describe_origin(exc: BaseException) -> str | None:
    """Return ``file:line`` of the innermost frame that raised ``exc``."""

    frames = traceback.extract_tb(exc.__traceback__)
    if not frames:
        return None
    last = frames[-1]
    return f"{last.filename}:{last.lineno}" if last.lineno else last.filename


def _simple_message(exc: BaseException) -> str:
    text = str(exc)
    return text if text else type(exc).__name__


def _detailed_message(exc: BaseException) -> str:
    label = type(exc).__name__
    origin = describe_origin(exc)
    if origin:
        label = f"{label} @ {origin}"
    text = str(exc)
    return f"{text} ({label})" if text else label


def message_trace(exc: BaseException, *, detailed: bool = False) -> str:
    """Render one line per exception in the cause chain.

    Simple mode prints each message (or the type name when empty). Detailed mode
    adds the type name and the originating ``file:line`` of every link.
    """

    lines: List[str] = []
    for link in iter_causes(exc):
        lines.append(_detailed_message(link) if detailed else _simple_message(link))
    return "".join(f"{line}\n" for line in lines)
