"""
Operations executed inside the sandbox child process.

Everything here runs in a freshly spawned interpreter whose import path starts
at the artifact root, so submitted modules never share a namespace with the
harness or with any other invocation.
"""

from __future__ import annotations

import importlib
import inspect
import os
import sys
import types
import typing
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Sequence

from graderkit.core.errors import ErrorKind
from graderkit.utils.text import describe_origin, indent_error, message_trace

from .artifact import Argument, LoadedUnit
from .outcome import ExecOutcome

PLAIN_TYPES = (type(None), bool, int, float, str, bytes)
PLAIN_CONTAINERS = (list, tuple, set)


def silence_process_streams() -> None:
    """Send fds 1/2 and ``sys.stdout``/``sys.stderr`` to the null device for the rest of the process.

    Threads and exit hooks started by submitted code outlive a single call, so
    the child never gets its streams back.
    """

    for stream in (sys.stdout, sys.stderr):
        if stream is not None:
            stream.flush()
    null_fd = os.open(os.devnull, os.O_WRONLY)
    try:
        os.dup2(null_fd, 1)
        os.dup2(null_fd, 2)
    finally:
        os.close(null_fd)
    null_stream = open(os.devnull, "w", encoding="utf-8")
    sys.stdout = null_stream
    sys.stderr = null_stream


@contextmanager
def suppressed_streams() -> Iterator[None]:
    """Send fds 1/2 and ``sys.stdout``/``sys.stderr`` to the null device, restoring them on exit."""

    for stream in (sys.stdout, sys.stderr):
        if stream is not None:
            stream.flush()
    saved_streams = (sys.stdout, sys.stderr)
    saved_fds = (os.dup(1), os.dup(2))
    null_fd = os.open(os.devnull, os.O_WRONLY)
    null_stream = open(os.devnull, "w", encoding="utf-8")
    try:
        os.dup2(null_fd, 1)
        os.dup2(null_fd, 2)
        sys.stdout = null_stream
        sys.stderr = null_stream
        yield
    finally:
        sys.stdout, sys.stderr = saved_streams
        os.dup2(saved_fds[0], 1)
        os.dup2(saved_fds[1], 2)
        for fd in (*saved_fds, null_fd):
            os.close(fd)
        null_stream.close()


def enter_artifact(unit: LoadedUnit) -> None:
    root = str(unit.artifact.root)
    sys.path.insert(0, root)
    os.chdir(root)
    importlib.invalidate_caches()


def resolve_entry(unit: LoadedUnit) -> type:
    module = importlib.import_module(unit.module_name)
    entry = getattr(module, unit.attribute)
    if not inspect.isclass(entry):
        raise TypeError(f"{unit.entry_type} is a {type(entry).__name__}, not a class")
    return entry


def _annotation_name(annotation: str) -> str:
    base = annotation.strip().split("[", 1)[0]
    return base.rsplit(".", 1)[-1]


def annotation_accepts(annotation: Any, declared: type) -> bool:
    """Whether a parameter annotated with ``annotation`` takes a ``declared`` value."""

    if annotation is inspect.Parameter.empty or annotation is Any or annotation is object:
        return True
    if isinstance(annotation, str):
        if "|" in annotation:
            return any(annotation_accepts(part, declared) for part in annotation.split("|"))
        base = _annotation_name(annotation)
        if base in {"Any", "object"}:
            return True
        if base in {"Optional", "Union"}:
            return declared.__name__ in annotation
        return base in {declared.__name__, declared.__qualname__} or base.lower() == declared.__name__
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is getattr(types, "UnionType", None):
        return any(annotation_accepts(arg, declared) for arg in typing.get_args(annotation))
    target = origin if isinstance(origin, type) else annotation
    if isinstance(target, type):
        try:
            return issubclass(declared, target)
        except TypeError:
            return False
    return False


def find_method(entry: type, method_name: str, declared: Sequence[type]) -> Optional[Any]:
    """Return the method whose positional signature takes ``declared`` types, or ``None``."""

    member = inspect.getattr_static(entry, method_name, None)
    if member is None:
        return None
    function = member.__func__ if isinstance(member, (staticmethod, classmethod)) else member
    if not callable(function):
        return None
    try:
        parameters: List[inspect.Parameter] = list(inspect.signature(function).parameters.values())
    except (TypeError, ValueError):
        return None
    if not isinstance(member, staticmethod) and parameters:
        parameters = parameters[1:]

    positional = [
        param
        for param in parameters
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    variadic = any(param.kind is inspect.Parameter.VAR_POSITIONAL for param in parameters)
    required_keyword = [
        param
        for param in parameters
        if param.kind is inspect.Parameter.KEYWORD_ONLY and param.default is inspect.Parameter.empty
    ]
    if required_keyword:
        return None
    if len(declared) < len(positional) and positional[len(declared)].default is inspect.Parameter.empty:
        return None
    if len(declared) > len(positional) and not variadic:
        return None
    for param, declared_type in zip(positional, declared):
        if not annotation_accepts(param.annotation, declared_type):
            return None
    return member


def is_plain_data(value: Any) -> bool:
    if isinstance(value, PLAIN_TYPES):
        return True
    if isinstance(value, PLAIN_CONTAINERS):
        return all(is_plain_data(item) for item in value)
    if isinstance(value, dict):
        return all(is_plain_data(key) and is_plain_data(item) for key, item in value.items())
    return False


def _fault(message: str, exc: BaseException) -> ExecOutcome[Any]:
    return ExecOutcome.failure(
        ErrorKind.DATA,
        indent_error(message, message_trace(exc, detailed=True)).rstrip("\n"),
        origin=describe_origin(exc),
    )


def run_load(unit: LoadedUnit) -> ExecOutcome[None]:
    enter_artifact(unit)
    with suppressed_streams():
        try:
            resolve_entry(unit)
        except (Exception, SystemExit) as exc:
            return _fault(f"Cannot load submitted entry type {unit.entry_type}", exc)
    return ExecOutcome.success(None)


def run_invoke(unit: LoadedUnit, method_name: str, args: Sequence[Argument]) -> ExecOutcome[Any]:
    enter_artifact(unit)
    declared = [arg.declared_type for arg in args]
    with suppressed_streams():
        try:
            entry = resolve_entry(unit)
        except (Exception, SystemExit) as exc:
            return _fault(f"Cannot load submitted entry type {unit.entry_type}", exc)
        if find_method(entry, method_name, declared) is None:
            signature = ", ".join(arg.type_name for arg in args)
            return ExecOutcome.failure(
                ErrorKind.DATA,
                f"Submitted entry type {unit.entry_type} has no method {method_name}({signature})",
            )
        try:
            instance = entry()
            value = getattr(instance, method_name)(*[arg.value for arg in args])
        except (Exception, SystemExit) as exc:
            return _fault("Error while running submitted code", exc)
    if not is_plain_data(value):
        return ExecOutcome.failure(
            ErrorKind.DATA,
            f"Submitted code returned {type(value).__name__}, which cannot be passed back to the grader",
        )
    return ExecOutcome.success(value)


OPERATIONS = {
    "load": run_load,
    "invoke": run_invoke,
}


__all__ = [
    "OPERATIONS",
    "annotation_accepts",
    "find_method",
    "is_plain_data",
    "run_invoke",
    "run_load",
    "silence_process_streams",
    "suppressed_streams",
]
