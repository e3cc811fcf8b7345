"""Byte-compile a submitted source tree, stopping at the first broken file."""

from __future__ import annotations

import logging
import py_compile
from pathlib import Path
from typing import Iterator, List

from graderkit.core.errors import ErrorKind
from graderkit.utils.text import indent_error

from .artifact import CompiledArtifact
from .outcome import ExecOutcome

LOGGER = logging.getLogger(__name__)
SOURCE_SUFFIX = ".py"


def iter_source_files(root: Path, suffix: str = SOURCE_SUFFIX) -> Iterator[Path]:
    """Yield source files depth-first: each folder's subfolders before its own files."""

    entries = sorted(root.iterdir(), key=lambda path: path.name)
    for entry in entries:
        if entry.is_dir() and entry.name != "__pycache__":
            yield from iter_source_files(entry, suffix)
    for entry in entries:
        if entry.is_file() and entry.name.endswith(suffix):
            yield entry


def module_name_for(root: Path, source: Path) -> str:
    parts = list(source.relative_to(root).with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts)


def compile_sources(root: Path) -> ExecOutcome[CompiledArtifact]:
    """Compile every source file under ``root``.

    The compiler diagnostic of the first file that fails is returned verbatim
    as a data error; nothing after it is compiled.
    """

    if not root.is_dir():
        return ExecOutcome.failure(ErrorKind.DATA, f"Source folder not found: {root.name}")

    modules: List[str] = []
    for source in iter_source_files(root):
        relative = source.relative_to(root).as_posix()
        try:
            py_compile.compile(str(source), doraise=True)
        except py_compile.PyCompileError as exc:
            LOGGER.info("Submitted source %s does not compile", relative)
            return ExecOutcome.failure(
                ErrorKind.DATA,
                indent_error(f"Source cannot be compiled ({relative})", exc.msg.strip()).rstrip("\n"),
                origin=relative,
            )
        except OSError as exc:
            return ExecOutcome.failure(ErrorKind.DATA, f"Source cannot be read ({relative}): {exc}", origin=relative)
        name = module_name_for(root, source)
        if name:
            modules.append(name)

    if not modules:
        return ExecOutcome.failure(ErrorKind.DATA, f"No Python source files found in {root.name}")
    LOGGER.debug("Compiled %d module(s) under %s", len(modules), root)
    return ExecOutcome.success(CompiledArtifact(root=root.resolve(), modules=tuple(modules)))


__all__ = ["compile_sources", "iter_source_files", "module_name_for"]
