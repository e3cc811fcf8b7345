"""Handles describing compiled submitted code and the entry points inside it."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Tuple
from uuid import uuid4


@dataclass(frozen=True)
class CompiledArtifact:
    """Source tree whose modules all compiled; valid for one run only."""

    root: Path
    modules: Tuple[str, ...]
    artifact_id: str = field(default_factory=lambda: uuid4().hex)


@dataclass(frozen=True)
class LoadedUnit:
    """An entry type confirmed to exist inside a compiled artifact."""

    artifact: CompiledArtifact
    entry_type: str
    module_name: str
    attribute: str


@dataclass(frozen=True)
class Argument:
    """Positional argument for an entry point, bound by its declared type."""

    declared_type: type
    value: Any

    @property
    def type_name(self) -> str:
        return getattr(self.declared_type, "__qualname__", str(self.declared_type))


def split_entry_name(entry_type: str) -> Tuple[str, str]:
    """Split ``pkg.module.Class`` or ``pkg.module:Class`` into module and attribute."""

    name = entry_type.strip()
    if ":" in name:
        module_name, _, attribute = name.partition(":")
    else:
        module_name, _, attribute = name.rpartition(".")
    if not module_name or not attribute:
        raise ValueError(f"Entry type {entry_type!r} must be qualified by its module (e.g. 'solution.Solver')")
    return module_name, attribute


__all__ = ["Argument", "CompiledArtifact", "LoadedUnit", "split_entry_name"]
