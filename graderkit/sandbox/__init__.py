"""Compile, load and invoke submitted code away from the harness process."""

from .artifact import Argument, CompiledArtifact, LoadedUnit, split_entry_name
from .compiler import compile_sources
from .outcome import ExecOutcome
from .runner import SandboxRunner, invoke_entry, load_entry

__all__ = [
    "Argument",
    "CompiledArtifact",
    "ExecOutcome",
    "LoadedUnit",
    "SandboxRunner",
    "compile_sources",
    "invoke_entry",
    "load_entry",
    "split_entry_name",
]
