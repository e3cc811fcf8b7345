"""
Sandbox runner executing submitted code in an isolated child process.

Each load or invoke spawns a fresh interpreter with resource caps, waits for
its outcome up to the configured deadline and kills it afterwards. The child
always reports through a queue; a missing report means it was killed or died.
"""

from __future__ import annotations

import logging
import multiprocessing as mp
import queue
import resource
import sys
import threading
from typing import Any, Optional, Sequence

from graderkit.core.config import SandboxLimits
from graderkit.core.errors import ErrorKind

from .artifact import Argument, CompiledArtifact, LoadedUnit, split_entry_name
from .child import OPERATIONS, silence_process_streams
from .outcome import ExecOutcome

LOGGER = logging.getLogger(__name__)

# Submitted code inherits process-wide state (cwd, fds) in the child, so only
# one invocation is in flight per host process.
_INVOCATION_LOCK = threading.Lock()


class SandboxRunner:
    """Coordinator for sandboxed loading and invocation of submitted entry types."""

    def __init__(self, limits: SandboxLimits | None = None) -> None:
        self.limits = limits or SandboxLimits()

    @staticmethod
    def apply_cpu_limit(cpu_seconds: Optional[int]) -> None:
        """Apply a CPU soft limit not exceeding the current hard limit."""
        if not isinstance(cpu_seconds, int) or cpu_seconds <= 0:
            return
        _, hard_cur = resource.getrlimit(resource.RLIMIT_CPU)
        if hard_cur == resource.RLIM_INFINITY or cpu_seconds < hard_cur:
            soft_new = cpu_seconds
        else:
            soft_new = hard_cur
        resource.setrlimit(resource.RLIMIT_CPU, (soft_new, hard_cur))

    @staticmethod
    def apply_as_limit(mem_mb: int) -> None:
        """Apply an address-space soft limit only when safe and supported."""
        if sys.platform == "darwin":
            return
        mem_bytes = max(64, int(mem_mb)) * 1024 * 1024
        soft_cur, hard_cur = resource.getrlimit(resource.RLIMIT_AS)
        if hard_cur == resource.RLIM_INFINITY:
            resource.setrlimit(resource.RLIMIT_AS, (mem_bytes, hard_cur))
            return
        if mem_bytes <= hard_cur and soft_cur <= hard_cur:
            resource.setrlimit(resource.RLIMIT_AS, (mem_bytes, hard_cur))

    @staticmethod
    def child_main(operation: str, payload: tuple, mem_mb: int, cpu_seconds: Optional[int], q: mp.Queue) -> None:
        """Run one sandbox operation in the child process, always reporting an outcome."""
        try:
            silence_process_streams()
            SandboxRunner.apply_cpu_limit(cpu_seconds)
            SandboxRunner.apply_as_limit(mem_mb)
            outcome = OPERATIONS[operation](*payload)
        except MemoryError:
            outcome = ExecOutcome.failure(ErrorKind.DATA, "Submitted code exceeded the memory limit")
        except Exception as exc:
            outcome = ExecOutcome.failure(ErrorKind.INFRASTRUCTURE, f"Sandbox failure: {type(exc).__name__}: {exc}")
        try:
            q.put(outcome)
        except Exception as exc:
            q.put(ExecOutcome.failure(ErrorKind.INFRASTRUCTURE, f"Sandbox could not report outcome: {exc}"))

    def load(self, artifact: CompiledArtifact, entry_type: str) -> ExecOutcome[LoadedUnit]:
        """Confirm that ``entry_type`` can be imported from ``artifact``."""

        try:
            module_name, attribute = split_entry_name(entry_type)
        except ValueError as exc:
            return ExecOutcome.failure(ErrorKind.USE, str(exc))
        unit = LoadedUnit(artifact=artifact, entry_type=entry_type, module_name=module_name, attribute=attribute)
        if module_name not in artifact.modules:
            return ExecOutcome.failure(
                ErrorKind.DATA,
                f"Cannot load submitted entry type {entry_type}: module {module_name} is not part of the submission",
            )
        outcome = self._run_child("load", (unit,))
        if not outcome.ok:
            return outcome
        return ExecOutcome.success(unit)

    def invoke(self, unit: LoadedUnit, method_name: str, args: Sequence[Argument] = ()) -> ExecOutcome[Any]:
        """Instantiate the entry type and call ``method_name`` with ``args``."""

        for index, arg in enumerate(args):
            if not isinstance(arg.value, arg.declared_type):
                return ExecOutcome.failure(
                    ErrorKind.CODE,
                    f"Argument {index} of {method_name} is {type(arg.value).__name__}, declared as {arg.type_name}",
                )
        return self._run_child("invoke", (unit, method_name, tuple(args)))

    def _run_child(self, operation: str, payload: tuple) -> ExecOutcome[Any]:
        limits = self.limits
        ctx = mp.get_context("spawn")
        with _INVOCATION_LOCK:
            q: mp.Queue = ctx.Queue()
            p = ctx.Process(
                target=SandboxRunner.child_main,
                args=(operation, payload, limits.max_memory_mb, limits.cpu_seconds, q),
            )
            p.daemon = True
            LOGGER.debug("Starting sandbox child for %s", operation)
            try:
                p.start()
            except OSError as exc:
                return ExecOutcome.failure(ErrorKind.INFRASTRUCTURE, f"Cannot start sandbox process: {exc}")
            res: Optional[ExecOutcome[Any]] = None
            try:
                res = q.get(timeout=max(0.0, float(limits.timeout_s)))
            except queue.Empty:
                res = None
            alive = p.is_alive()
            if alive:
                p.kill()
            p.join(0.2)
            q.close()

        if res is not None:
            return res
        if alive:
            LOGGER.info("Sandbox child for %s timed out after %ss", operation, limits.timeout_s)
            return ExecOutcome.failure(ErrorKind.DATA, f"Submitted code timed out after {limits.timeout_s:g} s")
        return ExecOutcome.failure(
            ErrorKind.DATA,
            f"Submitted code terminated the sandbox process (exit code {p.exitcode})",
        )


def load_entry(artifact: CompiledArtifact, entry_type: str, limits: SandboxLimits | None = None) -> ExecOutcome[LoadedUnit]:
    return SandboxRunner(limits).load(artifact, entry_type)


def invoke_entry(
    unit: LoadedUnit,
    method_name: str,
    args: Sequence[Argument] = (),
    limits: SandboxLimits | None = None,
) -> ExecOutcome[Any]:
    return SandboxRunner(limits).invoke(unit, method_name, args)


__all__ = ["SandboxRunner", "invoke_entry", "load_entry"]
