"""
Plugin runtime: one run from submission archive to reply document.

``Plugin.run`` walks a fixed sequence of states::

    init -> unpacked -> configured -> executed -> assessed -> reported -> released

Any fault raised on the way is caught once, at the run boundary, and turned
into a failure reply. The workspace is released on every path.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from graderkit.core.checks import Check, CheckCriterion
from graderkit.core.config import RunnerConfig
from graderkit.core.errors import (
    ErrorKind,
    PluginCodeError,
    PluginUseError,
    classify,
    failure_message,
)
from graderkit.core.journal import RunEvent, RunJournal
from graderkit.core.registry import Criterion, CriterionRegistry

from .bootstrap import resolve_runner_config
from .context import Workspace
from .protocol import encode_failure, encode_success
from .workspace import WorkspaceManager

LOGGER = logging.getLogger(__name__)
MISSING_ARCHIVE_MESSAGE = "Data file argument missing"
INVALID_CONFIG_MESSAGE = "Invalid runner configuration"


class RunState(str, Enum):
    INIT = "init"
    UNPACKED = "unpacked"
    CONFIGURED = "configured"
    EXECUTED = "executed"
    ASSESSED = "assessed"
    REPORTED = "reported"
    RELEASED = "released"


class Plugin(ABC):
    """Base class for grading plugins.

    Subclasses register criteria in ``set_up`` and do whatever computation the
    criteria depend on in ``execute``. ``run`` is the only public entry point.
    """

    name: str = ""

    def __init__(self, config: RunnerConfig | None = None) -> None:
        self.config = config
        self.state = RunState.INIT
        self._criteria = CriterionRegistry()
        self._workspace: Optional[Workspace] = None
        self._journal = RunJournal(None)

    @property
    def plugin_name(self) -> str:
        return self.name or type(self).__name__

    @property
    def settings(self) -> Dict[str, str]:
        return dict(self.config.settings) if self.config is not None else {}

    @property
    def criteria(self) -> CriterionRegistry:
        return self._criteria

    @abstractmethod
    def set_up(self, params: List[str]) -> None:
        """Register criteria using the arguments that follow the archive path."""

    @abstractmethod
    def execute(self) -> None:
        """Do everything that must happen before criteria can be checked."""

    # ------------------------------------------------------------------
    # run

    def run(self, argv: Sequence[str] | None) -> str:
        """Grade the submission named by ``argv[0]`` and return the reply document."""

        self._journal = RunJournal(None)
        self._criteria = CriterionRegistry()
        self._workspace = None
        self.state = RunState.INIT
        manager: Optional[WorkspaceManager] = None
        try:
            try:
                config = self._resolve_config()
                manager = WorkspaceManager(archive_dir=config.output_archive_dir)
                self._journal = RunJournal(config.journal_path)
                reply = self._run_stages(list(argv or []), manager)
            except Exception as exc:
                reply = self._failure_reply(exc)
            self._enter(RunState.REPORTED)
            return reply
        finally:
            clean = manager.release(self._workspace) if manager is not None else True
            self._enter(RunState.RELEASED, clean=clean)
            self._workspace = None

    def _resolve_config(self) -> RunnerConfig:
        if self.config is None:
            try:
                self.config = resolve_runner_config()
            except (OSError, ValueError) as exc:
                raise PluginUseError(f"{INVALID_CONFIG_MESSAGE}: {exc}") from exc
        return self.config

    def _run_stages(self, args: List[str], manager: WorkspaceManager) -> str:
        if not args:
            raise PluginUseError(MISSING_ARCHIVE_MESSAGE)
        workspace = self._workspace = manager.allocate()
        files = manager.unpack(Path(args[0]), workspace)
        self._enter(RunState.UNPACKED, files=files)

        self.set_up(args[1:])
        self._enter(RunState.CONFIGURED, criteria=self._criteria.names())

        self.execute()
        self._enter(RunState.EXECUTED)

        results = self._criteria.assess_all()
        self._enter(RunState.ASSESSED, passed=sum(1 for result in results.values() if result.passed))

        archive = manager.pack(workspace)
        return encode_success(
            results,
            archive,
            data_dir=workspace.data_dir,
            placeholder=self.config.redaction_placeholder,
        )

    def _failure_reply(self, exc: Exception) -> str:
        config = self.config or RunnerConfig()
        kind = classify(exc)
        if kind is ErrorKind.INFRASTRUCTURE:
            LOGGER.error("Plugin %s failed unexpectedly in state %s", self.plugin_name, self.state.value, exc_info=exc)
        else:
            LOGGER.info("Plugin %s stopped with a %s error: %s", self.plugin_name, kind.value, exc)
        message = failure_message(exc, verbose=config.verbose_errors)
        self._journal.log(
            RunEvent(
                stage="failed",
                message=message,
                plugin=self.plugin_name,
                payload={"kind": kind.value, "state": self.state.value},
            )
        )
        data_dir = self._workspace.data_dir if self._workspace is not None else None
        return encode_failure(message, data_dir=data_dir, placeholder=config.redaction_placeholder)

    def _enter(self, state: RunState, **payload: Any) -> None:
        self.state = state
        LOGGER.debug("Plugin %s entered %s", self.plugin_name, state.value)
        self._journal.log(
            RunEvent(stage=state.value, message=f"Entered {state.value}", plugin=self.plugin_name, payload=payload)
        )

    # ------------------------------------------------------------------
    # helpers for subclasses

    def add_criterion(self, name: str, criterion: Criterion) -> None:
        self._criteria.register(name, criterion)

    def require_params(self, params: Sequence[str], descriptions: Sequence[str]) -> None:
        """Raise a usage error unless ``params`` covers every described mandatory argument."""
        if not descriptions:
            return
        if len(params) < len(descriptions):
            raise PluginUseError(
                f"Plugin takes {len(descriptions)} mandatory arguments: {', '.join(descriptions)}"
            )

    def _require_workspace(self) -> Workspace:
        if self._workspace is None:
            raise PluginCodeError("Workspace paths are only available while the plugin runs")
        return self._workspace

    @property
    def data_dir(self) -> Path:
        return self._require_workspace().data_dir

    @property
    def output_dir(self) -> Path:
        return self._require_workspace().output_dir

    def source_file(self, relative: str) -> Path:
        return self.data_dir / relative

    def source_path(self, relative: str) -> str:
        return str(self.source_file(relative).resolve())

    def output_file(self, relative: str) -> Path:
        return self.output_dir / relative

    def output_path(self, relative: str) -> str:
        return str(self.output_file(relative).resolve())


class CheckPlugin(Plugin):
    """Plugin whose criteria are checks; ``execute`` runs them in registration order."""

    def add_check_as_criterion(self, check: Check, name: str | None = None) -> CheckCriterion:
        criterion = CheckCriterion(check)
        self.add_criterion(name or check.name, criterion)
        return criterion

    def checks(self) -> List[Check]:
        found: List[Check] = []
        for name in self._criteria:
            criterion = self._criteria.get(name)
            if isinstance(criterion, CheckCriterion):
                found.append(criterion.check_instance)
        return found

    def execute(self) -> None:
        for check in self.checks():
            LOGGER.debug("Running check %s", check.name)
            check.run()


__all__ = ["CheckPlugin", "INVALID_CONFIG_MESSAGE", "MISSING_ARCHIVE_MESSAGE", "Plugin", "RunState"]
