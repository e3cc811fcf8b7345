"""Plugin runtime: workspace lifecycle, reply protocol and run orchestration."""

from .bootstrap import resolve_runner_config
from .context import Workspace
from .plugin import CheckPlugin, Plugin, RunState
from .protocol import (
    CriterionReport,
    FailureReport,
    SuccessReport,
    encode_failure,
    encode_success,
    parse_report,
    redact,
)
from .workspace import WorkspaceManager

__all__ = [
    "CheckPlugin",
    "CriterionReport",
    "FailureReport",
    "Plugin",
    "RunState",
    "SuccessReport",
    "Workspace",
    "WorkspaceManager",
    "encode_failure",
    "encode_success",
    "parse_report",
    "redact",
    "resolve_runner_config",
]
