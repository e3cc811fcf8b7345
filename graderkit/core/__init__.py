"""
Building blocks every plugin is assembled from: goals, results, criteria,
checks, the error taxonomy and run configuration.
"""

from .checks import Check, CheckCriterion
from .config import RunnerConfig, SandboxLimits, load_runner_config
from .errors import ErrorKind, PluginCodeError, PluginDataError, PluginError, PluginUseError
from .goals import ErrorDetail, Goal, GoalState
from .journal import RunEvent, RunJournal
from .registry import Criterion, CriterionRegistry
from .results import Result

__all__ = [
    "Check",
    "CheckCriterion",
    "Criterion",
    "CriterionRegistry",
    "ErrorDetail",
    "ErrorKind",
    "Goal",
    "GoalState",
    "PluginCodeError",
    "PluginDataError",
    "PluginError",
    "PluginUseError",
    "Result",
    "RunEvent",
    "RunJournal",
    "RunnerConfig",
    "SandboxLimits",
    "load_runner_config",
]
