"""Bootstrap helpers resolving run configuration from files and the environment."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from graderkit.core.config import RunnerConfig, SandboxLimits, load_runner_config

CONFIG_ENV = "GRADERKIT_CONFIG"
VERBOSE_ENV = "GRADERKIT_VERBOSE_ERRORS"
TIMEOUT_ENV = "GRADERKIT_SANDBOX_TIMEOUT"
TRUTHY = {"1", "true", "yes", "on"}
LOGGER = logging.getLogger(__name__)


def _env_flag(name: str) -> bool | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip().lower() in TRUTHY


def resolve_runner_config(config_path: Path | None = None, *, working_dir: Path | None = None) -> RunnerConfig:
    """
    Build the configuration for one run.

    Parameters
    ----------
    config_path:
        Explicit YAML config. Falls back to ``GRADERKIT_CONFIG`` and then to
        built-in defaults.
    working_dir:
        Folder searched for a ``.env`` file. Defaults to ``Path.cwd()``.
    """

    working_dir = (working_dir or Path.cwd()).resolve()
    load_dotenv(working_dir / ".env")

    if config_path is None:
        env_config = os.getenv(CONFIG_ENV)
        if env_config:
            config_path = Path(env_config)
            if not config_path.is_absolute():
                config_path = working_dir / config_path

    if config_path is not None:
        config = load_runner_config(config_path)
        LOGGER.debug("Loaded runner config from %s", config_path)
    else:
        config = RunnerConfig()

    verbose = _env_flag(VERBOSE_ENV)
    if verbose is not None:
        config = config.model_copy(update={"verbose_errors": verbose})

    timeout = os.getenv(TIMEOUT_ENV)
    if timeout:
        try:
            limits = SandboxLimits.model_validate({**config.sandbox.model_dump(), "timeout_s": float(timeout)})
        except ValueError as exc:
            raise ValueError(f"{TIMEOUT_ENV} must be a positive number of seconds, got {timeout!r}") from exc
        config = config.model_copy(update={"sandbox": limits})
    return config


__all__ = ["CONFIG_ENV", "TIMEOUT_ENV", "VERBOSE_ENV", "resolve_runner_config"]
