"""
Typed configuration for plugin runs.

A run needs very little: sandbox limits for submitted code, a couple of
reporting switches and free-form plugin settings. Everything has a default so
plugins work without any configuration file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class SandboxLimits(BaseModel):
    """Ceilings applied to every invocation of submitted code."""

    model_config = ConfigDict(frozen=True)

    timeout_s: float = Field(default=10.0, gt=0.0, description="Wall-clock deadline per call.")
    max_memory_mb: int = Field(default=512, ge=64, description="Address-space limit of the child process.")
    cpu_seconds: int | None = Field(default=None, ge=1, description="Optional CPU-time limit of the child process.")


class RunnerConfig(BaseModel):
    """Top-level configuration for one plugin run."""

    model_config = ConfigDict(extra="ignore")

    verbose_errors: bool = False
    redaction_placeholder: str = "."
    output_archive_dir: Optional[Path] = None
    journal_path: Optional[Path] = None
    sandbox: SandboxLimits = Field(default_factory=SandboxLimits)
    settings: Dict[str, str] = Field(default_factory=dict, description="Plugin-specific configuration values.")

    @field_validator("output_archive_dir", "journal_path", mode="before")
    @classmethod
    def coerce_path(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return Path(value).expanduser().resolve()

    @field_validator("settings", mode="before")
    @classmethod
    def stringify_settings(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(key): "" if item is None else str(item) for key, item in value.items()}
        return value


def read_yaml_file(path: Path) -> Dict[str, Any]:
    """Load a YAML file and return a dictionary."""
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at root of {path}, received {type(data)}")
    return data


def _resolve_config_path(value: Any, base_dir: Path) -> str:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    else:
        path = path.resolve()
    return str(path)


def load_runner_config(path: Path, *, base_dir: Path | None = None) -> RunnerConfig:
    """Load a runner config YAML; relative paths resolve against the file's folder."""
    path = path.expanduser().resolve()
    try:
        data = read_yaml_file(path)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid runner config in {path}: not valid YAML") from exc
    anchor = (base_dir or path.parent).resolve()
    for key in ("output_archive_dir", "journal_path"):
        if data.get(key):
            data[key] = _resolve_config_path(data[key], anchor)
    try:
        return RunnerConfig.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid runner config in {path}") from exc


__all__ = ["RunnerConfig", "SandboxLimits", "load_runner_config", "read_yaml_file"]
