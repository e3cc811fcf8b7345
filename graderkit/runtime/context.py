"""Directories owned by one plugin run."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator


class Workspace(BaseModel):
    """Paired data and output folders of a single run."""

    data_dir: Path
    output_dir: Path

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @field_validator("data_dir", "output_dir", mode="before")
    @classmethod
    def _expand(cls, value: Path | str) -> Path:
        return Path(value).expanduser().resolve()

    @property
    def directories(self) -> tuple[Path, Path]:
        return (self.data_dir, self.output_dir)

    def output_is_empty(self) -> bool:
        return not self.output_dir.is_dir() or not any(self.output_dir.iterdir())


__all__ = ["Workspace"]
