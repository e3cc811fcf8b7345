"""Append-only JSONL journal of plugin run stages."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from pydantic import BaseModel, Field

LOGGER = logging.getLogger(__name__)


class RunEvent(BaseModel):
    """Structured record for one runtime transition."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    stage: str = Field(..., description="Runtime state entered, e.g. 'unpacked' or 'assessed'.")
    message: str = Field(..., description="Human-readable description of the event.")
    plugin: str = Field(default="plugin")
    payload: Dict[str, Any] = Field(default_factory=dict)


class RunJournal:
    """Writes one JSON line per event; a journal that cannot be written never fails the run."""

    def __init__(self, output_path: Path | None):
        self.output_path = output_path

    @property
    def enabled(self) -> bool:
        return self.output_path is not None

    def log(self, event: RunEvent | Dict[str, Any]) -> RunEvent:
        if not isinstance(event, RunEvent):
            event = RunEvent(**event)
        if self.output_path is None:
            return event
        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            with self.output_path.open("a", encoding="utf-8") as handle:
                handle.write(event.model_dump_json() + "\n")
        except OSError as exc:
            LOGGER.warning("Unable to append to run journal %s: %s", self.output_path, exc)
        return event


__all__ = ["RunEvent", "RunJournal"]
