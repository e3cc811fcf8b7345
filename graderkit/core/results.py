"""Outcome of a single criterion."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Result(BaseModel):
    """Pass/fail flag, 0-100 fulfillment and free-text details for one criterion.

    ``Result()`` means fully passed. Fulfillment outside ``[0, 100]`` is clamped
    rather than rejected.
    """

    model_config = ConfigDict(frozen=True)

    passed: bool = True
    fulfillment: int = Field(default=100, description="Partial credit percentage.")
    details: str = ""

    @field_validator("fulfillment", mode="before")
    @classmethod
    def clamp_fulfillment(cls, value: Any) -> int:
        number = int(value)
        return max(0, min(100, number))

    @field_validator("details", mode="before")
    @classmethod
    def coerce_details(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @classmethod
    def failed(cls, details: str, fulfillment: int = 0) -> "Result":
        return cls(passed=False, fulfillment=fulfillment, details=details)


__all__ = ["Result"]
