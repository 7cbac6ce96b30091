"""Data models for watched coverage and tracked progress."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class WatchedInterval(BaseModel):
    """A traversed span of the timeline, in seconds."""

    model_config = ConfigDict(frozen=True)

    start: float = Field(..., ge=0, allow_inf_nan=False)
    end: float = Field(..., ge=0, allow_inf_nan=False)

    @model_validator(mode="after")
    def _check_order(self) -> "WatchedInterval":
        if self.start > self.end:
            raise ValueError("Interval start must not be after its end")
        return self

    @property
    def length(self) -> float:
        return self.end - self.start


def _none_as_empty(value: Any):
    if value is None:
        return []
    return value


def _none_as_zero(value: Any):
    if value is None:
        return 0.0
    return value


class PersistedProgress(BaseModel):
    """Durable record stored once per video: ``{"intervals": [...], "lastPos": n}``."""

    model_config = ConfigDict(populate_by_name=True)

    intervals: list[WatchedInterval] = Field(default_factory=list)
    last_position: float = Field(default=0.0, alias="lastPos", ge=0, allow_inf_nan=False)

    @field_validator("intervals", mode="before")
    @classmethod
    def _ensure_intervals(cls, value: Any):
        return _none_as_empty(value)

    @field_validator("last_position", mode="before")
    @classmethod
    def _ensure_position(cls, value: Any):
        return _none_as_zero(value)


class ProgressExport(BaseModel):
    """Portable, human-readable snapshot exchanged by export and import."""

    model_config = ConfigDict(populate_by_name=True)

    video_id: str = Field(..., alias="videoId")
    intervals: list[WatchedInterval] = Field(default_factory=list)
    last_position: float = Field(default=0.0, alias="lastPosition", ge=0, allow_inf_nan=False)
    total_progress: float | None = Field(default=None, alias="totalProgress")
    exported_at: datetime | None = Field(default=None, alias="exportedAt")

    @field_validator("intervals", mode="before")
    @classmethod
    def _ensure_intervals(cls, value: Any):
        return _none_as_empty(value)

    @field_validator("last_position", mode="before")
    @classmethod
    def _ensure_position(cls, value: Any):
        return _none_as_zero(value)


@dataclass(slots=True, frozen=True)
class ProgressState:
    """Read-only snapshot of one video's tracked progress."""

    video_id: str
    intervals: tuple[WatchedInterval, ...]
    last_position: float
    total_progress: float
    duration: float
    updated_at: datetime

    @property
    def watched_seconds(self) -> float:
        return sum(interval.length for interval in self.intervals)

    def to_dict(self) -> dict[str, Any]:
        return {
            "videoId": self.video_id,
            "intervals": [interval.model_dump() for interval in self.intervals],
            "lastPosition": self.last_position,
            "totalProgress": self.total_progress,
            "duration": self.duration,
            "watchedSeconds": self.watched_seconds,
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass(slots=True, frozen=True)
class Idle:
    """No segment is open."""


@dataclass(slots=True, frozen=True)
class Tracking:
    """A segment is open, anchored where playback started."""

    anchor: float


TrackingSession = Idle | Tracking

IDLE = Idle()


__all__ = [
    "IDLE",
    "Idle",
    "PersistedProgress",
    "ProgressExport",
    "ProgressState",
    "Tracking",
    "TrackingSession",
    "WatchedInterval",
]
