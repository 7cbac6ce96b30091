"""Configuration management for watchcover."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WatchcoverSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    storage_backend: Literal["chroma", "memory"] = Field(
        default="chroma", validation_alias="WATCHCOVER_STORAGE_BACKEND"
    )
    chroma_persist_path: Path = Field(
        default=Path("./storage/chroma"), validation_alias="CHROMA_PERSIST_PATH"
    )
    chroma_collection: str = Field(
        default="watch_progress", validation_alias="WATCHCOVER_CHROMA_COLLECTION"
    )
    storage_key_prefix: str = Field(
        default="videoProgress-", validation_alias="WATCHCOVER_STORAGE_KEY_PREFIX"
    )
    min_segment_seconds: float = Field(
        default=1.0, validation_alias="WATCHCOVER_MIN_SEGMENT_SECONDS"
    )
    seek_threshold_seconds: float = Field(
        default=1.0, validation_alias="WATCHCOVER_SEEK_THRESHOLD_SECONDS"
    )
    log_level: str = Field(default="INFO", validation_alias="WATCHCOVER_LOG_LEVEL")

    @field_validator("storage_backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "WATCHCOVER_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("min_segment_seconds", "seek_threshold_seconds")
    @classmethod
    def _validate_positive_seconds(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Segment and seek thresholds must be > 0 seconds")
        return value

    @field_validator("chroma_collection")
    @classmethod
    def _validate_collection(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("WATCHCOVER_CHROMA_COLLECTION must not be empty")
        return normalized


@lru_cache(maxsize=1)
def get_settings() -> WatchcoverSettings:
    """Return cached settings instance."""

    settings = WatchcoverSettings()
    settings.chroma_persist_path = settings.chroma_persist_path.expanduser().resolve()
    return settings


__all__ = ["WatchcoverSettings", "get_settings"]
