"""Session Settings

One frozen Settings object per process, read from the environment and an
optional .env file. Sections: database (snapshot and volume storage),
playback (throttle, restart threshold, readiness timeout, defaults) and
catalog (where the track list comes from).
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages


class DatabaseSettings(BaseModel):
    """Database configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(
        default="sqlite:///data/media_session.db",
        validation_alias=AliasChoices("url", "database_url", "db_url"),
    )
    busy_timeout_ms: int = Field(
        default=5000,
        ge=1000,
        le=30000,
        validation_alias=AliasChoices("busy_timeout_ms", "busy_timeout"),
    )
    connection_timeout_s: int = Field(
        default=10,
        ge=1,
        le=60,
        validation_alias=AliasChoices("connection_timeout_s", "connection_timeout"),
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate database URL format."""
        if not v.startswith("sqlite://"):
            raise ValueError(ErrorMessages.INVALID_DATABASE_URL)
        return v


class PlaybackSettings(BaseModel):
    """Playback session behaviour."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    progress_throttle_ms: int = Field(
        default=250,
        ge=0,
        le=5000,
        validation_alias=AliasChoices("progress_throttle_ms", "throttle_ms"),
    )
    restart_threshold_seconds: float = Field(default=3.0, ge=0.0, le=60.0)
    ready_timeout_seconds: float = Field(default=10.0, gt=0.0, le=120.0)
    default_volume: float = Field(default=0.7, ge=0.0, le=1.0)
    default_muted: bool = False
    note_line_seconds: float = Field(default=3.0, gt=0.0, le=60.0)

    # VirtualTransport timing
    tick_interval_ms: int = Field(default=50, ge=1, le=1000)
    simulated_load_seconds: float = Field(default=0.05, ge=0.0, le=30.0)
    simulated_duration_seconds: float = Field(default=180.0, gt=0.0)


class CatalogSettings(BaseModel):
    """Remote track catalog configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    base_url: str = Field(
        default="http://localhost:5000/api/songs",
        validation_alias=AliasChoices("base_url", "url", "catalog_url"),
    )
    timeout_seconds: float = Field(default=10.0, gt=0.0, le=120.0)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(ErrorMessages.INVALID_CATALOG_URL)
        return v


class Settings(BaseSettings):
    """Top-level settings.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DATABASE__URL, DATABASE__BUSY_TIMEOUT_MS (nested with ``__``)
    - PLAYBACK__PROGRESS_THROTTLE_MS, PLAYBACK__DEFAULT_VOLUME, ...
    - CATALOG__BASE_URL, CATALOG__TIMEOUT_SECONDS
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels))
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
