# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for cache, retry, cooldown and logging settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Result cache ===
    cache_enabled: bool = True
    cache_freshness_window_s: float = 300.0

    # === Retry / reconnect ===
    retry_on_error: bool = True
    max_retries: int = 3
    reconnect_base_delay_s: float = 3.0
    one_shot_retry_delay_s: float = 1.0

    # === Error notification cooldown ===
    error_cooldown_s: float = 30.0
    cooldown_backend: Literal["memory", "json", "sqlite"] = "memory"
    cooldown_path: Path = Path("~/.livequery/cooldown.json")

    # === Health check ===
    health_check_collection: str = "systemConfig"

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_retries must be >= 0")
        return v

    @field_validator(
        "cache_freshness_window_s",
        "reconnect_base_delay_s",
        "one_shot_retry_delay_s",
    )
    @classmethod
    def validate_positive_delay(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("delays and windows must be > 0")
        return v

    @field_validator("error_cooldown_s")
    @classmethod
    def validate_cooldown(cls, v: float) -> float:
        if v < 0:
            raise ValueError("error_cooldown_s must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cooldown_backend == "sqlite" and self.cooldown_path.suffix == ".json":
            errors.append("COOLDOWN_BACKEND=sqlite requires a non-.json COOLDOWN_PATH")

        if self.log_retention < 0:
            errors.append("LOG_RETENTION must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
