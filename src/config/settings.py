# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific cache settings. Every field
maps to an upper-case environment variable (CACHE_ROOT, CACHE_VALIDITY_DAYS,
LOG_LEVEL, ...).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scholarcache.cache.constants import (
    CACHE_FORMAT_VERSION,
    DEFAULT_RESULT_FIELD,
    DEFAULT_VALIDITY_DAYS,
)
from scholarcache.cache.freshness import days_to_ms
from scholarcache.cache.models import CacheConfig


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache ===
    cache_backend: Literal["json", "sqlite"] = "json"
    cache_root: Path = Path("~/.scholarcache/cache")
    cache_validity_days: float = DEFAULT_VALIDITY_DAYS
    cache_format_version: str = CACHE_FORMAT_VERSION
    cache_result_field: str = DEFAULT_RESULT_FIELD

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("cache_validity_days")
    @classmethod
    def validate_validity_days(cls, v: float) -> float:  # noqa: N805
        """Validity window must be positive."""
        if v <= 0:
            raise ValueError("cache_validity_days must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if not self.cache_format_version.strip():
            errors.append("CACHE_FORMAT_VERSION must not be empty")

        if not self.cache_result_field.strip():
            errors.append("CACHE_RESULT_FIELD must not be empty")

        if self.log_retention < 0:
            errors.append("LOG_RETENTION must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def validity_window_ms(self) -> int:
        """Freshness window in milliseconds."""
        return days_to_ms(self.cache_validity_days)

    def cache_config(self) -> CacheConfig:
        """Build the explicit configuration handed to QueryCache."""
        return CacheConfig(
            validity_window_ms=self.validity_window_ms,
            format_version=self.cache_format_version,
            result_field=self.cache_result_field,
        )


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-deployment config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
