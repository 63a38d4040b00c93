"""Configuration settings for the visit calendar with caching utilities."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import tzinfo
from pathlib import Path
from threading import RLock
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-level settings for the calendar backend"""

    model_config = SettingsConfigDict(
        env_file=[".env.test", ".env"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Jira Cloud connection
    jira_base_url: str = "https://your-domain.atlassian.net"
    jira_email: str | None = None
    jira_api_token: SecretStr | None = None
    request_timeout_seconds: int = 30

    # Retry policy for every REST call
    max_retries: int = 3
    retry_base_delay: float = 1.0  # seconds
    retry_backoff_multiplier: float = 2.0

    # Two-step search limits
    key_fetch_limit: int = 5000  # key-only searches allow a much higher cap
    batch_size: int = 50
    batch_max_results: int = 100

    # Admin settings blob
    settings_store_path: Path = Path("./data/admin_settings.json")

    # Wall-clock zone used to place events on calendar days and hour rows
    display_timezone: str = "UTC"

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    # Environment
    environment: str = "production"

    @field_validator("display_timezone")
    @classmethod
    def validate_display_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @property
    def display_tz(self) -> tzinfo:
        return ZoneInfo(self.display_timezone)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.environment.lower() in ["development", "dev"]

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode"""
        return self.environment.lower() in ["testing", "test"]

    @property
    def has_credentials(self) -> bool:
        """Check if basic-auth credentials for Jira are configured"""
        return bool(self.jira_email and self.jira_api_token)


_SETTINGS_LOCK = RLock()
_SETTINGS_CACHE: Settings | None = None


def get_settings(*, refresh: bool = False) -> Settings:
    """Return a cached ``Settings`` instance.

    Parameters
    ----------
    refresh:
        When ``True`` the cached instance is discarded and a new one is created.
    """

    global _SETTINGS_CACHE

    with _SETTINGS_LOCK:
        if refresh or _SETTINGS_CACHE is None:
            _SETTINGS_CACHE = Settings()
        return _SETTINGS_CACHE


def clear_settings_cache() -> None:
    """Clear the cached settings instance."""

    global _SETTINGS_CACHE

    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = None


get_settings.cache_clear = clear_settings_cache  # type: ignore[attr-defined]


@contextmanager
def override_settings(**overrides: Any) -> Iterator[Settings]:
    """Temporarily override the cached settings within a context."""

    global _SETTINGS_CACHE

    with _SETTINGS_LOCK:
        previous_settings = _SETTINGS_CACHE

    base_settings = previous_settings or Settings()
    patched_settings = base_settings.model_copy(update=overrides)

    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = patched_settings

    try:
        yield patched_settings
    finally:
        with _SETTINGS_LOCK:
            _SETTINGS_CACHE = previous_settings
