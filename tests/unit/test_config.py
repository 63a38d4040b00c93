"""Test configuration module"""

from pathlib import Path

import pytest
from pydantic import ValidationError


def test_config_import(monkeypatch) -> None:
    """Settings are built from environment variables."""
    monkeypatch.setenv("JIRA_BASE_URL", "https://acme.atlassian.net")
    monkeypatch.setenv("JIRA_API_TOKEN", "secret")
    monkeypatch.setenv("BATCH_SIZE", "25")
    monkeypatch.setenv("SETTINGS_STORE_PATH", "/tmp/calendar/settings.json")

    # Import get_settings AFTER setting environment variables
    from jira_calendar.config import get_settings

    settings = get_settings()

    assert settings.jira_base_url == "https://acme.atlassian.net"
    assert settings.jira_api_token.get_secret_value() == "secret"
    assert settings.batch_size == 25
    assert settings.settings_store_path == Path("/tmp/calendar/settings.json")
    assert settings.environment == "testing"
    assert settings.is_testing is True
    assert settings.has_credentials is True


def test_defaults(monkeypatch) -> None:
    monkeypatch.delenv("JIRA_EMAIL")
    from jira_calendar.config import Settings

    settings = Settings(_env_file=None)

    assert settings.max_retries == 3
    assert settings.retry_base_delay == 1.0
    assert settings.retry_backoff_multiplier == 2.0
    assert settings.key_fetch_limit == 5000
    assert settings.batch_size == 50
    assert settings.batch_max_results == 100
    assert settings.has_credentials is False


def test_settings_cache_and_override() -> None:
    from jira_calendar.config import (
        clear_settings_cache,
        get_settings,
        override_settings,
    )

    first = get_settings()
    assert get_settings() is first

    with override_settings(batch_size=10) as patched:
        assert get_settings() is patched
        assert patched.batch_size == 10

    assert get_settings() is first

    clear_settings_cache()
    assert get_settings() is not first
    assert get_settings(refresh=True).batch_size == 50


def test_display_timezone(monkeypatch) -> None:
    from jira_calendar.config import Settings

    monkeypatch.setenv("DISPLAY_TIMEZONE", "UTC")
    settings = Settings(_env_file=None)
    assert settings.display_timezone == "UTC"
    assert settings.display_tz.utcoffset(None).total_seconds() == 0

    with pytest.raises(ValidationError):
        Settings(_env_file=None, display_timezone="Not/AZone")
