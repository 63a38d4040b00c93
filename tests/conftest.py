"""
Shared fixtures.

- test environment variables are set for every test (autouse)
- the settings cache is cleared around every test
- Jira transports are faked in-process and retry sleeps only record delays
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime
from typing import Any

import pytest

from jira_calendar.calendar.admin_settings import CustomFieldMapping
from jira_calendar.calendar.models import VisitEvent
from jira_calendar.config import clear_settings_cache
from jira_calendar.integrations.jira.schemas import SearchResponse
from jira_calendar.utils.retry import RetryPolicy

START_FIELD = "customfield_10061"
END_FIELD = "customfield_10179"


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Minimal dummy environment; restored by monkeypatch after each test."""

    env: dict[str, str] = {
        "JIRA_BASE_URL": "https://example.atlassian.net",
        "JIRA_EMAIL": "calendar@example.com",
        "JIRA_API_TOKEN": "test_token",
        "ENVIRONMENT": "testing",
    }
    for k, v in env.items():
        monkeypatch.setenv(k, v)

    clear_settings_cache()
    yield
    clear_settings_cache()


class FakeSearchTransport:
    """Search transport answering from a callable and recording every call"""

    def __init__(
        self, responder: Callable[[str, list[str], int], SearchResponse]
    ) -> None:
        self.responder = responder
        self.calls: list[tuple[str, list[str], int]] = []

    async def search(
        self, jql: str, fields: list[str], max_results: int
    ) -> SearchResponse:
        self.calls.append((jql, list(fields), max_results))
        return self.responder(jql, fields, max_results)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def retry_policy(recording_sleep: RecordingSleep) -> RetryPolicy:
    return RetryPolicy(
        max_retries=3, base_delay=1.0, backoff_multiplier=2.0, sleep=recording_sleep
    )


@pytest.fixture
def mapping() -> CustomFieldMapping:
    return CustomFieldMapping()


def make_issue(
    key: str,
    *,
    start: Any = "2024-02-01T09:00:00.000+0000",
    end: Any = None,
    summary: str | None = "Site visit",
    **extra_fields: Any,
) -> dict[str, Any]:
    fields: dict[str, Any] = {"summary": summary, START_FIELD: start}
    if end is not None:
        fields[END_FIELD] = end
    fields.update(extra_fields)
    return {"id": key.split("-")[-1], "key": key, "fields": fields}


def make_event(
    event_id: str, start: datetime, end: datetime, **kwargs: Any
) -> VisitEvent:
    return VisitEvent(
        id=event_id,
        key=f"VIS-{event_id}",
        start_time=start,
        end_time=end,
        **kwargs,
    )


@pytest.fixture
def issue_factory() -> Callable[..., dict[str, Any]]:
    return make_issue


@pytest.fixture
def event_factory() -> Callable[..., VisitEvent]:
    return make_event


@pytest.fixture
def transport_factory() -> type[FakeSearchTransport]:
    return FakeSearchTransport
