"""Tests for the retry policy"""

import asyncio

import aiohttp
import pytest

from jira_calendar.config import Settings
from jira_calendar.utils.errors import CalendarError, JiraAPIError
from jira_calendar.utils.retry import RetryPolicy, is_retryable


class FlakyCall:
    """Fails with the given errors in order, then returns ``result``"""

    def __init__(self, *errors: BaseException, result: str = "ok") -> None:
        self.errors = list(errors)
        self.result = result
        self.attempts = 0

    async def __call__(self) -> str:
        self.attempts += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (JiraAPIError(429), True),
        (JiraAPIError(500), True),
        (JiraAPIError(503), True),
        (JiraAPIError(400), False),
        (JiraAPIError(404), False),
        (CalendarError("bad config"), False),
        (aiohttp.ClientConnectionError(), True),
        (asyncio.TimeoutError(), True),
        (ValueError("boom"), False),
    ],
)
def test_is_retryable(error, expected):
    assert is_retryable(error) is expected


@pytest.mark.asyncio
async def test_not_found_is_attempted_once(retry_policy, recording_sleep):
    call = FlakyCall(JiraAPIError(404))

    with pytest.raises(JiraAPIError) as exc_info:
        await retry_policy.call(call)

    assert exc_info.value.status == 404
    assert call.attempts == 1
    assert recording_sleep.delays == []


@pytest.mark.asyncio
async def test_rate_limit_retried_with_increasing_delays(retry_policy, recording_sleep):
    call = FlakyCall(*(JiraAPIError(429) for _ in range(10)))

    with pytest.raises(JiraAPIError) as exc_info:
        await retry_policy.call(call)

    assert exc_info.value.status == 429
    assert call.attempts == 4
    assert recording_sleep.delays == [1.0, 2.0, 4.0]


@pytest.mark.asyncio
async def test_recovers_after_transient_failures(retry_policy, recording_sleep):
    call = FlakyCall(JiraAPIError(502), aiohttp.ServerDisconnectedError())

    assert await retry_policy.call(call) == "ok"
    assert call.attempts == 3
    assert recording_sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_arguments_are_forwarded(retry_policy):
    async def add(a, b, *, c):
        return a + b + c

    assert await retry_policy.call(add, 1, 2, c=3) == 6


def test_delay_for():
    policy = RetryPolicy(base_delay=0.5, backoff_multiplier=3)
    assert [policy.delay_for(n) for n in (1, 2, 3)] == [0.5, 1.5, 4.5]


@pytest.mark.asyncio
async def test_call_sleeps_by_delay_for(recording_sleep):
    policy = RetryPolicy(
        max_retries=3, base_delay=0.5, backoff_multiplier=3, sleep=recording_sleep
    )
    flaky = FlakyCall(JiraAPIError(503), JiraAPIError(502), JiraAPIError(429))

    assert await policy.call(flaky) == "ok"
    assert recording_sleep.delays == [0.5, 1.5, 4.5]


def test_from_settings():
    policy = RetryPolicy.from_settings(
        Settings(max_retries=5, retry_base_delay=0.2, retry_backoff_multiplier=4)
    )
    assert (policy.max_retries, policy.base_delay, policy.backoff_multiplier) == (
        5,
        0.2,
        4,
    )
