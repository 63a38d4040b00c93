"""
Exponential-backoff retry policy for Jira REST calls.

Rate limiting (429), server errors (5xx) and transport failures are retried;
any other client error is raised on the first attempt. Exhausting the retry
budget re-raises the last error.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

import aiohttp
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
)

from jira_calendar.config import Settings
from jira_calendar.utils.errors import CalendarError

logger = structlog.get_logger(__name__)

T = TypeVar("T")
SleepFunc = Callable[[float], Awaitable[None]]


def is_retryable(exception: BaseException) -> bool:
    """Return True when the failure is transient and worth another attempt"""
    if isinstance(exception, CalendarError):
        return exception.retryable
    return isinstance(exception, aiohttp.ClientError | asyncio.TimeoutError)


def _log_retry(retry_state: RetryCallState) -> None:
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        "Retrying Jira request",
        attempt=retry_state.attempt_number,
        delay_seconds=delay,
        error=str(exception),
    )


@dataclass
class RetryPolicy:
    """Retry settings shared by every network call"""

    max_retries: int = 3
    base_delay: float = 1.0
    backoff_multiplier: float = 2.0
    sleep: SleepFunc = field(default=asyncio.sleep, repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryPolicy:
        return cls(
            max_retries=settings.max_retries,
            base_delay=settings.retry_base_delay,
            backoff_multiplier=settings.retry_backoff_multiplier,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)"""
        return self.base_delay * self.backoff_multiplier ** (attempt - 1)

    async def call(
        self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any
    ) -> T:
        """Run ``func`` under this policy"""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=lambda retry_state: self.delay_for(retry_state.attempt_number),
            retry=retry_if_exception(is_retryable),
            before_sleep=_log_retry,
            sleep=self.sleep,
            reraise=True,
        )
        return await retrying(func, *args, **kwargs)
