"""
Batch fetch orchestrator

Two-phase search: one cheap request for the matching issue keys, then the
full field data in fixed-size key chunks fetched concurrently. A failed
chunk degrades to an empty result; only a failed key phase is fatal.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any, Protocol, TypeVar

from jira_calendar.config import Settings
from jira_calendar.integrations.jira.schemas import SearchResponse
from jira_calendar.utils.errors import JiraAPIError
from jira_calendar.utils.logger import log_api_usage
from jira_calendar.utils.mixins import LoggerMixin
from jira_calendar.utils.retry import RetryPolicy

T = TypeVar("T")

KEY_FIELDS = ["key"]
KEY_FETCH_LIMIT = 5000
BATCH_SIZE = 50
BATCH_MAX_RESULTS = 100


class SearchTransport(Protocol):
    async def search(
        self, jql: str, fields: list[str], max_results: int
    ) -> SearchResponse: ...


def chunk_list(items: Sequence[T], size: int) -> list[list[T]]:
    """Split ``items`` into consecutive chunks of at most ``size`` entries"""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def keys_jql(keys: Sequence[str]) -> str:
    return f"key in ({','.join(keys)})"


class BatchFetchOrchestrator(LoggerMixin):
    """Fetch every issue matching a JQL query in keyed batches"""

    def __init__(
        self,
        transport: SearchTransport,
        *,
        retry_policy: RetryPolicy | None = None,
        key_fetch_limit: int = KEY_FETCH_LIMIT,
        batch_size: int = BATCH_SIZE,
        batch_max_results: int = BATCH_MAX_RESULTS,
    ) -> None:
        self.transport = transport
        self.retry_policy = retry_policy or RetryPolicy()
        self.key_fetch_limit = key_fetch_limit
        self.batch_size = batch_size
        self.batch_max_results = batch_max_results

    @classmethod
    def from_settings(
        cls,
        transport: SearchTransport,
        settings: Settings,
        retry_policy: RetryPolicy | None = None,
    ) -> BatchFetchOrchestrator:
        return cls(
            transport,
            retry_policy=retry_policy or RetryPolicy.from_settings(settings),
            key_fetch_limit=settings.key_fetch_limit,
            batch_size=settings.batch_size,
            batch_max_results=settings.batch_max_results,
        )

    async def fetch_all(self, jql: str, fields: list[str]) -> list[dict[str, Any]]:
        """Return the raw issues matching ``jql`` with ``fields`` populated.

        Raises the last error when the key phase exhausts its retries.
        """
        self.logger.info("Fetching issue keys", jql=jql)
        keys = await self.fetch_keys(jql)
        self.logger.info("Issue keys fetched", count=len(keys))
        if not keys:
            return []

        batches = chunk_list(keys, self.batch_size)
        self.logger.info(
            "Fetching issue details",
            batches=len(batches),
            batch_size=self.batch_size,
        )
        results = await asyncio.gather(
            *(
                self._fetch_batch(index, len(batches), batch, fields)
                for index, batch in enumerate(batches, start=1)
            )
        )
        issues = [issue for batch_issues in results for issue in batch_issues]
        self.logger.info("Total issues fetched", count=len(issues))
        log_api_usage(
            "Jira search",
            {"keys": len(keys), "batches": len(batches), "issues": len(issues)},
        )
        return issues

    async def fetch_keys(self, jql: str) -> list[str]:
        response = await self.retry_policy.call(
            self._search, jql, KEY_FIELDS, self.key_fetch_limit
        )
        return response.keys()

    async def _fetch_batch(
        self, index: int, total: int, keys: list[str], fields: list[str]
    ) -> list[dict[str, Any]]:
        try:
            response = await self.retry_policy.call(
                self._search, keys_jql(keys), fields, self.batch_max_results
            )
        except Exception as e:
            self.logger.error(
                "Batch fetch failed", batch=index, batches=total, error=str(e)
            )
            return []
        self.logger.debug(
            "Batch fetched", batch=index, batches=total, count=len(response.issues)
        )
        return response.issues

    async def _search(
        self, jql: str, fields: list[str], max_results: int
    ) -> SearchResponse:
        response = await self.transport.search(jql, fields, max_results)
        if not response.ok:
            raise JiraAPIError(response.status)
        return response
