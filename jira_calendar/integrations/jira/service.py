"""HTTP helpers for the Jira Cloud REST API."""

from __future__ import annotations

from typing import Any

import aiohttp

from jira_calendar.config import Settings, get_settings
from jira_calendar.integrations.jira.schemas import SearchResponse
from jira_calendar.utils.errors import CalendarError, ErrorCode, JiraAPIError
from jira_calendar.utils.mixins import LoggerMixin

SEARCH_PATH = "/rest/api/3/search/jql"


class JiraService(LoggerMixin):
    """Wrapper around the Jira REST API.

    Non-2xx responses raise ``JiraAPIError`` carrying the status so the retry
    policy can tell rate limiting and server errors from client errors.
    """

    def __init__(
        self,
        base_url: str,
        *,
        email: str | None = None,
        api_token: str | None = None,
        timeout_seconds: int = 30,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._auth = (
            aiohttp.BasicAuth(email, api_token) if email and api_token else None
        )
        self._session: aiohttp.ClientSession | None = None

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> JiraService:
        settings = settings or get_settings()
        if not settings.jira_base_url:
            raise CalendarError(
                "JIRA_BASE_URL is not configured", ErrorCode.CONFIGURATION_ERROR
            )
        token = settings.jira_api_token
        return cls(
            settings.jira_base_url,
            email=settings.jira_email,
            api_token=token.get_secret_value() if token else None,
            timeout_seconds=settings.request_timeout_seconds,
        )

    async def get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                },
                auth=self._auth,
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> JiraService:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def search(
        self, jql: str, fields: list[str], max_results: int
    ) -> SearchResponse:
        """Run a JQL search and return the raw issues"""
        payload = await self._request_json(
            "POST",
            SEARCH_PATH,
            json={"jql": jql, "fields": fields, "maxResults": max_results},
        )
        issues = payload.get("issues", []) if isinstance(payload, dict) else []
        return SearchResponse(
            status=200, issues=[i for i in issues if isinstance(i, dict)]
        )

    async def server_info(self) -> dict[str, Any]:
        return await self._request_json("GET", "/rest/api/3/serverInfo")

    async def project_search(self, start_at: int, max_results: int) -> dict[str, Any]:
        return await self._request_json(
            "GET",
            "/rest/api/3/project/search",
            params={
                "startAt": start_at,
                "maxResults": max_results,
                "orderBy": "name",
            },
        )

    async def project(self, project_key: str) -> dict[str, Any]:
        return await self._request_json("GET", f"/rest/api/3/project/{project_key}")

    async def project_statuses(self, project_key: str) -> list[dict[str, Any]]:
        return await self._request_json(
            "GET", f"/rest/api/3/project/{project_key}/statuses"
        )

    async def fields(self) -> list[dict[str, Any]]:
        return await self._request_json("GET", "/rest/api/3/field")

    async def service_desk_request_types(self, project_id: str) -> dict[str, Any]:
        return await self._request_json(
            "GET", f"/rest/servicedeskapi/servicedesk/{project_id}/requesttype"
        )

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        session = await self.get_session()
        url = f"{self.base_url}{path}"
        async with session.request(method, url, params=params, json=json) as resp:
            if not 200 <= resp.status < 300:
                body = await resp.text()
                self.logger.error(
                    "Jira API request failed",
                    url=url,
                    status=resp.status,
                    body=body[:500],
                )
                raise JiraAPIError(
                    resp.status, f"Jira API request failed: HTTP {resp.status}"
                )
            try:
                return await resp.json()
            except aiohttp.ContentTypeError:
                self.logger.debug("Jira API returned non-JSON response", url=url)
                return None
