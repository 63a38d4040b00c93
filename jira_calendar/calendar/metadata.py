"""
Jira metadata lookups used by the admin configuration screens

Projects, workflow statuses, custom fields and work-item types. Every call
goes through the shared retry policy.
"""

from __future__ import annotations

from typing import Any, Protocol

from jira_calendar.integrations.jira.schemas import (
    CustomFieldInfo,
    ProjectPage,
    ProjectSummary,
    WorkflowStatus,
    WorkItemTypeInfo,
)
from jira_calendar.utils.errors import CalendarError, ErrorCode, JiraAPIError
from jira_calendar.utils.mixins import LoggerMixin
from jira_calendar.utils.retry import RetryPolicy

PROJECT_PAGE_SIZE = 50
MAX_PROJECT_PAGES = 20
MAX_PROJECTS = 1000

PROJECT_TYPE_SERVICE_DESK = "JSM"
PROJECT_TYPE_SOFTWARE = "Jira"


class MetadataTransport(Protocol):
    async def server_info(self) -> dict[str, Any]: ...

    async def project_search(
        self, start_at: int, max_results: int
    ) -> dict[str, Any]: ...

    async def project(self, project_key: str) -> dict[str, Any]: ...

    async def project_statuses(self, project_key: str) -> list[dict[str, Any]]: ...

    async def fields(self) -> list[dict[str, Any]]: ...

    async def service_desk_request_types(self, project_id: str) -> dict[str, Any]: ...


def issue_url(base_url: str, issue_key: str) -> str:
    """Browse link for an issue"""
    return f"{base_url.rstrip('/')}/browse/{issue_key}"


def _type_matches(issue_type_name: str, request_type: str | None) -> bool:
    if not request_type:
        return True
    return (
        issue_type_name == request_type
        or request_type in issue_type_name
        or issue_type_name in request_type
    )


class JiraMetadataClient(LoggerMixin):
    """Admin-facing lookups against the Jira REST API"""

    def __init__(
        self, transport: MetadataTransport, retry_policy: RetryPolicy | None = None
    ) -> None:
        self.transport = transport
        self.retry_policy = retry_policy or RetryPolicy()

    async def get_base_url(self) -> str:
        data = await self.retry_policy.call(self.transport.server_info)
        base_url = data.get("baseUrl") if isinstance(data, dict) else None
        if not base_url:
            raise CalendarError(
                "Jira server info has no base URL", ErrorCode.CONFIGURATION_ERROR
            )
        return str(base_url)

    async def search_projects(self) -> list[ProjectSummary]:
        """Every visible project, deduplicated by id and sorted by name"""
        projects: dict[str, ProjectSummary] = {}
        start_at = 0

        for _ in range(MAX_PROJECT_PAGES):
            raw = await self.retry_policy.call(
                self.transport.project_search, start_at, PROJECT_PAGE_SIZE
            )
            page = ProjectPage.model_validate(raw or {})
            for project in page.values:
                projects[project.id] = project

            if page.total is not None:
                start_at += PROJECT_PAGE_SIZE
                has_more = start_at < page.total
            elif page.is_last is not None:
                has_more = not page.is_last
                start_at += PROJECT_PAGE_SIZE
            else:
                has_more = len(page.values) == PROJECT_PAGE_SIZE
                start_at += PROJECT_PAGE_SIZE

            if len(projects) >= MAX_PROJECTS:
                self.logger.warning(
                    "Reached project safety limit", limit=MAX_PROJECTS
                )
                break
            if not has_more:
                break

        self.logger.info("Fetched projects", count=len(projects))
        return sorted(projects.values(), key=lambda p: p.name.lower())

    async def fetch_workflow_statuses(
        self, project_key: str, request_type: str | None = None
    ) -> list[WorkflowStatus]:
        """Distinct statuses across the project's issue types"""
        data = await self.retry_policy.call(
            self.transport.project_statuses, project_key
        )
        statuses: dict[str, WorkflowStatus] = {}
        for issue_type in data if isinstance(data, list) else []:
            if not isinstance(issue_type, dict):
                continue
            if not _type_matches(str(issue_type.get("name") or ""), request_type):
                continue
            for status in issue_type.get("statuses") or []:
                status_id = str(status.get("id"))
                if status_id in statuses:
                    continue
                category = status.get("statusCategory") or {}
                statuses[status_id] = WorkflowStatus(
                    id=status_id,
                    name=status.get("name", ""),
                    category=category.get("key") or "undefined",
                    category_name=category.get("name") or "Unknown",
                )
        return list(statuses.values())

    async def fetch_custom_fields(self) -> list[CustomFieldInfo]:
        data = await self.retry_policy.call(self.transport.fields)
        fields = [
            CustomFieldInfo(
                id=field["id"],
                name=field.get("name", ""),
                type=(field.get("schema") or {}).get("type") or "unknown",
            )
            for field in (data if isinstance(data, list) else [])
            if isinstance(field, dict)
            and str(field.get("id", "")).startswith("customfield_")
        ]
        return sorted(fields, key=lambda f: f.name.lower())

    async def fetch_issue_types(self, project_key: str) -> list[WorkItemTypeInfo]:
        project = await self.retry_policy.call(self.transport.project, project_key)
        issue_types = [
            WorkItemTypeInfo(
                id=str(item.get("id")),
                name=item.get("name", ""),
                description=item.get("description") or "",
                type="issueType",
            )
            for item in project.get("issueTypes") or []
        ]
        return sorted(issue_types, key=lambda t: t.name.lower())

    async def fetch_request_types(
        self, project_key: str
    ) -> list[WorkItemTypeInfo] | None:
        """Service desk request types, or None for a non service desk project"""
        project = await self.retry_policy.call(self.transport.project, project_key)
        data = await self._service_desk_request_types(project, project_key)
        if data is None:
            return None
        request_types = [
            WorkItemTypeInfo(
                id=str(item.get("id")),
                name=item.get("name", ""),
                description=item.get("description") or "",
                type="requestType",
            )
            for item in data.get("values") or []
        ]
        return sorted(request_types, key=lambda t: t.name.lower())

    async def detect_project_type(self, project_key: str) -> str:
        project = await self.retry_policy.call(self.transport.project, project_key)
        data = await self._service_desk_request_types(project, project_key)
        return PROJECT_TYPE_SOFTWARE if data is None else PROJECT_TYPE_SERVICE_DESK

    async def _service_desk_request_types(
        self, project: dict[str, Any], project_key: str
    ) -> dict[str, Any] | None:
        try:
            data = await self.retry_policy.call(
                self.transport.service_desk_request_types, str(project.get("id"))
            )
        except JiraAPIError as e:
            self.logger.info(
                "Service desk API not available for project",
                project_key=project_key,
                status=e.status,
            )
            return None
        return data if isinstance(data, dict) else {}
