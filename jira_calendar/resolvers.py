"""
Named resolvers called by the calendar frontend and the admin page

Each resolver takes a payload dict and returns ``{"success": True, ...}`` or
an error envelope carrying a stable ``errorCode``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from jira_calendar.calendar.admin_settings import (
    CalendarSettings,
    JsonFileSettingsStore,
    SettingsStore,
    load_settings_or_default,
)
from jira_calendar.calendar.fetcher import BatchFetchOrchestrator
from jira_calendar.calendar.metadata import (
    PROJECT_TYPE_SERVICE_DESK,
    JiraMetadataClient,
)
from jira_calendar.calendar.service import CalendarService
from jira_calendar.config import Settings, get_settings
from jira_calendar.integrations.jira import JiraService
from jira_calendar.utils.errors import CalendarError, ErrorCode, error_envelope
from jira_calendar.utils.retry import RetryPolicy

Payload = dict[str, Any]
Resolver = Callable[[Payload], Awaitable[dict[str, Any]]]


class ResolverRegistry:
    """Map resolver names to async handlers."""

    def __init__(self) -> None:
        self._registry: dict[str, Resolver] = {}

    def register(self, name: str, handler: Resolver) -> None:
        self._registry[name] = handler

    def unregister(self, name: str) -> None:
        self._registry.pop(name, None)

    def get(self, name: str) -> Resolver | None:
        return self._registry.get(name)

    def available(self) -> list[str]:
        return sorted(self._registry)

    async def invoke(self, name: str, payload: Payload | None = None) -> dict[str, Any]:
        """Run the resolver registered under ``name``"""
        handler = self._registry.get(name)
        if handler is None:
            raise KeyError(f"Resolver '{name}' is not registered")
        return await handler(payload or {})


def _require_project_key(payload: Payload) -> str:
    project_key = payload.get("projectKey")
    if not project_key:
        raise CalendarError("Project key is required", ErrorCode.CONFIGURATION_ERROR)
    return str(project_key)


def build_registry(
    calendar_service: CalendarService,
    metadata: JiraMetadataClient,
    settings_store: SettingsStore,
) -> ResolverRegistry:
    """Registry with every calendar and admin resolver bound to its services"""
    registry = ResolverRegistry()

    @error_envelope("fetch visit requests", ErrorCode.FETCH_VISITS_ERROR)
    async def get_visit_requests(payload: Payload) -> dict[str, Any]:
        events = await calendar_service.fetch_visit_requests(
            payload.get("startDate"), payload.get("endDate")
        )
        return {"success": True, "data": [event.to_wire() for event in events]}

    @error_envelope("fetch Jira base URL", ErrorCode.NETWORK_ERROR)
    async def get_jira_base_url(payload: Payload) -> dict[str, Any]:
        return {"success": True, "baseUrl": await metadata.get_base_url()}

    @error_envelope("load admin settings", ErrorCode.LOAD_SETTINGS_ERROR)
    async def get_admin_settings(payload: Payload) -> dict[str, Any]:
        settings = await load_settings_or_default(settings_store)
        return {"success": True, "settings": settings.to_storage()}

    @error_envelope("save admin settings", ErrorCode.SAVE_SETTINGS_ERROR)
    async def save_admin_settings(payload: Payload) -> dict[str, Any]:
        raw = payload.get("settings")
        if not raw:
            raise CalendarError(
                "Settings object is required", ErrorCode.SAVE_SETTINGS_ERROR
            )
        await settings_store.save(CalendarSettings.model_validate(raw))
        return {"success": True, "message": "Settings saved successfully"}

    @error_envelope("fetch workflow statuses", ErrorCode.FETCH_FIELDS_ERROR)
    async def fetch_workflow_statuses(payload: Payload) -> dict[str, Any]:
        statuses = await metadata.fetch_workflow_statuses(
            _require_project_key(payload), payload.get("requestType")
        )
        return {
            "success": True,
            "statuses": [s.model_dump(by_alias=True) for s in statuses],
        }

    @error_envelope("fetch custom fields", ErrorCode.FETCH_FIELDS_ERROR)
    async def fetch_custom_fields(payload: Payload) -> dict[str, Any]:
        fields = await metadata.fetch_custom_fields()
        return {"success": True, "customFields": [f.model_dump() for f in fields]}

    @error_envelope("search projects", ErrorCode.FETCH_PROJECTS_ERROR)
    async def search_projects(payload: Payload) -> dict[str, Any]:
        projects = await metadata.search_projects()
        return {"success": True, "projects": [p.model_dump() for p in projects]}

    @error_envelope("fetch request types", ErrorCode.FETCH_FIELDS_ERROR)
    async def fetch_request_types(payload: Payload) -> dict[str, Any]:
        request_types = await metadata.fetch_request_types(
            _require_project_key(payload)
        )
        if request_types is None:
            return {
                "success": False,
                "isServiceDesk": False,
                "error": "This is not a JSM project",
                "errorCode": ErrorCode.CONFIGURATION_ERROR.value,
            }
        return {
            "success": True,
            "isServiceDesk": True,
            "requestTypes": [t.model_dump() for t in request_types],
        }

    @error_envelope("fetch issue types", ErrorCode.FETCH_FIELDS_ERROR)
    async def fetch_issue_types(payload: Payload) -> dict[str, Any]:
        issue_types = await metadata.fetch_issue_types(_require_project_key(payload))
        return {"success": True, "issueTypes": [t.model_dump() for t in issue_types]}

    @error_envelope("detect project type", ErrorCode.FETCH_PROJECTS_ERROR)
    async def detect_project_type(payload: Payload) -> dict[str, Any]:
        project_type = await metadata.detect_project_type(
            _require_project_key(payload)
        )
        return {
            "success": True,
            "isServiceDesk": project_type == PROJECT_TYPE_SERVICE_DESK,
            "projectType": project_type,
        }

    registry.register("getVisitRequests", get_visit_requests)
    registry.register("getJiraBaseUrl", get_jira_base_url)
    registry.register("getAdminSettings", get_admin_settings)
    registry.register("saveAdminSettings", save_admin_settings)
    registry.register("fetchWorkflowStatuses", fetch_workflow_statuses)
    registry.register("fetchCustomFields", fetch_custom_fields)
    registry.register("searchProjects", search_projects)
    registry.register("fetchRequestTypes", fetch_request_types)
    registry.register("fetchIssueTypes", fetch_issue_types)
    registry.register("detectProjectType", detect_project_type)
    return registry


def create_registry(
    settings: Settings | None = None,
) -> tuple[ResolverRegistry, JiraService]:
    """Registry wired to a live Jira connection from process settings.

    The caller owns the returned ``JiraService`` and must close it.
    """
    settings = settings or get_settings()
    transport = JiraService.from_settings(settings)
    retry_policy = RetryPolicy.from_settings(settings)
    store = JsonFileSettingsStore(settings.settings_store_path)

    fetcher = BatchFetchOrchestrator.from_settings(transport, settings, retry_policy)
    calendar_service = CalendarService(store, fetcher)
    metadata = JiraMetadataClient(transport, retry_policy)
    return build_registry(calendar_service, metadata, store), transport
