"""Jira REST integration helpers."""

from jira_calendar.integrations.jira.schemas import (
    CustomFieldInfo,
    ProjectPage,
    ProjectSummary,
    SearchResponse,
    WorkflowStatus,
    WorkItemTypeInfo,
)
from jira_calendar.integrations.jira.service import JiraService

__all__ = [
    "CustomFieldInfo",
    "JiraService",
    "ProjectPage",
    "ProjectSummary",
    "SearchResponse",
    "WorkItemTypeInfo",
    "WorkflowStatus",
]
