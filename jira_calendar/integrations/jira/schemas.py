"""Typed data objects for the Jira REST integration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SearchResponse(BaseModel):
    """Result of one search call: raw issues plus the HTTP status"""

    status: int = 200
    issues: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def keys(self) -> list[str]:
        return [
            issue["key"]
            for issue in self.issues
            if isinstance(issue, dict) and issue.get("key")
        ]


class ProjectSummary(BaseModel):
    """Project entry returned by the project search API."""

    model_config = ConfigDict(extra="ignore")

    id: str
    key: str
    name: str = ""


class ProjectPage(BaseModel):
    """One page of ``/rest/api/3/project/search``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    values: list[ProjectSummary] = Field(default_factory=list)
    total: int | None = None
    is_last: bool | None = Field(default=None, alias="isLast")


class WorkflowStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    category: str = "undefined"
    category_name: str = Field(default="Unknown", alias="categoryName")


class CustomFieldInfo(BaseModel):
    id: str
    name: str
    type: str = "unknown"


class WorkItemTypeInfo(BaseModel):
    """Request type or issue type offered by a project"""

    id: str
    name: str
    description: str = ""
    type: str = "issueType"
