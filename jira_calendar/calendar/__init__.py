"""Visit calendar core: ingestion, grids, row packing and batched fetching."""

from jira_calendar.calendar.admin_settings import (
    CalendarSettings,
    CustomFieldMapping,
    InMemorySettingsStore,
    JsonFileSettingsStore,
    SettingsStore,
)
from jira_calendar.calendar.fetcher import BatchFetchOrchestrator
from jira_calendar.calendar.grid import build_month_grid, build_week_grid
from jira_calendar.calendar.ingestion import VisitIngestionPipeline, ingest
from jira_calendar.calendar.models import (
    RowAssignment,
    StatusCategory,
    ViewMode,
    VisitEvent,
)
from jira_calendar.calendar.packer import assign_month_rows, assign_week_rows
from jira_calendar.calendar.service import CalendarService

__all__ = [
    "BatchFetchOrchestrator",
    "CalendarService",
    "CalendarSettings",
    "CustomFieldMapping",
    "InMemorySettingsStore",
    "JsonFileSettingsStore",
    "RowAssignment",
    "SettingsStore",
    "StatusCategory",
    "ViewMode",
    "VisitEvent",
    "VisitIngestionPipeline",
    "assign_month_rows",
    "assign_week_rows",
    "build_month_grid",
    "build_week_grid",
    "ingest",
]
