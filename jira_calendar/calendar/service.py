"""End-to-end retrieval of visit events."""

from __future__ import annotations

from jira_calendar.calendar.admin_settings import (
    SettingsStore,
    load_settings_or_default,
)
from jira_calendar.calendar.fetcher import BatchFetchOrchestrator
from jira_calendar.calendar.ingestion import VisitIngestionPipeline
from jira_calendar.calendar.models import VisitEvent
from jira_calendar.calendar.query import build_jql, requested_fields
from jira_calendar.utils.mixins import LoggerMixin


class CalendarService(LoggerMixin):
    """Settings -> JQL -> batched search -> canonical events"""

    def __init__(
        self,
        settings_store: SettingsStore,
        fetcher: BatchFetchOrchestrator,
        pipeline: VisitIngestionPipeline | None = None,
    ) -> None:
        self.settings_store = settings_store
        self.fetcher = fetcher
        self.pipeline = pipeline or VisitIngestionPipeline()

    async def fetch_visit_requests(
        self, start_date: str | None = None, end_date: str | None = None
    ) -> list[VisitEvent]:
        """Visits whose start falls between the two YYYY-MM-DD dates.

        Without dates the last 365 days are searched.
        """
        settings = await load_settings_or_default(self.settings_store)
        self.logger.debug(
            "Fetching visit requests",
            projects=settings.projects,
            work_item_types=len(settings.request_types_with_projects),
            start_date=start_date,
            end_date=end_date,
        )

        jql = build_jql(settings, start_date, end_date)
        fields = requested_fields(settings.custom_fields)
        issues = await self.fetcher.fetch_all(jql, fields)
        if not issues:
            self.logger.info("No issues found matching query")
            return []

        result = self.pipeline.ingest(issues, settings.custom_fields)
        self.logger.info("Returning events", count=result.valid)
        return result.events
