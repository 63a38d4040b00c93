"""
Visit ingestion pipeline

Turns raw Jira issues returned by the search API into canonical
``VisitEvent`` records. This is the only place raw issue shapes are
inspected; everything downstream works on the typed model.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from pydantic import ValidationError

from jira_calendar.calendar.admin_settings import CustomFieldMapping
from jira_calendar.calendar.models import (
    CustomFieldValue,
    IngestionResult,
    StatusCategory,
    VisitEvent,
)
from jira_calendar.calendar.normalizer import normalize_field_value
from jira_calendar.utils.dates import parse_datetime
from jira_calendar.utils.mixins import LoggerMixin

DEFAULT_SUMMARY = "Untitled Visit"
DEFAULT_STATUS = "Open"

# Summaries hinting at a visit that lasts several days
MULTI_DAY_KEYWORDS = (
    "week",
    "day",
    "month",
    "installation",
    "project",
    "migration",
    "training",
    "deployment",
    "implementation",
)

MULTI_DAY_DURATION = timedelta(days=2)
SINGLE_VISIT_DURATION = timedelta(hours=1)
MAX_DROP_SAMPLES = 5


def flatten_description(description: Any) -> str:
    """Plain text of a description given as a string or an ADF document.

    Text runs inside each paragraph block are concatenated, blank paragraphs
    are skipped and paragraphs are separated by a blank line.
    """
    if not description:
        return ""
    if isinstance(description, str):
        return description
    if not isinstance(description, dict):
        return ""

    blocks = description.get("content")
    if not isinstance(blocks, list):
        return ""

    paragraphs: list[str] = []
    for block in blocks:
        if not isinstance(block, dict) or block.get("type") != "paragraph":
            continue
        runs = block.get("content")
        if not isinstance(runs, list):
            continue
        text = "".join(
            run["text"]
            for run in runs
            if isinstance(run, dict) and isinstance(run.get("text"), str)
        )
        if text.strip():
            paragraphs.append(text)
    return "\n\n".join(paragraphs)


class VisitIngestionPipeline(LoggerMixin):
    """Raw Jira issues -> VisitEvent list"""

    def __init__(self, multi_day_keywords: tuple[str, ...] = MULTI_DAY_KEYWORDS):
        self.multi_day_keywords = tuple(k.lower() for k in multi_day_keywords)

    def ingest(
        self, issues: list[dict[str, Any]], mapping: CustomFieldMapping
    ) -> IngestionResult:
        """Convert every issue, dropping those without a usable start time"""
        events: list[VisitEvent] = []
        dropped_keys: list[str] = []

        for issue in issues:
            event = self.convert(issue, mapping)
            if event is None:
                dropped_keys.append(self._issue_key(issue))
                continue
            events.append(event)

        result = IngestionResult(
            events=events,
            total=len(issues),
            valid=len(events),
            dropped=len(dropped_keys),
            dropped_keys=dropped_keys,
        )
        self.logger.info(
            "Processed events",
            total=result.total,
            valid=result.valid,
            dropped=result.dropped,
        )
        if 0 < result.dropped <= MAX_DROP_SAMPLES:
            self.logger.warning("Dropped event samples", keys=dropped_keys)
        return result

    def convert(self, issue: Any, mapping: CustomFieldMapping) -> VisitEvent | None:
        """Build one event, or None when the issue has no usable start"""
        if not isinstance(issue, dict) or not isinstance(issue.get("fields"), dict):
            self.logger.warning(
                "Skipping malformed issue", issue_key=self._issue_key(issue)
            )
            return None

        fields: dict[str, Any] = issue["fields"]
        key = self._issue_key(issue)

        start = parse_datetime(fields.get(mapping.time_of_visit))
        if start is None:
            self.logger.warning("Skipping event: no valid start time", issue_key=key)
            return None

        summary = fields.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            summary = DEFAULT_SUMMARY

        end = parse_datetime(fields.get(mapping.end_time))
        inferred = end is None or end < start
        if inferred:
            end = self.infer_end_time(start, summary)

        status_name, status_category = self._status(fields.get("status"))

        custom_fields = {
            extra.id: CustomFieldValue(
                label=extra.label,
                value=normalize_field_value(fields.get(extra.jira_field_id)),
            )
            for extra in mapping.additional_fields
        }

        try:
            return VisitEvent(
                id=str(issue.get("id") or key),
                key=key,
                summary=summary,
                description=flatten_description(fields.get("description")),
                status=status_name,
                status_category=status_category,
                start_time=start,
                end_time=end,
                end_time_inferred=inferred,
                assignee=self._assignee(fields.get("assignee")),
                site=normalize_field_value(fields.get(mapping.site)),
                visit_type=normalize_field_value(fields.get(mapping.type_of_visit)),
                visitor_name=normalize_field_value(fields.get(mapping.visitor_name)),
                custom_fields=custom_fields,
            )
        except ValidationError as e:
            self.logger.warning("Skipping invalid event", issue_key=key, error=str(e))
            return None

    def infer_end_time(self, start: datetime, summary: str) -> datetime:
        """Estimated end for issues without an explicit end field"""
        if self.is_likely_multi_day(summary):
            return start + MULTI_DAY_DURATION
        return start + SINGLE_VISIT_DURATION

    def is_likely_multi_day(self, summary: str) -> bool:
        lowered = summary.lower()
        return any(keyword in lowered for keyword in self.multi_day_keywords)

    @staticmethod
    def _status(status: Any) -> tuple[str, StatusCategory]:
        if not isinstance(status, dict):
            return DEFAULT_STATUS, StatusCategory.UNDEFINED
        name = status.get("name") or DEFAULT_STATUS
        category = status.get("statusCategory")
        category_key = category.get("key") if isinstance(category, dict) else None
        return str(name), StatusCategory.from_key(category_key)

    @staticmethod
    def _assignee(assignee: Any) -> str:
        if isinstance(assignee, dict):
            return str(assignee.get("displayName") or "")
        return ""

    @staticmethod
    def _issue_key(issue: Any) -> str:
        if isinstance(issue, dict):
            return str(issue.get("key") or issue.get("id") or "unknown")
        return "unknown"


def ingest(
    issues: list[dict[str, Any]], mapping: CustomFieldMapping
) -> IngestionResult:
    """Convenience wrapper around ``VisitIngestionPipeline.ingest``"""
    return VisitIngestionPipeline().ingest(issues, mapping)
