"""
Calendar data models

Canonical visit events produced by the ingestion pipeline and the grid/layout
structures derived from them for the month and week views.
"""

from datetime import date as date_type
from datetime import UTC, datetime, tzinfo
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    model_validator,
)

from jira_calendar.utils.dates import format_datetime, iter_days, to_date


class StatusCategory(str, Enum):
    """Jira status category keys used for colour coding"""

    NEW = "new"
    INDETERMINATE = "indeterminate"
    DONE = "done"
    UNDEFINED = "undefined"

    @classmethod
    def from_key(cls, key: Any) -> "StatusCategory":
        """Map a raw statusCategory key, falling back to UNDEFINED"""
        try:
            return cls(str(key).lower())
        except ValueError:
            return cls.UNDEFINED


class ViewMode(str, Enum):
    """Calendar view modes"""

    WEEK = "week"
    MONTH = "month"


class CustomFieldValue(BaseModel):
    """Value of an administrator-configured additional field"""

    model_config = ConfigDict(frozen=True)

    label: str
    value: str = ""


class VisitEvent(BaseModel):
    """Canonical visit event served to the frontend"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    key: str
    summary: str = "Untitled Visit"
    description: str = ""
    status: str = "Open"
    status_category: StatusCategory = Field(
        default=StatusCategory.UNDEFINED, alias="statusCategory"
    )
    start_time: datetime = Field(alias="startTime")
    end_time: datetime = Field(alias="endTime")
    end_time_inferred: bool = Field(default=False, alias="endTimeInferred")
    assignee: str = ""
    site: str = ""
    visit_type: str = Field(default="", alias="visitType")
    visitor_name: str = Field(default="", alias="visitorName")
    custom_fields: dict[str, CustomFieldValue] = Field(
        default_factory=dict, alias="customFields"
    )

    @model_validator(mode="after")
    def _check_time_order(self) -> "VisitEvent":
        if self.start_time.tzinfo is None or self.end_time.tzinfo is None:
            raise ValueError("startTime and endTime must be timezone-aware")
        if self.end_time < self.start_time:
            raise ValueError("endTime must not be before startTime")
        return self

    @field_serializer("start_time", "end_time")
    def serialize_timestamp(self, value: datetime) -> str | None:
        """Wire format: ISO 8601, millisecond precision, UTC marker"""
        return format_datetime(value)

    @property
    def start_date(self) -> date_type:
        return to_date(self.start_time)

    @property
    def end_date(self) -> date_type:
        return to_date(self.end_time)

    @property
    def is_multi_day(self) -> bool:
        """True when start and end fall on different calendar days"""
        return self.end_date > self.start_date

    def local_start_date(self, tz: tzinfo = UTC) -> date_type:
        return to_date(self.start_time, tz)

    def local_end_date(self, tz: tzinfo = UTC) -> date_type:
        return to_date(self.end_time, tz)

    def day_span(self, tz: tzinfo = UTC) -> list[date_type]:
        """Inclusive list of calendar days covered by the event in ``tz``"""
        return list(iter_days(self.local_start_date(tz), self.local_end_date(tz)))

    def to_wire(self) -> dict[str, Any]:
        """Serialize with the camelCase keys the frontend expects"""
        return self.model_dump(by_alias=True, mode="json")


class IngestionResult(BaseModel):
    """Events produced by one ingestion run with its outcome counts"""

    events: list[VisitEvent] = Field(default_factory=list)
    total: int = 0
    valid: int = 0
    dropped: int = 0
    dropped_keys: list[str] = Field(default_factory=list)


class CalendarCell(BaseModel):
    """One day in a calendar grid"""

    model_config = ConfigDict(frozen=True)

    date: date_type
    faded: bool = False
    is_today: bool = False


class MonthGrid(BaseModel):
    """Week-major matrix covering one month, padded to full Monday-Sunday rows"""

    model_config = ConfigDict(frozen=True)

    year: int
    month: int
    weeks: list[list[CalendarCell]]

    @property
    def cells(self) -> list[CalendarCell]:
        return [cell for week in self.weeks for cell in week]

    @property
    def first_day(self) -> date_type:
        return self.weeks[0][0].date

    @property
    def last_day(self) -> date_type:
        return self.weeks[-1][-1].date


class WeekGrid(BaseModel):
    """Consecutive days of one week starting on Monday"""

    model_config = ConfigDict(frozen=True)

    days: list[CalendarCell]

    @property
    def first_day(self) -> date_type:
        return self.days[0].date

    @property
    def last_day(self) -> date_type:
        return self.days[-1].date


class WeekSegment(BaseModel):
    """Horizontal placement of a multi-day bar inside one week row"""

    model_config = ConfigDict(frozen=True)

    event_id: str
    week_index: int
    first_index: int
    width: int
    row: int

    @property
    def width_percent(self) -> float:
        return self.width / 7 * 100


class RowAssignment(BaseModel):
    """Display rows computed for one render pass.

    ``rows`` maps event id to row index. ``max_row_by_day`` and
    ``max_row_by_bucket`` hold the highest row index in use per calendar day
    and per bucket (week row in the month view, start hour in the week view).
    """

    rows: dict[str, int] = Field(default_factory=dict)
    max_row_by_day: dict[date_type, int] = Field(default_factory=dict)
    max_row_by_bucket: dict[int, int] = Field(default_factory=dict)
    bucket_of: dict[str, int] = Field(default_factory=dict)

    def row_of(self, event_id: str) -> int | None:
        return self.rows.get(event_id)

    def row_count(self, bucket: int) -> int:
        """Number of rows a bucket needs (0 when empty)"""
        highest = self.max_row_by_bucket.get(bucket)
        return 0 if highest is None else highest + 1
