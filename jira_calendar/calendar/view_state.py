"""
Calendar view state

Anchor date, view mode and site filter for one calendar session, plus a
request-generation counter. A fetch started before the latest navigation is
stale on arrival and its result is discarded.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import UTC, date, datetime, time, timedelta, tzinfo

from pydantic import BaseModel, Field

from jira_calendar.calendar.grid import build_month_grid, build_week_grid
from jira_calendar.calendar.models import (
    MonthGrid,
    RowAssignment,
    ViewMode,
    VisitEvent,
    WeekGrid,
)
from jira_calendar.calendar.packer import assign_month_rows, assign_week_rows
from jira_calendar.config import Settings
from jira_calendar.utils.dates import add_months, month_range, start_of_week
from jira_calendar.utils.mixins import LoggerMixin

BUSINESS_DAYS = 5


class BusiestDay(BaseModel):
    day: str = ""
    count: int = 0


class ViewStats(BaseModel):
    total_visits: int = Field(default=0, serialization_alias="totalVisits")
    busiest_day: BusiestDay = Field(
        default_factory=BusiestDay, serialization_alias="busiestDay"
    )


def view_range(
    anchor: date,
    mode: ViewMode,
    week_days: int = BUSINESS_DAYS,
    tz: tzinfo = UTC,
) -> tuple[datetime, datetime]:
    """Visible range in ``tz``: the first ``week_days`` days from Monday of the
    anchor's week, or the anchor's whole month"""
    if mode == ViewMode.WEEK:
        monday = start_of_week(anchor)
        start = datetime.combine(monday, time.min, tzinfo=tz)
        last = monday + timedelta(days=week_days - 1)
        end = datetime.combine(last, time.max, tzinfo=tz)
        return start, end
    return month_range(anchor, tz)


def view_stats(
    events: Iterable[VisitEvent],
    anchor: date,
    mode: ViewMode,
    week_days: int = BUSINESS_DAYS,
    tz: tzinfo = UTC,
) -> ViewStats:
    """Visit count and busiest weekday among events starting in the view"""
    start, end = view_range(anchor, mode, week_days, tz)
    in_view = [event for event in events if start <= event.start_time <= end]

    counts = Counter(
        event.start_time.astimezone(tz).strftime("%A") for event in in_view
    )
    busiest = BusiestDay()
    # first weekday to reach the top count wins ties
    for day, count in counts.items():
        if count > busiest.count:
            busiest = BusiestDay(day=day, count=count)
    return ViewStats(total_visits=len(in_view), busiest_day=busiest)


def available_sites(events: Iterable[VisitEvent]) -> list[str]:
    """Distinct non-empty sites in first-seen order"""
    return list(dict.fromkeys(event.site for event in events if event.site))


def filter_by_site(events: Iterable[VisitEvent], site: str | None) -> list[VisitEvent]:
    if not site:
        return list(events)
    return [event for event in events if event.site == site]


class CalendarViewState(LoggerMixin):
    """Navigation state of one calendar session"""

    def __init__(
        self,
        anchor: date | None = None,
        mode: ViewMode = ViewMode.WEEK,
        week_days: int = BUSINESS_DAYS,
        tz: tzinfo = UTC,
    ) -> None:
        self.tz = tz
        self.anchor = anchor or datetime.now(tz).date()
        self.mode = mode
        self.week_days = week_days
        self.site: str | None = None
        self.events: list[VisitEvent] = []
        self._generation = 0

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        anchor: date | None = None,
        mode: ViewMode = ViewMode.WEEK,
        week_days: int = BUSINESS_DAYS,
    ) -> "CalendarViewState":
        return cls(anchor, mode, week_days, tz=settings.display_tz)

    @property
    def generation(self) -> int:
        return self._generation

    def begin_fetch(self) -> int:
        """Start a new fetch; earlier in-flight fetches become stale"""
        self._generation += 1
        return self._generation

    def accept_events(self, generation: int, events: list[VisitEvent]) -> bool:
        """Apply a fetch result unless a newer fetch has started since"""
        if generation != self._generation:
            self.logger.debug(
                "Discarding stale fetch result",
                generation=generation,
                current=self._generation,
            )
            return False
        self.events = list(events)
        return True

    def set_date(self, anchor: date) -> None:
        self.anchor = anchor

    def set_mode(self, mode: ViewMode) -> None:
        self.mode = ViewMode(mode)

    def set_site(self, site: str | None) -> None:
        self.site = site or None

    def navigate_prev(self) -> date:
        return self._shift(-1)

    def navigate_next(self) -> date:
        return self._shift(1)

    def _shift(self, step: int) -> date:
        if self.mode == ViewMode.WEEK:
            self.anchor = self.anchor + timedelta(days=7 * step)
        else:
            self.anchor = add_months(self.anchor, step)
        return self.anchor

    @property
    def visible_events(self) -> list[VisitEvent]:
        return filter_by_site(self.events, self.site)

    def grid(self, today: date | None = None) -> MonthGrid | WeekGrid:
        if self.mode == ViewMode.WEEK:
            return build_week_grid(self.anchor, days=self.week_days, today=today)
        return build_month_grid(self.anchor, today=today)

    def layout(self, today: date | None = None) -> RowAssignment:
        """Row assignment of the visible events for the current grid"""
        grid = self.grid(today)
        if isinstance(grid, WeekGrid):
            return assign_week_rows(self.visible_events, grid, tz=self.tz)
        return assign_month_rows(self.visible_events, grid, tz=self.tz)

    def stats(self) -> ViewStats:
        return view_stats(
            self.visible_events, self.anchor, self.mode, self.week_days, self.tz
        )

    def sites(self) -> list[str]:
        return available_sites(self.events)
