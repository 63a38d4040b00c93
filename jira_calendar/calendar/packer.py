"""
Overlap row packer

Greedy interval colouring by calendar day. Every event gets the smallest row
index that is free on each day it covers. Longer and earlier events are
placed first so long visits keep a stable row as short ones come and go.

The month view packs per week row, the week view packs inside each start-hour
bucket. Both share ``pack_rows``; only the bucketing differs. Days and hours
are read on the viewer's wall clock in ``tz``.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import UTC, date, tzinfo

from jira_calendar.calendar.models import (
    MonthGrid,
    RowAssignment,
    VisitEvent,
    WeekGrid,
    WeekSegment,
)
from jira_calendar.utils.dates import local_hour
from jira_calendar.utils.logger import get_logger

logger = get_logger(__name__)

DAY_START_HOUR = 8
DAY_END_HOUR = 18
DEFAULT_HOURS = tuple(range(DAY_START_HOUR, DAY_END_HOUR + 1))


def _visible_span(
    event: VisitEvent, first: date, last: date, tz: tzinfo
) -> list[date]:
    return [day for day in event.day_span(tz) if first <= day <= last]


def pack_rows(
    spans: Sequence[tuple[str, list[date], int, date]],
) -> tuple[dict[str, int], dict[date, int]]:
    """Assign rows to ``(event_id, days, span_length, start)`` entries.

    Returns the event row mapping and the highest row used on each day.
    Ordering is by descending span length, then ascending start; equal
    entries keep their input order.
    """
    ordered = sorted(spans, key=lambda entry: (-entry[2], entry[3]))

    occupied: dict[date, set[int]] = defaultdict(set)
    rows: dict[str, int] = {}
    for event_id, days, _, _ in ordered:
        row = 0
        while any(row in occupied[day] for day in days):
            row += 1
        rows[event_id] = row
        for day in days:
            occupied[day].add(row)

    max_row_by_day = {day: max(used) for day, used in occupied.items() if used}
    return rows, max_row_by_day


def assign_month_rows(
    events: Iterable[VisitEvent], grid: MonthGrid, tz: tzinfo = UTC
) -> RowAssignment:
    """Row assignment for the month view; buckets are week rows of the grid"""
    first, last = grid.first_day, grid.last_day

    spans = []
    skipped = 0
    for event in events:
        days = _visible_span(event, first, last, tz)
        if not days:
            skipped += 1
            continue
        spans.append(
            (event.id, days, len(event.day_span(tz)), event.local_start_date(tz))
        )

    rows, max_row_by_day = pack_rows(spans)

    week_of_day = {
        cell.date: week_index
        for week_index, week in enumerate(grid.weeks)
        for cell in week
    }
    max_row_by_bucket: dict[int, int] = {}
    for day, highest in max_row_by_day.items():
        week_index = week_of_day[day]
        max_row_by_bucket[week_index] = max(
            highest, max_row_by_bucket.get(week_index, 0)
        )
    bucket_of = {event_id: week_of_day[days[0]] for event_id, days, _, _ in spans}

    if skipped:
        logger.debug("Events outside month grid", skipped=skipped)

    return RowAssignment(
        rows=rows,
        max_row_by_day=max_row_by_day,
        max_row_by_bucket=max_row_by_bucket,
        bucket_of=bucket_of,
    )


def assign_week_rows(
    events: Iterable[VisitEvent],
    grid: WeekGrid,
    hours: Sequence[int] = DEFAULT_HOURS,
    tz: tzinfo = UTC,
) -> RowAssignment:
    """Row assignment for the week view; buckets are start hours.

    Events starting outside ``hours`` or not touching the week are left out.
    ``max_row_by_day`` holds the highest row on each day across all hours.
    """
    first, last = grid.first_day, grid.last_day
    allowed = set(hours)

    by_hour: dict[int, list[tuple[str, list[date], int, date]]] = defaultdict(list)
    for event in events:
        hour = local_hour(event.start_time, tz)
        if hour not in allowed:
            continue
        days = _visible_span(event, first, last, tz)
        if not days:
            continue
        by_hour[hour].append(
            (event.id, days, len(event.day_span(tz)), event.local_start_date(tz))
        )

    assignment = RowAssignment()
    for hour in sorted(by_hour):
        rows, hour_max_by_day = pack_rows(by_hour[hour])
        assignment.rows.update(rows)
        assignment.bucket_of.update({event_id: hour for event_id in rows})
        assignment.max_row_by_bucket[hour] = max(hour_max_by_day.values())
        for day, highest in hour_max_by_day.items():
            assignment.max_row_by_day[day] = max(
                highest, assignment.max_row_by_day.get(day, 0)
            )
    return assignment


def week_segments(
    event: VisitEvent, grid: MonthGrid, row: int, tz: tzinfo = UTC
) -> list[WeekSegment]:
    """Bar pieces of an event, one per week row it touches in the month grid"""
    start, end = event.local_start_date(tz), event.local_end_date(tz)
    segments = []
    for week_index, week in enumerate(grid.weeks):
        week_start = week[0].date
        week_end = week[-1].date
        if end < week_start or start > week_end:
            continue
        seg_start = max(start, week_start)
        seg_end = min(end, week_end)
        segments.append(
            WeekSegment(
                event_id=event.id,
                week_index=week_index,
                first_index=(seg_start - week_start).days,
                width=(seg_end - seg_start).days + 1,
                row=row,
            )
        )
    return segments

