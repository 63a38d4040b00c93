"""Month and week grids for the calendar views. Weeks start on Monday."""

from datetime import UTC, date, datetime, timedelta

from jira_calendar.calendar.models import CalendarCell, MonthGrid, WeekGrid
from jira_calendar.utils.dates import days_in_month, start_of_week, to_date

DAYS_PER_WEEK = 7
BUSINESS_WEEK_DAYS = 5


def _today() -> date:
    return datetime.now(UTC).date()


def build_month_grid(anchor: date | datetime, today: date | None = None) -> MonthGrid:
    """Grid for the anchor's month, padded with faded days of adjacent months"""
    anchor_day = to_date(anchor)
    today = today or _today()
    year, month = anchor_day.year, anchor_day.month

    first = date(year, month, 1)
    leading = first.weekday()  # Monday == 0
    total = leading + days_in_month(year, month)
    trailing = (-total) % DAYS_PER_WEEK

    grid_start = first - timedelta(days=leading)
    cells: list[CalendarCell] = []
    for offset in range(total + trailing):
        day = grid_start + timedelta(days=offset)
        cells.append(
            CalendarCell(
                date=day,
                faded=(day.month != month),
                is_today=(day == today),
            )
        )

    weeks = [
        cells[i : i + DAYS_PER_WEEK] for i in range(0, len(cells), DAYS_PER_WEEK)
    ]
    return MonthGrid(year=year, month=month, weeks=weeks)


def build_week_grid(
    anchor: date | datetime,
    days: int = BUSINESS_WEEK_DAYS,
    today: date | None = None,
) -> WeekGrid:
    """Monday-based week containing the anchor, 5 (business) or 7 days long"""
    if days not in (BUSINESS_WEEK_DAYS, DAYS_PER_WEEK):
        raise ValueError(f"Week view supports 5 or 7 days, got {days}")
    today = today or _today()
    monday = start_of_week(anchor)
    cells = [
        CalendarCell(date=day, is_today=(day == today))
        for day in (monday + timedelta(days=i) for i in range(days))
    ]
    return WeekGrid(days=cells)
