"""
Date and range helpers for the calendar.

All timestamps are normalized to timezone-aware UTC. Naive inputs are read
as UTC, matching how the Jira REST API reports datetimes without an offset.
Calendar days and hours for display are taken in a caller-supplied zone.
"""

import calendar
import re
from collections.abc import Iterator
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from typing import Any

_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")
_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_datetime(value: Any) -> datetime | None:
    """Parse any supported date shape into an aware UTC datetime.

    Accepts ISO 8601 strings (``Z``, ``+00:00`` or Jira's ``+0000`` offsets),
    date-only strings, ``{"dateTime": ...}`` / ``{"date": ...}`` wrappers,
    epoch milliseconds and ``datetime``/``date`` objects. Returns ``None``
    for anything that cannot be read as a valid date.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)
    if isinstance(value, int | float):
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, dict):
        if "dateTime" in value:
            return parse_datetime(value.get("dateTime"))
        if "date" in value:
            return parse_datetime(value.get("date"))
        return None
    if not isinstance(value, str):
        return None

    candidate = value.strip()
    if not candidate:
        return None
    if _DATE_ONLY.match(candidate):
        try:
            return datetime.combine(
                date.fromisoformat(candidate), time.min, tzinfo=UTC
            )
        except ValueError:
            return None
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    candidate = _COMPACT_OFFSET.sub(r"\1:\2", candidate)
    try:
        return _as_utc(datetime.fromisoformat(candidate))
    except ValueError:
        return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_datetime(value: Any) -> str | None:
    """ISO 8601 with millisecond precision and a ``Z`` marker, or None"""
    parsed = parse_datetime(value)
    if parsed is None:
        return None
    return parsed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}Z"


def is_valid_date(value: Any) -> bool:
    return parse_datetime(value) is not None


def format_date_ymd(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def to_date(value: date | datetime, tz: tzinfo = UTC) -> date:
    """Calendar day of a date or datetime as seen on a wall clock in ``tz``"""
    if isinstance(value, datetime):
        return _as_utc(value).astimezone(tz).date()
    return value


def local_hour(value: datetime, tz: tzinfo = UTC) -> int:
    """Wall-clock hour of ``value`` in ``tz``"""
    return _as_utc(value).astimezone(tz).hour


def start_of_week(value: date | datetime) -> date:
    """Monday of the week containing ``value``"""
    day = to_date(value)
    return day - timedelta(days=day.weekday())


def week_range(value: date | datetime) -> tuple[datetime, datetime]:
    """Monday 00:00 to Sunday 23:59:59.999 of the week containing ``value``"""
    monday = start_of_week(value)
    start = datetime.combine(monday, time.min, tzinfo=UTC)
    end = datetime.combine(monday + timedelta(days=6), time.max, tzinfo=UTC)
    return start, end.replace(microsecond=999000)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_range(
    value: date | datetime, tz: tzinfo = UTC
) -> tuple[datetime, datetime]:
    """First 00:00 to last day 23:59:59.999 of the month containing ``value``"""
    day = to_date(value, tz)
    first = day.replace(day=1)
    last = day.replace(day=days_in_month(day.year, day.month))
    start = datetime.combine(first, time.min, tzinfo=tz)
    end = datetime.combine(last, time.max, tzinfo=tz)
    return start, end.replace(microsecond=999000)


def add_months(value: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, days_in_month(year, month))
    return value.replace(year=year, month=month, day=day)


def default_date_range(today: date | None = None) -> dict[str, str]:
    """Last 365 days up to today, as YYYY-MM-DD strings"""
    today = today or datetime.now(UTC).date()
    return {
        "startDate": format_date_ymd(today - timedelta(days=365)),
        "endDate": format_date_ymd(today),
    }


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day from ``start`` to ``end`` inclusive"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def format_date_short(value: date | datetime) -> str:
    """``dd.mm`` label used on event bars"""
    return to_date(value).strftime("%d.%m")


def format_date_range(start: date | datetime, end: date | datetime) -> str:
    """``dd.mm-dd.mm`` label for multi-day bars"""
    return f"{format_date_short(start)}-{format_date_short(end)}"
