"""
Calendar helpers pinned to a single time zone.

Every date computation in the dashboard goes through this module so that
"today", "this week" and the month grid agree regardless of where the code
runs. Instants are converted into the fixed zone first and only then reduced
to a calendar date; all arithmetic afterwards happens on plain dates, which
keeps daylight-saving transitions from shifting a day.
"""
from __future__ import annotations

import calendar
import typing as t
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo


DEFAULT_TIMEZONE = "America/New_York"
TIMEZONE = ZoneInfo(DEFAULT_TIMEZONE)

DAYS_IN_WEEK = 7
MONTH_GRID_DAYS = 42

DateLike = t.Union[date, datetime, str, int, float]


def to_zoned_date(value: DateLike, tz: t.Optional[ZoneInfo] = None) -> date:
    """Reduce a timestamp to its calendar date in the fixed zone.

    Accepted inputs:
    - ``date``: returned unchanged (so the function is idempotent).
    - aware ``datetime``: converted into the zone, then truncated.
    - naive ``datetime``: treated as a UTC instant.
    - ``int``/``float``: epoch seconds.
    - ``str``: ``YYYY-MM-DD`` maps straight to that date; anything longer is
      parsed as an ISO 8601 instant (``Z`` suffix allowed).

    Raises:
        ValueError: If a string is not ISO formatted.
        TypeError: For unsupported input types.
    """
    tz = tz or TIMEZONE

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(tz).date()

    if isinstance(value, date):
        return value

    if isinstance(value, bool):
        raise TypeError("Cannot convert a boolean to a date")

    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz).date()

    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        return to_zoned_date(datetime.fromisoformat(text.replace("Z", "+00:00")), tz)

    raise TypeError(f"Cannot convert {type(value).__name__} to a date")


def parse_due_date(value: t.Any, tz: t.Optional[ZoneInfo] = None) -> t.Optional[date]:
    """Lenient variant of :func:`to_zoned_date`; returns None when unparseable."""
    if value is None or value == "":
        return None
    try:
        return to_zoned_date(value, tz)
    except (ValueError, TypeError, OverflowError, OSError):
        return None


def today(now: t.Optional[datetime] = None, tz: t.Optional[ZoneInfo] = None) -> date:
    """Current calendar date in the fixed zone."""
    return to_zoned_date(now or datetime.now(timezone.utc), tz)


def start_of_week(day: date) -> date:
    """Monday on or before ``day``."""
    return day - timedelta(days=day.weekday())


def end_of_week(start: date) -> date:
    """Last day (Sunday) of the week beginning at ``start``."""
    return start + timedelta(days=DAYS_IN_WEEK - 1)


def week_bounds(day: date) -> tuple[date, date]:
    start = start_of_week(day)
    return start, end_of_week(start)


def month_bounds(day: date) -> tuple[date, date]:
    _, last = calendar.monthrange(day.year, day.month)
    return day.replace(day=1), day.replace(day=last)


def month_grid(year: int, month: int) -> list[date]:
    """Six full Monday-start weeks covering the given month.

    The grid starts on the Monday on/before the 1st and always holds 42 days,
    including leading and trailing days of the neighbouring months.
    """
    start = start_of_week(date(year, month, 1))
    return [start + timedelta(days=offset) for offset in range(MONTH_GRID_DAYS)]


def days_until(due: date, reference: date) -> int:
    return (due - reference).days
