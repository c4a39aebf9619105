"""
Filtering, grouping and ordering of assignments for display.

The functions here are pure: they take already-loaded Assignment records and
a reference date and return new lists. Date windows are computed with
planner.dates so that every caller agrees on what "today" and "this week" mean.
"""
from __future__ import annotations

import logging
import typing as t
from collections.abc import Iterable
from datetime import date, datetime
from enum import Enum
from zoneinfo import ZoneInfo

from planner import dates
from planner.models import Assignment, CalendarDay, Course, Status

logger = logging.getLogger(__name__)

URGENT_WITHIN_DAYS = 3


class Window(str, Enum):
    """Named date range used to filter assignments."""
    TODAY = "today"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"
    OVERDUE = "overdue"
    ALL = "all"


def _in_window(assignment: Assignment, window: Window, reference: date) -> bool:
    due = assignment.due_date
    if due is None:
        return False
    if window is Window.TODAY:
        return due == reference
    if window is Window.THIS_WEEK:
        start, end = dates.week_bounds(reference)
        return start <= due <= end
    if window is Window.THIS_MONTH:
        start, end = dates.month_bounds(reference)
        return start <= due <= end
    if window is Window.OVERDUE:
        return due < reference and assignment.status is not Status.DONE
    raise ValueError(f"Unknown window: {window}")


def filter_by_window(
    assignments: Iterable[Assignment],
    window: t.Union[Window, str],
    today: date,
    include_no_class: bool = False,
) -> list[Assignment]:
    """Keep the assignments that fall in ``window`` relative to ``today``.

    ``all`` returns every record unchanged. Every other window drops records
    whose due date could not be parsed and, unless ``include_no_class`` is set,
    no-class markers.
    """
    window = Window(window)
    items = list(assignments)
    if window is Window.ALL:
        return items

    selected = []
    for assignment in items:
        if assignment.is_no_class and not include_no_class:
            continue
        if _in_window(assignment, window, today):
            selected.append(assignment)
    return selected


def undated(assignments: Iterable[Assignment]) -> list[Assignment]:
    return [a for a in assignments if a.due_date is None]


def data_quality_warnings(assignments: Iterable[Assignment]) -> list[str]:
    """Describe records whose due date could not be parsed."""
    warnings = []
    for assignment in undated(assignments):
        message = (
            f"Assignment '{assignment.title}' ({assignment.id}) has an unreadable due date "
            f"{assignment.raw_due_date!r}; it only appears under 'all'"
        )
        logger.warning(message)
        warnings.append(message)
    return warnings


def group_by_day(assignments: Iterable[Assignment]) -> dict[date, list[Assignment]]:
    """Bucket assignments by due date. Undated records are left out."""
    buckets: dict[date, list[Assignment]] = {}
    for assignment in assignments:
        if assignment.due_date is None:
            continue
        buckets.setdefault(assignment.due_date, []).append(assignment)
    return buckets


def _chronological_key(assignment: Assignment) -> tuple[bool, date, str]:
    return (assignment.due_date is None, assignment.due_date or date.max, assignment.title)


def sort_chronological(assignments: Iterable[Assignment]) -> list[Assignment]:
    """Stable sort by due date, then title. Undated records go last."""
    return sorted(assignments, key=_chronological_key)


def is_urgent(
    assignment: Assignment,
    now: t.Optional[datetime] = None,
    tz: t.Optional[ZoneInfo] = None,
) -> bool:
    """True when an open assignment is due within the next few days.

    A due date equal to today still counts since the day has not ended yet.
    """
    if assignment.due_date is None:
        return False
    if assignment.status in (Status.DONE, Status.NO_CLASS):
        return False
    remaining = dates.days_until(assignment.due_date, dates.today(now, tz))
    return 0 <= remaining <= URGENT_WITHIN_DAYS


def attach_courses(assignments: Iterable[Assignment], courses: Iterable[Course]) -> list[Assignment]:
    """Fill in the denormalized ``course`` reference from a course list."""
    by_id = {course.id: course for course in courses}
    items = list(assignments)
    for assignment in items:
        if assignment.course is None:
            assignment.course = by_id.get(assignment.course_id)
    return items


def month_calendar(
    assignments: Iterable[Assignment],
    year: int,
    month: int,
    today: date,
    include_no_class: bool = True,
) -> list[CalendarDay]:
    """Lay assignments out on the 42-day month grid, each cell sorted."""
    buckets = group_by_day(
        a for a in assignments if include_no_class or not a.is_no_class
    )
    return [
        CalendarDay(
            day=day,
            in_month=day.month == month,
            is_today=day == today,
            assignments=sort_chronological(buckets.get(day, [])),
        )
        for day in dates.month_grid(year, month)
    ]
