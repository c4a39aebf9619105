"""Domain logic for the academic dashboard: records, date windows and summaries."""
from planner.models import (
    Assignment,
    CalendarDay,
    Course,
    GradeEntry,
    Note,
    NoteType,
    Reading,
    Status,
    StudySession,
    Todo,
    TodoCategory,
    TodoPriority,
    parse_status,
)

__all__ = [
    "Assignment",
    "CalendarDay",
    "Course",
    "GradeEntry",
    "Note",
    "NoteType",
    "Reading",
    "Status",
    "StudySession",
    "Todo",
    "TodoCategory",
    "TodoPriority",
    "parse_status",
]
