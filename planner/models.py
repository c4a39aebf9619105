"""
Data models for the student's academic records.

This module contains the dataclasses used to represent rows read from the
datastore. Each record knows how to build itself leniently from a raw row
(``from_row``) and how to render itself back into JSON-ready data
(``to_dict``). Closed value sets are enums with total coercion functions, so a
malformed value in the datastore never breaks a read.
"""
from __future__ import annotations

import typing as t
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from planner.dates import parse_due_date


class Status(str, Enum):
    """Workflow status of an assignment."""
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"
    SCHEDULED = "scheduled"
    NO_CLASS = "no-class"


_STATUS_ALIASES = {
    "to-do": Status.TODO,
    "noclass": Status.NO_CLASS,
    "inprogress": Status.IN_PROGRESS,
}


def parse_status(value: t.Any) -> Status:
    """Coerce any stored value into a Status. Never fails; defaults to TODO."""
    if isinstance(value, Status):
        return value
    if not isinstance(value, str):
        return Status.TODO
    key = value.strip().lower().replace("_", "-").replace(" ", "-")
    try:
        return Status(key)
    except ValueError:
        return _STATUS_ALIASES.get(key, Status.TODO)


class TodoCategory(str, Enum):
    SCHOOL = "school"
    PERSONAL = "personal"
    ERRANDS = "errands"
    WORK = "work"
    HEALTH = "health"
    GENERAL = "general"


class TodoPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class NoteType(str, Enum):
    ASSIGNMENT = "assignment"
    COURSE = "course"
    GENERAL = "general"


E = t.TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: type[E], value: t.Any, default: E) -> E:
    """Map a raw value onto ``enum_cls``, falling back to ``default``."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    return default


def _date_or_raw(parsed: t.Optional[date], raw: t.Any) -> t.Optional[str]:
    if parsed is not None:
        return parsed.isoformat()
    return raw or None


@dataclass
class Course:
    """A course the student is enrolled in, keyed by its course code."""
    id: str
    title: str
    professor: t.Optional[str] = None
    color: t.Optional[str] = None

    @classmethod
    def from_row(cls, row: dict[str, t.Any]) -> "Course":
        return cls(
            id=str(row.get("id", "")),
            title=row.get("title") or "",
            professor=row.get("professor"),
            color=row.get("color"),
        )

    def to_dict(self) -> dict[str, t.Any]:
        return {"id": self.id, "title": self.title, "professor": self.professor, "color": self.color}


@dataclass
class Assignment:
    """A dated deliverable (or a no-class marker) belonging to a course.

    ``due_date`` is None when the stored value could not be parsed; the raw
    text is kept in ``raw_due_date`` so it can still be shown.
    """
    id: str
    course_id: str
    title: str
    due_date: t.Optional[date]
    notes: t.Optional[str] = None
    status: Status = Status.TODO
    raw_due_date: t.Optional[str] = None
    course: t.Optional[Course] = None

    @classmethod
    def from_row(cls, row: dict[str, t.Any]) -> "Assignment":
        raw_due = row.get("due_date")
        course_row = row.get("courses") or row.get("course")
        return cls(
            id=str(row.get("id", "")),
            course_id=str(row.get("course_id") or ""),
            title=row.get("title") or "",
            due_date=parse_due_date(raw_due),
            notes=row.get("notes"),
            status=parse_status(row.get("status")),
            raw_due_date=None if raw_due is None else str(raw_due),
            course=Course.from_row(course_row) if isinstance(course_row, dict) else None,
        )

    @property
    def is_no_class(self) -> bool:
        return self.status is Status.NO_CLASS

    def to_dict(self) -> dict[str, t.Any]:
        return {
            "id": self.id,
            "course_id": self.course_id,
            "title": self.title,
            "due_date": _date_or_raw(self.due_date, self.raw_due_date),
            "notes": self.notes,
            "status": self.status.value,
            "course": self.course.to_dict() if self.course else None,
        }


@dataclass
class Todo:
    id: str
    title: str
    description: t.Optional[str] = None
    category: TodoCategory = TodoCategory.GENERAL
    priority: TodoPriority = TodoPriority.MEDIUM
    due_date: t.Optional[date] = None
    completed: bool = False
    created_at: t.Optional[str] = None

    @classmethod
    def from_row(cls, row: dict[str, t.Any]) -> "Todo":
        return cls(
            id=str(row.get("id", "")),
            title=row.get("title") or "",
            description=row.get("description"),
            category=coerce_enum(TodoCategory, row.get("category"), TodoCategory.GENERAL),
            priority=coerce_enum(TodoPriority, row.get("priority"), TodoPriority.MEDIUM),
            due_date=parse_due_date(row.get("due_date")),
            completed=bool(row.get("completed", False)),
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> dict[str, t.Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "priority": self.priority.value,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "completed": self.completed,
            "created_at": self.created_at,
        }


@dataclass
class Reading:
    """A course reading, optionally tied to a syllabus week."""
    id: str
    course_id: str
    title: str
    week: t.Optional[int] = None
    source: t.Optional[str] = None
    pages: t.Optional[str] = None
    url: t.Optional[str] = None
    status: t.Optional[str] = None
    is_required: bool = True
    completed: bool = False
    session_date: t.Optional[str] = None

    @classmethod
    def from_row(cls, row: dict[str, t.Any]) -> "Reading":
        week = row.get("week")
        try:
            week = int(week) if week is not None else None
        except (TypeError, ValueError):
            week = None
        return cls(
            id=str(row.get("id", "")),
            course_id=str(row.get("course_id") or ""),
            title=row.get("title") or "",
            week=week,
            source=row.get("source"),
            pages=row.get("pages"),
            url=row.get("url"),
            status=row.get("status"),
            is_required=row.get("is_required") is not False,
            completed=bool(row.get("completed", False)),
            session_date=row.get("session_date"),
        )

    def to_dict(self) -> dict[str, t.Any]:
        return {
            "id": self.id,
            "course_id": self.course_id,
            "title": self.title,
            "week": self.week,
            "source": self.source,
            "pages": self.pages,
            "url": self.url,
            "status": self.status,
            "is_required": self.is_required,
            "completed": self.completed,
            "session_date": self.session_date,
        }


@dataclass
class Note:
    id: str
    note_type: NoteType
    content: str
    reference_id: t.Optional[str] = None
    created_at: t.Optional[str] = None
    updated_at: t.Optional[str] = None

    @classmethod
    def from_row(cls, row: dict[str, t.Any]) -> "Note":
        return cls(
            id=str(row.get("id", "")),
            note_type=coerce_enum(NoteType, row.get("note_type"), NoteType.GENERAL),
            content=row.get("content") or "",
            reference_id=row.get("reference_id"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self) -> dict[str, t.Any]:
        return {
            "id": self.id,
            "note_type": self.note_type.value,
            "reference_id": self.reference_id,
            "content": self.content,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class StudySession:
    """A logged Pomodoro focus session."""
    id: str
    task_description: str
    duration_minutes: int
    started_at: str
    course_id: t.Optional[str] = None
    ended_at: t.Optional[str] = None

    @classmethod
    def from_row(cls, row: dict[str, t.Any]) -> "StudySession":
        try:
            minutes = int(row.get("duration_minutes") or 0)
        except (TypeError, ValueError):
            minutes = 0
        return cls(
            id=str(row.get("id", "")),
            task_description=row.get("task_description") or "Focus session",
            duration_minutes=minutes,
            started_at=row.get("started_at") or "",
            course_id=row.get("course_id"),
            ended_at=row.get("ended_at"),
        )

    def to_dict(self) -> dict[str, t.Any]:
        return {
            "id": self.id,
            "course_id": self.course_id,
            "task_description": self.task_description,
            "duration_minutes": self.duration_minutes,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
        }


@dataclass
class GradeEntry:
    """Grade tracking row for one course, joined with the course title."""
    course_id: str
    course_title: str
    credits: float = 3
    current_grade: t.Optional[float] = None
    projected_grade: t.Optional[float] = None

    def to_dict(self) -> dict[str, t.Any]:
        return {
            "course_id": self.course_id,
            "course_title": self.course_title,
            "credits": self.credits,
            "current_grade": self.current_grade,
            "projected_grade": self.projected_grade,
        }


@dataclass
class CalendarDay:
    """One cell of the month grid."""
    day: date
    in_month: bool
    is_today: bool
    assignments: list[Assignment] = field(default_factory=list)

    def to_dict(self) -> dict[str, t.Any]:
        return {
            "date": self.day.isoformat(),
            "in_month": self.in_month,
            "is_today": self.is_today,
            "assignments": [a.to_dict() for a in self.assignments],
        }
