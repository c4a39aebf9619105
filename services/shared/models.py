"""
Shared Pydantic models for REST API serialization.

Request bodies are validated here; the domain records in ``planner.models``
stay plain dataclasses and are converted with ``to_dict`` on the way out.
"""
from __future__ import annotations

import typing as t
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from planner.study import WORK_MINUTES


ChatRole = t.Literal["user", "assistant"]
EditableStatus = t.Literal["todo", "in-progress", "done", "scheduled", "no-class"]
TodoCategoryName = t.Literal["school", "personal", "errands", "work", "health", "general"]
TodoPriorityName = t.Literal["low", "medium", "high"]
NoteTypeName = t.Literal["assignment", "course", "general"]
SyllabusItemType = t.Literal["assignment", "exam", "paper", "presentation", "no-class"]


# Chat
class ChatMessageIn(BaseModel):
    role: ChatRole
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatMessageIn] = Field(min_length=1)


class ContentBlock(BaseModel):
    type: t.Literal["text"] = "text"
    text: str


class ChatResponse(BaseModel):
    """Same shape as the provider's content blocks, so the widget renders either."""
    content: list[ContentBlock]


# Assignments
class AssignmentCreate(BaseModel):
    course_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    due_date: date
    notes: t.Optional[str] = None
    status: EditableStatus = "todo"


class AssignmentUpdate(BaseModel):
    title: t.Optional[str] = Field(default=None, min_length=1)
    due_date: t.Optional[date] = None
    notes: t.Optional[str] = None
    status: t.Optional[EditableStatus] = None


# Todos
class TodoCreate(BaseModel):
    title: str = Field(min_length=1)
    description: t.Optional[str] = None
    category: TodoCategoryName = "general"
    priority: TodoPriorityName = "medium"
    due_date: t.Optional[date] = None


class TodoUpdate(BaseModel):
    title: t.Optional[str] = Field(default=None, min_length=1)
    description: t.Optional[str] = None
    category: t.Optional[TodoCategoryName] = None
    priority: t.Optional[TodoPriorityName] = None
    due_date: t.Optional[date] = None
    completed: t.Optional[bool] = None


# Notes
class NoteCreate(BaseModel):
    note_type: NoteTypeName = "general"
    reference_id: t.Optional[str] = None
    content: str = Field(min_length=1)


class NoteUpdate(BaseModel):
    content: str = Field(min_length=1)


# Readings, grades and study sessions
class ReadingUpdate(BaseModel):
    completed: bool


class GradeUpdate(BaseModel):
    current_grade: t.Optional[float] = Field(default=None, ge=0, le=100)
    projected_grade: t.Optional[float] = Field(default=None, ge=0, le=100)
    credits: int = Field(default=3, ge=0)


class StudySessionCreate(BaseModel):
    course_id: t.Optional[str] = None
    task_description: str = Field(min_length=1)
    duration_minutes: int = Field(default=WORK_MINUTES, gt=0)
    started_at: t.Optional[datetime] = None


class GpaSummary(BaseModel):
    current: t.Optional[float] = None
    projected: t.Optional[float] = None
    courses: list[dict[str, t.Any]] = Field(default_factory=list)


# Syllabus parsing
class ParsedAssignment(BaseModel):
    """One dated item pulled out of a syllabus."""
    title: str = ""
    due_date: str = ""              # "YYYY-MM-DD" or ""
    notes: str = ""
    type: SyllabusItemType = "assignment"


class ParsedReading(BaseModel):
    week: t.Optional[int] = None
    title: str = ""
    source: str = ""
    pages: str = ""
    required: bool = True


class ParsedSyllabus(BaseModel):
    """
    Top-level parsed representation for one syllabus, as returned by
    /api/parse-syllabus and accepted back by /api/save-parsed-syllabus.
    """
    course_code: str = ""
    course_title: str = ""
    professor: str = ""
    term: str = ""
    assignments: list[ParsedAssignment] = Field(default_factory=list)
    readings: list[ParsedReading] = Field(default_factory=list)


class SaveSyllabusResponse(BaseModel):
    success: bool = True
    courseId: str
    assignmentsAdded: int
    readingsAdded: int


# Bulk loader
class BundleCourse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    professor: t.Optional[str] = None
    color: t.Optional[str] = None


class SyllabusBundle(BaseModel):
    """Rows prepared elsewhere and loaded as-is, keyed to one course."""
    mode: t.Literal["replace", "append"] = "replace"
    course: BundleCourse
    assignments: list[dict[str, t.Any]] = Field(default_factory=list)
    readings: list[dict[str, t.Any]] = Field(default_factory=list)


class InsertedCounts(BaseModel):
    assignments: int
    readings: int


class LoadSyllabusResponse(BaseModel):
    ok: bool = True
    inserted: InsertedCounts


# Digest
class DigestResponse(BaseModel):
    success: bool = True
    assignmentsCount: int
    studyMinutes: int
    previewHtml: str
