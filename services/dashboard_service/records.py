"""
Record endpoints behind the dashboard pages: assignments, the month calendar,
to-dos, notes, readings, grades and study sessions.
"""
from __future__ import annotations

import typing as t
import uuid
from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query

from datastore import Datastore, Order, eq
from datastore import queries
from planner.assignments import Window, data_quality_warnings, filter_by_window, month_calendar, sort_chronological
from planner.grades import build_grade_entries, calculate_gpa
from planner.models import Note, Reading, Status, StudySession, Todo, parse_status
from planner.study import BREAK_MINUTES, WORK_MINUTES, summarize_sessions
from planner.todos import todo_stats
from services.dashboard_service.deps import get_datastore, get_now, get_today
from services.shared.models import (
    AssignmentCreate,
    AssignmentUpdate,
    GpaSummary,
    GradeUpdate,
    NoteCreate,
    NoteUpdate,
    ReadingUpdate,
    StudySessionCreate,
    TodoCreate,
    TodoUpdate,
)

router = APIRouter(prefix="/api")

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


def _changes(update: t.Any) -> dict[str, t.Any]:
    values = update.model_dump(exclude_none=True)
    if not values:
        raise HTTPException(status_code=400, detail="No fields to update")
    for key, value in values.items():
        if isinstance(value, (date, datetime)):
            values[key] = value.isoformat()
    return values


# -----------------------------
# Assignments and calendar
# -----------------------------

@router.get("/assignments")
async def list_assignments(
    window: Window = Window.ALL,
    course_id: t.Optional[str] = None,
    status: t.Optional[str] = None,
    store: Datastore = Depends(get_datastore),
    today: date = Depends(get_today),
):
    assignments = await queries.load_assignments(store, course_id=course_id, status=status)
    include_no_class = bool(status) and parse_status(status) is Status.NO_CLASS
    selected = filter_by_window(assignments, window, today, include_no_class=include_no_class)
    return {
        "window": window.value,
        "today": today.isoformat(),
        "assignments": [a.to_dict() for a in sort_chronological(selected)],
        "warnings": data_quality_warnings(assignments),
    }


@router.post("/assignments", status_code=201)
async def create_assignment(body: AssignmentCreate, store: Datastore = Depends(get_datastore)):
    row = body.model_dump()
    row["id"] = str(uuid.uuid4())
    row["due_date"] = body.due_date.isoformat()
    await store.insert(queries.ASSIGNMENTS, [row])
    assignment = await queries.load_assignment(store, row["id"])
    return {"assignment": assignment.to_dict()}


@router.patch("/assignments/{assignment_id}")
async def update_assignment(
    assignment_id: str,
    body: AssignmentUpdate,
    store: Datastore = Depends(get_datastore),
):
    await store.update_by_id(queries.ASSIGNMENTS, assignment_id, _changes(body))
    assignment = await queries.load_assignment(store, assignment_id)
    return {"assignment": assignment.to_dict()}


@router.get("/calendar/month")
async def calendar_month(
    month: t.Optional[str] = Query(None, pattern=MONTH_PATTERN),
    store: Datastore = Depends(get_datastore),
    today: date = Depends(get_today),
):
    """The 42-day grid for ``month`` (YYYY-MM), defaulting to the current month."""
    if month:
        year, month_number = (int(part) for part in month.split("-"))
    else:
        year, month_number = today.year, today.month
    assignments = await queries.load_assignments(store)
    days = month_calendar(assignments, year, month_number, today)
    return {
        "month": f"{year:04d}-{month_number:02d}",
        "days": [day.to_dict() for day in days],
        "undated": [a.to_dict() for a in assignments if a.due_date is None],
    }


# -----------------------------
# Todos
# -----------------------------

@router.get("/todos")
async def list_todos(
    include_completed: bool = True,
    store: Datastore = Depends(get_datastore),
    today: date = Depends(get_today),
):
    rows = await store.select(queries.TODOS, order=[Order("created_at", ascending=False)])
    todos = [Todo.from_row(row) for row in rows]
    visible = todos if include_completed else [todo for todo in todos if not todo.completed]
    return {
        "todos": [todo.to_dict() for todo in visible],
        "stats": todo_stats(todos, today).to_dict(),
    }


@router.post("/todos", status_code=201)
async def create_todo(
    body: TodoCreate,
    store: Datastore = Depends(get_datastore),
    now: datetime = Depends(get_now),
):
    row = body.model_dump()
    row.update(
        id=str(uuid.uuid4()),
        due_date=body.due_date.isoformat() if body.due_date else None,
        completed=False,
        created_at=now.isoformat(),
    )
    rows = await store.insert(queries.TODOS, [row])
    return {"todo": Todo.from_row(rows[0]).to_dict()}


@router.patch("/todos/{todo_id}")
async def update_todo(todo_id: str, body: TodoUpdate, store: Datastore = Depends(get_datastore)):
    row = await store.update_by_id(queries.TODOS, todo_id, _changes(body))
    return {"todo": Todo.from_row(row).to_dict()}


@router.delete("/todos/{todo_id}")
async def delete_todo(todo_id: str, store: Datastore = Depends(get_datastore)):
    await store.delete_by_id(queries.TODOS, todo_id)
    return {"success": True}


# -----------------------------
# Notes
# -----------------------------

@router.get("/notes")
async def list_notes(
    note_type: t.Optional[str] = None,
    reference_id: t.Optional[str] = None,
    store: Datastore = Depends(get_datastore),
):
    filters = []
    if note_type:
        filters.append(eq("note_type", note_type))
    if reference_id:
        filters.append(eq("reference_id", reference_id))
    rows = await store.select(queries.NOTES, filters, order=[Order("created_at", ascending=False)])
    return {"notes": [Note.from_row(row).to_dict() for row in rows]}


@router.post("/notes", status_code=201)
async def create_note(
    body: NoteCreate,
    store: Datastore = Depends(get_datastore),
    now: datetime = Depends(get_now),
):
    row = body.model_dump()
    row.update(id=str(uuid.uuid4()), created_at=now.isoformat(), updated_at=now.isoformat())
    rows = await store.insert(queries.NOTES, [row])
    return {"note": Note.from_row(rows[0]).to_dict()}


@router.patch("/notes/{note_id}")
async def update_note(
    note_id: str,
    body: NoteUpdate,
    store: Datastore = Depends(get_datastore),
    now: datetime = Depends(get_now),
):
    row = await store.update_by_id(
        queries.NOTES, note_id, {"content": body.content, "updated_at": now.isoformat()}
    )
    return {"note": Note.from_row(row).to_dict()}


@router.delete("/notes/{note_id}")
async def delete_note(note_id: str, store: Datastore = Depends(get_datastore)):
    await store.delete_by_id(queries.NOTES, note_id)
    return {"success": True}


# -----------------------------
# Readings
# -----------------------------

@router.get("/readings")
async def list_readings(
    course_id: t.Optional[str] = None,
    week: t.Optional[int] = None,
    include_completed: bool = True,
    store: Datastore = Depends(get_datastore),
):
    filters = []
    if course_id:
        filters.append(eq("course_id", course_id))
    if week is not None:
        filters.append(eq("week", week))
    rows = await store.select(queries.READINGS, filters, order=[Order("week"), Order("title")])
    readings = [Reading.from_row(row) for row in rows]
    if not include_completed:
        readings = [r for r in readings if not r.completed]
    return {
        "readings": [r.to_dict() for r in readings],
        "completed": sum(1 for r in readings if r.completed),
        "total": len(readings),
    }


@router.patch("/readings/{reading_id}")
async def update_reading(reading_id: str, body: ReadingUpdate, store: Datastore = Depends(get_datastore)):
    row = await store.update_by_id(queries.READINGS, reading_id, {"completed": body.completed})
    return {"reading": Reading.from_row(row).to_dict()}


# -----------------------------
# Grades
# -----------------------------

@router.get("/grades", response_model=GpaSummary)
async def list_grades(store: Datastore = Depends(get_datastore)) -> GpaSummary:
    courses = await store.select(queries.COURSES, order=[Order("id")])
    grade_rows = await store.select(queries.COURSE_GRADES)
    entries = build_grade_entries(courses, grade_rows)
    return GpaSummary(
        current=calculate_gpa(entries),
        projected=calculate_gpa(entries, use_projected=True),
        courses=[entry.to_dict() for entry in entries],
    )


@router.put("/grades/{course_id}")
async def set_grade(course_id: str, body: GradeUpdate, store: Datastore = Depends(get_datastore)):
    await store.get_by_id(queries.COURSES, course_id)
    rows = await store.upsert(
        queries.COURSE_GRADES,
        [{"course_id": course_id, **body.model_dump()}],
        on_conflict="course_id",
    )
    return {"grade": rows[0]}


# -----------------------------
# Study sessions
# -----------------------------

@router.get("/study-sessions")
async def list_study_sessions(
    days: int = Query(7, ge=1, le=365),
    store: Datastore = Depends(get_datastore),
    now: datetime = Depends(get_now),
):
    rows = await store.select(queries.STUDY_SESSIONS, order=[Order("started_at", ascending=False)])
    sessions = [StudySession.from_row(row) for row in rows]
    summary = summarize_sessions(sessions, since=now - timedelta(days=days))
    return {
        "sessions": [session.to_dict() for session in sessions],
        "total_minutes": summary.total_minutes,
        "session_count": summary.session_count,
        "pomodoro": {"work_minutes": WORK_MINUTES, "break_minutes": BREAK_MINUTES},
    }


@router.post("/study-sessions", status_code=201)
async def log_study_session(
    body: StudySessionCreate,
    store: Datastore = Depends(get_datastore),
    now: datetime = Depends(get_now),
):
    """Record a finished focus session. ``started_at`` defaults to now minus its duration."""
    started = body.started_at or now - timedelta(minutes=body.duration_minutes)
    rows = await store.insert(queries.STUDY_SESSIONS, [{
        "id": str(uuid.uuid4()),
        "course_id": body.course_id,
        "task_description": body.task_description,
        "duration_minutes": body.duration_minutes,
        "started_at": started.isoformat(),
        "ended_at": (started + timedelta(minutes=body.duration_minutes)).isoformat(),
    }])
    return {"session": StudySession.from_row(rows[0]).to_dict()}
