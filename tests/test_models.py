"""Tests for lenient record parsing and the to-do summaries."""
from datetime import date

from planner.models import Note, NoteType, Reading, StudySession, Todo, TodoCategory, TodoPriority, coerce_enum
from planner.todos import sort_for_widget, todo_stats

TODAY = date(2025, 9, 16)


def test_todo_defaults_for_missing_and_unknown_values() -> None:
    todo = Todo.from_row({"id": 7, "title": "Groceries", "category": "shopping", "priority": None})

    assert todo.id == "7"
    assert todo.category is TodoCategory.GENERAL
    assert todo.priority is TodoPriority.MEDIUM
    assert todo.completed is False
    assert todo.due_date is None


def test_todo_round_trips_to_json_ready_dict() -> None:
    todo = Todo.from_row({"id": "t1", "title": "Essay outline", "category": "School", "priority": "HIGH",
                          "due_date": "2025-09-20", "completed": True})
    assert todo.to_dict() == {
        "id": "t1",
        "title": "Essay outline",
        "description": None,
        "category": "school",
        "priority": "high",
        "due_date": "2025-09-20",
        "completed": True,
        "created_at": None,
    }


def test_reading_week_and_required_flag() -> None:
    reading = Reading.from_row({"id": "r1", "course_id": "ARTH224-F25", "title": "Ways of Seeing", "week": "3"})
    assert reading.week == 3
    assert reading.is_required is True

    optional = Reading.from_row({"id": "r2", "title": "Extra", "week": "week three", "is_required": False})
    assert optional.week is None
    assert optional.is_required is False


def test_note_type_coercion() -> None:
    note = Note.from_row({"id": "n1", "note_type": "Course", "content": "Office hours moved"})
    assert note.note_type is NoteType.COURSE
    assert coerce_enum(NoteType, "diary", NoteType.GENERAL) is NoteType.GENERAL


def test_study_session_with_bad_duration() -> None:
    session = StudySession.from_row({"id": "s1", "duration_minutes": "lots", "started_at": "2025-09-14T20:00:00Z"})
    assert session.duration_minutes == 0
    assert session.task_description == "Focus session"


def _todos() -> list[Todo]:
    rows = [
        {"id": "1", "title": "Low later", "priority": "low", "due_date": "2025-09-30"},
        {"id": "2", "title": "High overdue", "priority": "high", "due_date": "2025-09-14"},
        {"id": "3", "title": "Medium undated", "priority": "medium"},
        {"id": "4", "title": "High soon", "priority": "high", "due_date": "2025-09-17"},
        {"id": "5", "title": "Finished", "priority": "high", "due_date": "2025-09-01", "completed": True},
    ]
    return [Todo.from_row(row) for row in rows]


def test_todo_stats_ignore_completed_items() -> None:
    stats = todo_stats(_todos(), TODAY)
    assert stats.to_dict() == {"active": 4, "high_priority": 2, "overdue": 1}


def test_widget_order_is_priority_then_due_date() -> None:
    ordered = [todo.title for todo in sort_for_widget(_todos()) if not todo.completed]
    assert ordered == ["High overdue", "High soon", "Medium undated", "Low later"]
