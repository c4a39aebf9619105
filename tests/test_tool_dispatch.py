"""Tests for executing the assistant's tool calls against the datastore."""
import json
import typing as t

import pytest

from assistant.handlers import ToolDispatcher
from assistant.models import ToolCall, ToolResult
from assistant.tools import TOOL_CATALOG, TOOLS_BY_NAME, list_tool_schemas
from datastore import DatastoreError, MemoryDatastore


async def call(dispatcher: ToolDispatcher, name: str, arguments: t.Optional[dict[str, t.Any]]) -> ToolResult:
    return await dispatcher.dispatch(ToolCall(id="call_1", name=name, arguments=arguments))


def payload(result: ToolResult) -> t.Any:
    return json.loads(result.content)


def test_catalog_schemas_are_openai_functions() -> None:
    schemas = list_tool_schemas()
    assert len(schemas) == len(TOOL_CATALOG) == len(TOOLS_BY_NAME)
    for schema in schemas:
        assert schema["type"] == "function"
        assert schema["function"]["parameters"]["type"] == "object"

    update = TOOLS_BY_NAME["update_assignment_status"].openai_schema()["function"]["parameters"]
    assert set(update["required"]) == {"assignment_id", "status"}


@pytest.mark.asyncio
async def test_get_assignments_defaults_to_this_week(dispatcher: ToolDispatcher) -> None:
    result = await call(dispatcher, "get_assignments", {})
    data = payload(result)

    assert not result.is_error
    assert data["date_range"] == "this_week"
    assert [a["title"] for a in data["assignments"]] == ["Vocab Quiz", "Essay"]
    assert data["assignments"][1]["course"]["title"] == "Art History"
    assert any("Mystery" in warning for warning in data["warnings"])


@pytest.mark.asyncio
async def test_get_assignments_with_no_class_status(dispatcher: ToolDispatcher) -> None:
    data = payload(await call(dispatcher, "get_assignments", {"status": "no-class"}))
    assert [a["title"] for a in data["assignments"]] == ["Fall Break"]


@pytest.mark.asyncio
async def test_get_overdue_for_one_course(dispatcher: ToolDispatcher) -> None:
    data = payload(await call(dispatcher, "get_assignments", {"date_range": "overdue", "course_id": "FREN201-F25"}))
    assert [a["title"] for a in data["assignments"]] == ["Report"]


@pytest.mark.asyncio
async def test_status_filter_matches_coerced_status(dispatcher: ToolDispatcher, store: MemoryDatastore) -> None:
    await store.insert("assignments", [
        {"id": "a-legacy", "course_id": "ARTH224-F25", "title": "Legacy", "due_date": "2025-09-17", "status": "to-do"},
        {"id": "a-unset", "course_id": "FREN201-F25", "title": "Unset", "due_date": "2025-09-20", "status": None},
    ])

    unfiltered = payload(await call(dispatcher, "get_assignments", {}))
    assert {a["title"]: a["status"] for a in unfiltered["assignments"]}["Legacy"] == "todo"

    data = payload(await call(dispatcher, "get_assignments", {"status": "todo"}))
    assert [a["title"] for a in data["assignments"]] == ["Legacy", "Essay", "Unset"]
    assert all(a["status"] == "todo" for a in data["assignments"])


@pytest.mark.asyncio
async def test_added_assignment_comes_back_unchanged(dispatcher: ToolDispatcher) -> None:
    added = payload(await call(dispatcher, "add_assignment", {
        "course_id": "FREN201-F25",
        "title": "Oral presentation",
        "due_date": "2025-09-19",
        "notes": "5 minutes, no notes",
    }))
    assert added["success"] is True

    data = payload(await call(dispatcher, "get_assignments", {"course_id": "FREN201-F25", "date_range": "this_week"}))
    match = [a for a in data["assignments"] if a["id"] == added["assignment"]["id"]]

    assert len(match) == 1
    assert match[0]["title"] == "Oral presentation"
    assert match[0]["due_date"] == "2025-09-19"
    assert match[0]["notes"] == "5 minutes, no notes"
    assert match[0]["status"] == "todo"


@pytest.mark.asyncio
async def test_update_assignment_status(dispatcher: ToolDispatcher, store: MemoryDatastore) -> None:
    data = payload(await call(dispatcher, "update_assignment_status", {
        "assignment_id": "a-essay", "status": "done", "notes": "Submitted early",
    }))

    assert data["success"] is True
    assert data["assignment"]["status"] == "done"
    row = await store.get_by_id("assignments", "a-essay")
    assert row["status"] == "done"
    assert row["notes"] == "Submitted early"


@pytest.mark.asyncio
async def test_update_of_unknown_assignment_is_an_error_result(dispatcher: ToolDispatcher) -> None:
    result = await call(dispatcher, "update_assignment_status", {"assignment_id": "nope", "status": "done"})

    assert result.is_error
    assert result.tool_call_id == "call_1"
    assert "nope" in payload(result)["error"]


@pytest.mark.asyncio
async def test_unknown_tool_is_an_error_result(dispatcher: ToolDispatcher) -> None:
    result = await call(dispatcher, "drop_tables", {})
    assert result.is_error
    assert payload(result) == {"error": "Unknown tool: drop_tables"}


@pytest.mark.asyncio
async def test_invalid_arguments_are_error_results(dispatcher: ToolDispatcher) -> None:
    bad_status = await call(dispatcher, "update_assignment_status", {"assignment_id": "a-essay", "status": "finished"})
    assert bad_status.is_error
    assert "status" in payload(bad_status)["error"]

    missing = await call(dispatcher, "add_assignment", {"course_id": "FREN201-F25", "title": "No date"})
    assert "due_date" in payload(missing)["error"]

    not_json = await call(dispatcher, "get_todos", None)
    assert "not valid JSON" in payload(not_json)["error"]


@pytest.mark.asyncio
async def test_datastore_failures_are_error_results(dispatcher: ToolDispatcher, monkeypatch) -> None:
    async def broken_select(*args, **kwargs):
        raise DatastoreError("connection refused")

    monkeypatch.setattr(dispatcher.store, "select", broken_select)

    result = await call(dispatcher, "get_todos", {})
    assert payload(result) == {"error": "connection refused"}


@pytest.mark.asyncio
async def test_calendar_week_view(dispatcher: ToolDispatcher) -> None:
    data = payload(await call(dispatcher, "get_calendar", {"view": "week"}))

    assert (data["start"], data["end"]) == ("2025-09-15", "2025-09-21")
    assert [a["title"] for a in data["assignments"]] == ["Vocab Quiz", "Essay", "Fall Break"]


@pytest.mark.asyncio
async def test_calendar_month_view(dispatcher: ToolDispatcher) -> None:
    data = payload(await call(dispatcher, "get_calendar", {"view": "month"}))

    assert (data["start"], data["end"]) == ("2025-09-01", "2025-09-30")
    assert "Final Paper" not in [a["title"] for a in data["assignments"]]
    assert "Report" in [a["title"] for a in data["assignments"]]


@pytest.mark.asyncio
async def test_todo_lifecycle(dispatcher: ToolDispatcher, store: MemoryDatastore) -> None:
    added = payload(await call(dispatcher, "add_todo", {"title": "Print handout", "priority": "high", "category": "school"}))
    todo_id = added["todo"]["id"]
    assert added["todo"]["completed"] is False
    assert added["todo"]["created_at"].startswith("2025-09-16")

    todos = payload(await call(dispatcher, "get_todos", {"completed": False}))
    assert todos[0]["id"] == todo_id
    assert "t-laundry" not in [todo["id"] for todo in todos]

    updated = payload(await call(dispatcher, "update_todo", {"todo_id": todo_id, "completed": True}))
    assert updated["todo"]["completed"] is True

    empty = await call(dispatcher, "update_todo", {"todo_id": todo_id})
    assert payload(empty) == {"error": "No fields to update"}

    assert payload(await call(dispatcher, "delete_todo", {"todo_id": todo_id})) == {"success": True, "deleted": True}
    assert (await call(dispatcher, "delete_todo", {"todo_id": todo_id})).is_error


@pytest.mark.asyncio
async def test_courses_and_readings(dispatcher: ToolDispatcher) -> None:
    courses = payload(await call(dispatcher, "get_courses", {}))
    assert [c["id"] for c in courses] == ["ARTH224-F25", "FREN201-F25"]

    readings = payload(await call(dispatcher, "get_readings", {"course_id": "ARTH224-F25"}))
    assert [r["title"] for r in readings] == ["The Story of Art"]

    everything = payload(await call(dispatcher, "get_readings", {"week": 2, "include_completed": True}))
    assert [r["title"] for r in everything] == ["L'Etranger", "The Story of Art"]


@pytest.mark.asyncio
async def test_instruction_only_tools(dispatcher: ToolDispatcher) -> None:
    quiz = payload(await call(dispatcher, "vocab_quiz", {"topic": "food"}))
    assert "French vocabulary quiz" in quiz["instruction"]
    assert "10 words" in quiz["instruction"]

    practice = payload(await call(dispatcher, "conversation_practice", {"topic": "travel", "language": "Spanish"}))
    assert "Jenna" in practice["instruction"]

    prep = payload(await call(dispatcher, "exam_prep_generator", {
        "course_id": "ARTH224-F25", "exam_topic": "Baroque", "material_type": "flashcards",
    }))
    assert "flashcards for Baroque" in prep["instruction"]
