"""
Execution of tool calls against the datastore.

:class:`ToolDispatcher` turns one validated tool call into datastore
operations and serializes the outcome for the model. It never raises for
problems the model can explain to the student: unknown tools, bad arguments
and datastore failures all come back as ``{"error": ...}`` results.
"""
from __future__ import annotations

import json
import logging
import typing as t
import uuid
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from assistant import tools
from assistant.models import ToolCall, ToolResult
from datastore import queries
from datastore.base import Datastore, DatastoreError, Order, eq
from planner import dates
from planner.assignments import Window, data_quality_warnings, filter_by_window, sort_chronological
from planner.models import Reading, Status, Todo

logger = logging.getLogger(__name__)

Clock = t.Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _format_validation_error(name: str, error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "arguments"
        problems.append(f"{field}: {item['msg']}")
    return f"Invalid arguments for {name}: " + "; ".join(problems)


class ToolDispatcher:
    """Runs tool calls for one chat turn.

    :param store: Datastore holding the student's records.
    :param tz: Fixed time zone for "today" and week/month windows.
    :param clock: Returns the current instant; injectable for tests.
    :param student_name: Used in instruction-only tool results.
    """

    def __init__(
        self,
        store: Datastore,
        tz: t.Optional[ZoneInfo] = None,
        clock: Clock = utc_now,
        student_name: str = "the student",
    ) -> None:
        self.store = store
        self.tz = tz or dates.TIMEZONE
        self.clock = clock
        self.student_name = student_name
        self._handlers: dict[str, t.Callable[[t.Any], t.Awaitable[t.Any]]] = {
            "get_assignments": self.get_assignments,
            "update_assignment_status": self.update_assignment_status,
            "add_assignment": self.add_assignment,
            "get_calendar": self.get_calendar,
            "get_courses": self.get_courses,
            "get_readings": self.get_readings,
            "get_todos": self.get_todos,
            "add_todo": self.add_todo,
            "update_todo": self.update_todo,
            "delete_todo": self.delete_todo,
            "vocab_quiz": self.vocab_quiz,
            "grammar_help": self.grammar_help,
            "conversation_practice": self.conversation_practice,
            "essay_feedback": self.essay_feedback,
            "exam_prep_generator": self.exam_prep_generator,
            "web_search": self.web_search,
        }

    def today(self) -> date:
        return dates.today(self.clock(), self.tz)

    async def dispatch(self, call: ToolCall) -> ToolResult:
        """Execute ``call`` and return its serialized result."""
        payload = await self._run(call)
        is_error = isinstance(payload, dict) and "error" in payload
        if is_error:
            logger.warning("Tool %s failed: %s", call.name, payload["error"])
        else:
            logger.info("Tool %s completed", call.name)
        return ToolResult(
            tool_call_id=call.id,
            content=json.dumps(payload, default=str),
            is_error=is_error,
        )

    async def _run(self, call: ToolCall) -> t.Any:
        spec = tools.TOOLS_BY_NAME.get(call.name)
        handler = self._handlers.get(call.name)
        if spec is None or handler is None:
            return {"error": f"Unknown tool: {call.name}"}
        if call.arguments is None:
            return {"error": f"Arguments for {call.name} were not valid JSON"}
        try:
            params = spec.input_model.model_validate(call.arguments)
        except ValidationError as e:
            return {"error": _format_validation_error(call.name, e)}
        try:
            return await handler(params)
        except DatastoreError as e:
            return {"error": str(e)}

    # -----------------------------
    # Assignments
    # -----------------------------

    async def get_assignments(self, params: tools.GetAssignmentsInput) -> dict[str, t.Any]:
        assignments = await queries.load_assignments(
            self.store, course_id=params.course_id, status=params.status
        )
        selected = filter_by_window(
            assignments,
            Window(params.date_range),
            self.today(),
            include_no_class=params.status == Status.NO_CLASS.value,
        )
        result: dict[str, t.Any] = {
            "date_range": params.date_range,
            "assignments": [a.to_dict() for a in sort_chronological(selected)],
        }
        warnings = data_quality_warnings(assignments)
        if warnings:
            result["warnings"] = warnings
        return result

    async def update_assignment_status(self, params: tools.UpdateAssignmentStatusInput) -> dict[str, t.Any]:
        values: dict[str, t.Any] = {"status": params.status}
        if params.notes:
            values["notes"] = params.notes
        await self.store.update_by_id(queries.ASSIGNMENTS, params.assignment_id, values)
        assignment = await queries.load_assignment(self.store, params.assignment_id)
        return {"success": True, "assignment": assignment.to_dict()}

    async def add_assignment(self, params: tools.AddAssignmentInput) -> dict[str, t.Any]:
        rows = await self.store.insert(queries.ASSIGNMENTS, [{
            "id": str(uuid.uuid4()),
            "course_id": params.course_id,
            "title": params.title,
            "due_date": params.due_date.isoformat(),
            "notes": params.notes or None,
            "status": Status.TODO.value,
        }])
        assignment = await queries.load_assignment(self.store, rows[0]["id"])
        return {"success": True, "assignment": assignment.to_dict()}

    async def get_calendar(self, params: tools.GetCalendarInput) -> dict[str, t.Any]:
        today = self.today()
        if params.view == "week":
            start, end = dates.week_bounds(today)
        else:
            start, end = dates.month_bounds(today)
        # Compared after zone conversion; timestamp strings do not order like dates.
        assignments = [
            a for a in await queries.load_assignments(self.store)
            if a.due_date is not None and start <= a.due_date <= end
        ]
        return {
            "view": params.view,
            "start": start.isoformat(),
            "end": end.isoformat(),
            "assignments": [a.to_dict() for a in sort_chronological(assignments)],
        }

    # -----------------------------
    # Courses and readings
    # -----------------------------

    async def get_courses(self, params: tools.GetCoursesInput) -> list[dict[str, t.Any]]:
        return [course.to_dict() for course in await queries.load_courses(self.store)]

    async def get_readings(self, params: tools.GetReadingsInput) -> list[dict[str, t.Any]]:
        filters = []
        if params.course_id:
            filters.append(eq("course_id", params.course_id))
        if params.week is not None:
            filters.append(eq("week", params.week))
        rows = await self.store.select(queries.READINGS, filters, order=[Order("week"), Order("title")])
        readings = [Reading.from_row(row) for row in rows]
        if not params.include_completed:
            readings = [r for r in readings if not r.completed]
        return [r.to_dict() for r in readings]

    # -----------------------------
    # Todos
    # -----------------------------

    async def get_todos(self, params: tools.GetTodosInput) -> list[dict[str, t.Any]]:
        filters = []
        if params.completed is not None:
            filters.append(eq("completed", params.completed))
        if params.category:
            filters.append(eq("category", params.category))
        if params.priority:
            filters.append(eq("priority", params.priority))
        rows = await self.store.select(queries.TODOS, filters, order=[Order("created_at", ascending=False)])
        return [Todo.from_row(row).to_dict() for row in rows]

    async def add_todo(self, params: tools.AddTodoInput) -> dict[str, t.Any]:
        rows = await self.store.insert(queries.TODOS, [{
            "id": str(uuid.uuid4()),
            "title": params.title,
            "description": params.description or None,
            "category": params.category,
            "priority": params.priority,
            "due_date": params.due_date.isoformat() if params.due_date else None,
            "completed": False,
            "created_at": self.clock().isoformat(),
        }])
        return {"success": True, "todo": Todo.from_row(rows[0]).to_dict()}

    async def update_todo(self, params: tools.UpdateTodoInput) -> dict[str, t.Any]:
        values = params.model_dump(exclude={"todo_id"}, exclude_none=True)
        if "due_date" in values:
            values["due_date"] = values["due_date"].isoformat()
        if not values:
            return {"error": "No fields to update"}
        row = await self.store.update_by_id(queries.TODOS, params.todo_id, values)
        return {"success": True, "todo": Todo.from_row(row).to_dict()}

    async def delete_todo(self, params: tools.DeleteTodoInput) -> dict[str, t.Any]:
        await self.store.delete_by_id(queries.TODOS, params.todo_id)
        return {"success": True, "deleted": True}

    # -----------------------------
    # Instruction-only tools
    # -----------------------------

    async def vocab_quiz(self, params: tools.VocabQuizInput) -> dict[str, str]:
        return {"instruction": (
            f'Generate a {params.language} vocabulary quiz on "{params.topic}" with {params.count} words. '
            f"Include the {params.language} word, English translation, and an example sentence for each."
        )}

    async def grammar_help(self, params: tools.GrammarHelpInput) -> dict[str, str]:
        return {"instruction": (
            f'Explain the {params.language} grammar concept "{params.concept}" '
            f"with clear examples and practice exercises."
        )}

    async def conversation_practice(self, params: tools.ConversationPracticeInput) -> dict[str, str]:
        return {"instruction": (
            f'Start a {params.language} conversation about "{params.topic}". Respond in {params.language} '
            f"and provide gentle corrections to {self.student_name}'s responses."
        )}

    async def essay_feedback(self, params: tools.EssayFeedbackInput) -> dict[str, str]:
        return {"instruction": (
            f"Review this {params.language} essay and provide detailed feedback on grammar, "
            f"vocabulary, and style:\n\n{params.essay_text}"
        )}

    async def exam_prep_generator(self, params: tools.ExamPrepInput) -> dict[str, str]:
        return {"instruction": (
            f"Generate {params.material_type} for {params.exam_topic} in course {params.course_id}. "
            f"Difficulty: {params.difficulty}.\n"
            "For study_guide: Create a comprehensive outline with key concepts, important "
            "dates/people/terms, and connections between topics.\n"
            "For practice_questions: Create 10-15 questions with answers. Include multiple choice, "
            "short answer, and essay prompts.\n"
            "For flashcards: Create 20-25 flashcard pairs (question/answer or term/definition).\n"
            "Format the output clearly with headings and structure."
        )}

    async def web_search(self, params: tools.WebSearchInput) -> dict[str, str]:
        return {"instruction": (
            f'Web search is not configured, so "{params.query}" could not be searched. '
            "Offer search terms, reliable academic databases, or an explanation from what you "
            f"already know, and ask what specific information is needed about \"{params.query}\"."
        )}
