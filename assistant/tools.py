"""
Tool catalog offered to the language model.

Each tool is declared by a pydantic input model; the model's JSON schema is
what the LLM sees, and the same model validates the arguments it sends back.
"""
from __future__ import annotations

import typing as t
from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel, Field

AssignmentStatus = t.Literal["todo", "in-progress", "done", "scheduled", "no-class"]
StatusUpdate = t.Literal["todo", "in-progress", "done"]
DateRange = t.Literal["today", "this_week", "this_month", "overdue", "all"]
CategoryName = t.Literal["school", "personal", "errands", "work", "health", "general"]
PriorityName = t.Literal["low", "medium", "high"]


class GetAssignmentsInput(BaseModel):
    course_id: t.Optional[str] = Field(None, description="Filter by course ID (e.g., ARTH224-F25).")
    status: t.Optional[AssignmentStatus] = Field(None, description="Filter by status.")
    date_range: DateRange = Field("this_week", description="Date range filter. Default: this_week")


class UpdateAssignmentStatusInput(BaseModel):
    assignment_id: str = Field(..., description="ID of the assignment to update")
    status: StatusUpdate = Field(..., description="New status")
    notes: t.Optional[str] = Field(None, description="Optional notes to add/update")


class AddAssignmentInput(BaseModel):
    course_id: str = Field(..., description="Course ID (e.g., ARTH224-F25)")
    title: str = Field(..., min_length=1, description="Assignment title")
    due_date: date = Field(..., description="Due date in YYYY-MM-DD format")
    notes: t.Optional[str] = Field(None, description="Optional notes")


class GetCalendarInput(BaseModel):
    view: t.Literal["week", "month"] = Field("week", description="Calendar view type. Default: week")


class GetCoursesInput(BaseModel):
    pass


class GetReadingsInput(BaseModel):
    course_id: t.Optional[str] = Field(None, description="Filter by course ID.")
    week: t.Optional[int] = Field(None, description="Filter by syllabus week number.")
    include_completed: bool = Field(False, description="Include readings already finished.")


class GetTodosInput(BaseModel):
    completed: t.Optional[bool] = Field(None, description="Filter by completion status.")
    category: t.Optional[CategoryName] = Field(None, description="Filter by category.")
    priority: t.Optional[PriorityName] = Field(None, description="Filter by priority.")


class AddTodoInput(BaseModel):
    title: str = Field(..., min_length=1, description="Task title")
    description: t.Optional[str] = Field(None, description="Optional task description")
    category: CategoryName = Field("general", description="Task category. Default: general")
    priority: PriorityName = Field("medium", description="Task priority. Default: medium")
    due_date: t.Optional[date] = Field(None, description="Due date in YYYY-MM-DD format.")


class UpdateTodoInput(BaseModel):
    todo_id: str = Field(..., description="ID of the todo to update")
    completed: t.Optional[bool] = Field(None, description="Mark as completed/uncompleted")
    title: t.Optional[str] = Field(None, description="New title")
    priority: t.Optional[PriorityName] = Field(None, description="New priority")
    category: t.Optional[CategoryName] = Field(None, description="New category")
    due_date: t.Optional[date] = Field(None, description="New due date in YYYY-MM-DD format")


class DeleteTodoInput(BaseModel):
    todo_id: str = Field(..., description="ID of the todo to delete")


class VocabQuizInput(BaseModel):
    topic: str = Field(..., description='Topic or theme (e.g., "food", "travel", "subjunctive verbs")')
    language: str = Field("French", description="Language being studied. Default: French")
    count: int = Field(10, ge=1, le=50, description="Number of words. Default: 10")


class GrammarHelpInput(BaseModel):
    concept: str = Field(..., description='Grammar concept (e.g., "subjunctive", "passé composé")')
    language: str = Field("French", description="Language being studied. Default: French")


class ConversationPracticeInput(BaseModel):
    topic: str = Field(..., description='Conversation topic (e.g., "daily routine", "travel plans")')
    language: str = Field("French", description="Language to converse in. Default: French")


class EssayFeedbackInput(BaseModel):
    essay_text: str = Field(..., description="The essay text to review")
    language: str = Field("French", description="Language of the essay. Default: French")


class ExamPrepInput(BaseModel):
    course_id: str = Field(..., description="Course ID for the exam")
    exam_topic: str = Field(..., description="Main topic or chapter for the exam")
    material_type: t.Literal["study_guide", "practice_questions", "flashcards"] = Field(
        ..., description="Type of study material to generate"
    )
    difficulty: t.Literal["easy", "medium", "hard"] = Field("medium", description="Difficulty level. Default: medium")


class WebSearchInput(BaseModel):
    query: str = Field(..., description="Search query")
    focus: t.Literal["academic", "news", "general"] = Field(
        "general", description="Search focus. Use academic for scholarly sources. Default: general"
    )


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_model: type[BaseModel]

    def openai_schema(self) -> dict[str, t.Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_model.model_json_schema(),
            },
        }


TOOL_CATALOG: tuple[ToolSpec, ...] = (
    ToolSpec(
        "get_assignments",
        "Get assignments filtered by date range, course, or status. Returns upcoming, overdue, or all assignments.",
        GetAssignmentsInput,
    ),
    ToolSpec(
        "update_assignment_status",
        "Update the status of an assignment. Use this when the student completes work or wants to track progress.",
        UpdateAssignmentStatusInput,
    ),
    ToolSpec(
        "add_assignment",
        "Create a new assignment. Use when the student mentions a new deadline.",
        AddAssignmentInput,
    ),
    ToolSpec(
        "get_calendar",
        "Get a calendar view of assignments for the current week or month.",
        GetCalendarInput,
    ),
    ToolSpec("get_courses", "List the student's courses with their IDs and professors.", GetCoursesInput),
    ToolSpec(
        "get_readings",
        "Get course readings, optionally for one course or syllabus week.",
        GetReadingsInput,
    ),
    ToolSpec(
        "get_todos",
        "Get to-do list items. Can filter by completion status, category, or priority.",
        GetTodosInput,
    ),
    ToolSpec("add_todo", "Add a new task to the to-do list.", AddTodoInput),
    ToolSpec(
        "update_todo",
        "Update a to-do item. Can mark as completed, change priority, or edit details.",
        UpdateTodoInput,
    ),
    ToolSpec("delete_todo", "Delete a to-do item.", DeleteTodoInput),
    ToolSpec(
        "vocab_quiz",
        "Generate a vocabulary quiz with translations and example sentences.",
        VocabQuizInput,
    ),
    ToolSpec("grammar_help", "Explain grammar concepts with examples and exercises.", GrammarHelpInput),
    ToolSpec(
        "conversation_practice",
        "Start a conversation practice session in the target language, with corrections.",
        ConversationPracticeInput,
    ),
    ToolSpec(
        "essay_feedback",
        "Review an essay for grammar, vocabulary, and style. Provide corrections and suggestions.",
        EssayFeedbackInput,
    ),
    ToolSpec(
        "exam_prep_generator",
        "Generate study materials for an upcoming exam: study guide, practice questions, or flashcards.",
        ExamPrepInput,
    ),
    ToolSpec(
        "web_search",
        "Search the web for academic resources, research sources, or factual information.",
        WebSearchInput,
    ),
)

TOOLS_BY_NAME: dict[str, ToolSpec] = {spec.name: spec for spec in TOOL_CATALOG}


def list_tool_schemas() -> list[dict[str, t.Any]]:
    """OpenAI function-tool schemas for the whole catalog."""
    return [spec.openai_schema() for spec in TOOL_CATALOG]
