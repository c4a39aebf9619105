"""Shared fixtures: a seeded in-memory datastore, a scripted provider and an app client."""
import typing as t
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from assistant.handlers import ToolDispatcher
from assistant.models import ModelReply, StopReason, ToolCall, TranscriptEntry
from assistant.provider import ChatProvider
from datastore import MemoryDatastore
from planner.dates import TIMEZONE
from services.config import Settings
from services.dashboard_service.app import create_app

# Tuesday 2025-09-16, 14:00 in New York
NOW = datetime(2025, 9, 16, 18, 0, tzinfo=timezone.utc)

CRON_SECRET = "cron-secret"
LOADER_SECRET = "loader-secret"


def fixed_clock() -> datetime:
    return NOW


def text_reply(text: str) -> ModelReply:
    return ModelReply(stop_reason=StopReason.END_TURN, text=text)


def tool_reply(name: str, arguments: t.Optional[dict[str, t.Any]], call_id: str = "call_1") -> ModelReply:
    return ModelReply(
        stop_reason=StopReason.TOOL_USE,
        tool_call=ToolCall(id=call_id, name=name, arguments=arguments),
    )


class FakeProvider(ChatProvider):
    """Replays scripted replies and records every request.

    A scripted reply may be a ModelReply or a callable that receives the
    transcript and returns one.
    """

    def __init__(self, replies: t.Sequence[t.Any] = (), json_reply: t.Optional[dict[str, t.Any]] = None) -> None:
        self.replies = list(replies)
        self.json_reply = json_reply or {}
        self.calls: list[dict[str, t.Any]] = []
        self.json_calls: list[dict[str, t.Any]] = []

    async def complete(
        self,
        system_prompt: str,
        transcript: t.Sequence[TranscriptEntry],
        tools: t.Sequence[dict[str, t.Any]] = (),
        allow_tools: bool = True,
    ) -> ModelReply:
        self.calls.append({
            "system_prompt": system_prompt,
            "transcript": list(transcript),
            "tools": list(tools),
            "allow_tools": allow_tools,
        })
        if not self.replies:
            raise AssertionError("FakeProvider ran out of scripted replies")
        reply = self.replies.pop(0)
        if callable(reply):
            reply = reply(list(transcript))
        return reply

    async def complete_json(self, system_prompt: str, payload: dict[str, t.Any]) -> dict[str, t.Any]:
        self.json_calls.append({"system_prompt": system_prompt, "payload": payload})
        return self.json_reply


def seed_tables() -> dict[str, list[dict[str, t.Any]]]:
    return {
        "courses": [
            {"id": "ARTH224-F25", "title": "Art History", "professor": "Dr. Moreau", "color": "#3B82F6"},
            {"id": "FREN201-F25", "title": "Intermediate French", "professor": "Mme Laurent", "color": "#F59E0B"},
        ],
        "assignments": [
            {"id": "a-essay", "course_id": "ARTH224-F25", "title": "Essay", "due_date": "2025-09-18", "status": "todo"},
            {"id": "a-report", "course_id": "FREN201-F25", "title": "Report", "due_date": "2025-09-12", "status": "todo"},
            {"id": "a-quiz", "course_id": "FREN201-F25", "title": "Vocab Quiz", "due_date": "2025-09-16",
             "status": "in-progress"},
            {"id": "a-final", "course_id": "ARTH224-F25", "title": "Final Paper", "due_date": "2025-10-20",
             "status": "scheduled"},
            {"id": "a-break", "course_id": "ARTH224-F25", "title": "Fall Break", "due_date": "2025-09-19",
             "status": "no-class"},
            {"id": "a-mystery", "course_id": "FREN201-F25", "title": "Mystery", "due_date": "next tuesday",
             "status": "todo"},
        ],
        "todos": [
            {"id": "t-notebook", "title": "Buy notebook", "category": "errands", "priority": "high",
             "due_date": "2025-09-15", "completed": False, "created_at": "2025-09-10T12:00:00+00:00"},
            {"id": "t-call", "title": "Call home", "category": "personal", "priority": "low",
             "due_date": None, "completed": False, "created_at": "2025-09-12T12:00:00+00:00"},
            {"id": "t-laundry", "title": "Laundry", "category": "general", "priority": "medium",
             "due_date": "2025-09-14", "completed": True, "created_at": "2025-09-11T12:00:00+00:00"},
        ],
        "readings": [
            {"id": "r-berger", "course_id": "ARTH224-F25", "week": 1, "title": "Ways of Seeing",
             "source": "John Berger", "is_required": True, "completed": True},
            {"id": "r-gombrich", "course_id": "ARTH224-F25", "week": 2, "title": "The Story of Art",
             "source": "E. H. Gombrich", "pages": "1-40", "is_required": True, "completed": False},
            {"id": "r-camus", "course_id": "FREN201-F25", "week": 2, "title": "L'Etranger",
             "is_required": False, "completed": False},
        ],
        "notes": [
            {"id": "n-essay", "note_type": "assignment", "reference_id": "a-essay",
             "content": "Focus on Caravaggio", "created_at": "2025-09-13T15:00:00+00:00"},
        ],
        "study_sessions": [
            {"id": "s-recent", "course_id": "FREN201-F25", "task_description": "Flashcards",
             "duration_minutes": 50, "started_at": "2025-09-14T20:00:00+00:00"},
            {"id": "s-old", "course_id": "ARTH224-F25", "task_description": "Reading",
             "duration_minutes": 25, "started_at": "2025-09-01T20:00:00+00:00"},
        ],
        "course_grades": [
            {"id": "g-arth", "course_id": "ARTH224-F25", "credits": 3, "current_grade": 94, "projected_grade": 91},
            {"id": "g-fren", "course_id": "FREN201-F25", "credits": 4, "current_grade": 85, "projected_grade": None},
        ],
    }


@pytest.fixture
def store() -> MemoryDatastore:
    return MemoryDatastore(seed_tables())


@pytest.fixture
def dispatcher(store: MemoryDatastore) -> ToolDispatcher:
    return ToolDispatcher(store, tz=TIMEZONE, clock=fixed_clock, student_name="Jenna")


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key="sk-test",
        cron_secret=CRON_SECRET,
        loader_secret=LOADER_SECRET,
        student_name="Jenna",
        log_level="WARNING",
    )


@pytest.fixture
def client(settings: Settings, store: MemoryDatastore, provider: FakeProvider) -> t.Iterator[TestClient]:
    app = create_app(settings=settings, datastore=store, provider=provider, clock=fixed_clock)
    with TestClient(app) as test_client:
        yield test_client
