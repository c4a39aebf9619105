"""Pomodoro study sessions."""
from __future__ import annotations

import typing as t
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

from planner.models import StudySession

WORK_MINUTES = 25
BREAK_MINUTES = 5


@dataclass
class StudySummary:
    total_minutes: int
    session_count: int

    @property
    def hours_and_minutes(self) -> tuple[int, int]:
        return divmod(self.total_minutes, 60)


def _started_at(session: StudySession) -> t.Optional[datetime]:
    try:
        started = datetime.fromisoformat(session.started_at.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None
    if started.tzinfo is None:
        started = started.replace(tzinfo=timezone.utc)
    return started


def summarize_sessions(sessions: Iterable[StudySession], since: datetime) -> StudySummary:
    """Total focus minutes for sessions started at or after ``since``."""
    if since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    recent = []
    for session in sessions:
        started = _started_at(session)
        if started is not None and started >= since:
            recent.append(session)
    return StudySummary(
        total_minutes=sum(session.duration_minutes for session in recent),
        session_count=len(recent),
    )
