"""
Weekly study digest.

Builds the Sunday-evening summary: open assignments due over the coming week
and the focus time logged over the past week, plus a short note from
Frederick chosen by how busy the week looks.
"""
from __future__ import annotations

import html
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from planner.assignments import sort_chronological
from planner.models import Assignment, Status, StudySession
from planner.study import StudySummary, summarize_sessions

DIGEST_DAYS = 7
DEFAULT_ACCENT = "#8b6914"


def frederick_note(assignment_count: int) -> str:
    if assignment_count == 0:
        return ("A light week ahead, meow! Perfect time to explore beyond the syllabus "
                "or simply rest your paws.")
    if assignment_count <= 3:
        return ("A manageable week ahead. Pace yourself, and remember - even the sharpest "
                "claws need regular sharpening.")
    return ("Quite the busy week! Break it into smaller mice to catch. One task at a time, "
            "one paw in front of the other.")


@dataclass
class Digest:
    start: date
    end: date
    assignments: list[Assignment]
    study: StudySummary
    note: str

    def render_html(self, student_name: str) -> str:
        return render_digest_html(self, student_name)


def upcoming_for_digest(assignments: Iterable[Assignment], today: date) -> list[Assignment]:
    """Open assignments due between today and a week from today, inclusive."""
    end = today + timedelta(days=DIGEST_DAYS)
    selected = [
        a for a in assignments
        if a.due_date is not None
        and today <= a.due_date <= end
        and a.status not in (Status.DONE, Status.NO_CLASS)
    ]
    return sort_chronological(selected)


def build_digest(
    assignments: Iterable[Assignment],
    sessions: Iterable[StudySession],
    today: date,
    now: datetime,
) -> Digest:
    upcoming = upcoming_for_digest(assignments, today)
    study = summarize_sessions(sessions, since=now - timedelta(days=DIGEST_DAYS))
    return Digest(
        start=today,
        end=today + timedelta(days=DIGEST_DAYS),
        assignments=upcoming,
        study=study,
        note=frederick_note(len(upcoming)),
    )


def _assignment_block(assignment: Assignment) -> str:
    course = assignment.course
    accent = (course.color if course and course.color and course.color.startswith("#") else None) or DEFAULT_ACCENT
    due = f"{assignment.due_date:%a, %b} {assignment.due_date.day}" if assignment.due_date else ""
    return (
        f'<div class="assignment" style="border-color: {html.escape(accent)}">'
        f'<div class="date">{due}</div>'
        f"<div><strong>{html.escape(assignment.title)}</strong></div>"
        f'<div class="course">{html.escape(course.title if course else "")}</div>'
        f"</div>"
    )


def render_digest_html(digest: Digest, student_name: str) -> str:
    if digest.assignments:
        upcoming = "\n".join(_assignment_block(a) for a in digest.assignments)
    else:
        upcoming = "<p>No assignments due this week! Time to get ahead or take a well-deserved break.</p>"
    hours, minutes = digest.study.hours_and_minutes
    name = html.escape(student_name)

    lines = [
        "<!DOCTYPE html>",
        "<html>",
        "<body>",
        '<div class="container">',
        "<h1>Your Weekly Study Digest</h1>",
        f"<p><em>Frederick's weekly summary for {name}</em></p>",
        "<h2>Coming Up This Week</h2>",
        upcoming,
        "<h2>Last Week's Study Stats</h2>",
        f'<div><span class="stat">{hours}h {minutes}m studied</span>',
        f'<span class="stat">{digest.study.session_count} focus sessions</span></div>',
        "<h2>Frederick's Note</h2>",
        f"<blockquote>{html.escape(digest.note)}</blockquote>",
        "</div>",
        "</body>",
        "</html>",
    ]
    return "\n".join(lines)
