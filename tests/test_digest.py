"""Tests for the weekly digest and study summaries."""
from datetime import date, timedelta

from planner.digest import build_digest, frederick_note, upcoming_for_digest
from planner.models import Assignment, Course, StudySession
from planner.study import summarize_sessions
from conftest import NOW

TODAY = date(2025, 9, 16)


def make(title: str, due: str, status: str = "todo") -> Assignment:
    assignment = Assignment.from_row({"id": title, "course_id": "ARTH224-F25", "title": title,
                                      "due_date": due, "status": status})
    assignment.course = Course(id="ARTH224-F25", title="Art <History>", color="#3B82F6")
    return assignment


def session(minutes: int, started_at: str) -> StudySession:
    return StudySession.from_row({"id": started_at, "duration_minutes": minutes, "started_at": started_at})


def test_upcoming_covers_today_through_a_week_out() -> None:
    assignments = [
        make("Yesterday", "2025-09-15"),
        make("Today", "2025-09-16"),
        make("Week out", "2025-09-23"),
        make("Too far", "2025-09-24"),
        make("Finished", "2025-09-18", "done"),
        make("Holiday", "2025-09-19", "no-class"),
    ]
    assert [a.title for a in upcoming_for_digest(assignments, TODAY)] == ["Today", "Week out"]


def test_summarize_sessions_counts_only_recent_ones() -> None:
    sessions = [
        session(50, "2025-09-14T20:00:00Z"),
        session(25, "2025-09-10T18:30:00+00:00"),
        session(25, "2025-09-01T20:00:00Z"),
        session(30, "garbage"),
    ]
    summary = summarize_sessions(sessions, since=NOW - timedelta(days=7))

    assert summary.total_minutes == 75
    assert summary.session_count == 2
    assert summary.hours_and_minutes == (1, 15)


def test_note_depends_on_workload() -> None:
    assert "light week" in frederick_note(0)
    assert "manageable" in frederick_note(3)
    assert "busy week" in frederick_note(4)


def test_digest_html_escapes_and_lists_assignments() -> None:
    digest = build_digest([make("Essay <draft>", "2025-09-18")], [session(90, "2025-09-15T12:00:00Z")], TODAY, NOW)
    rendered = digest.render_html("Jenna")

    assert digest.end == date(2025, 9, 23)
    assert "Essay &lt;draft&gt;" in rendered
    assert "<div class=\"date\">Thu, Sep 18</div>" in rendered
    assert "Art &lt;History&gt;" in rendered
    assert "1h 30m studied" in rendered
    assert "Jenna" in rendered


def test_empty_digest_says_so() -> None:
    rendered = build_digest([], [], TODAY, NOW).render_html("Jenna")
    assert "No assignments due this week" in rendered
    assert "0h 0m studied" in rendered
