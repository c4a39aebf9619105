"""Record-level reads shared by the HTTP handlers and the chat tools."""
from __future__ import annotations

import typing as t

from datastore.base import Datastore, Filter, Order, eq
from planner.assignments import attach_courses
from planner.models import Assignment, Course, parse_status

COURSES = "courses"
ASSIGNMENTS = "assignments"
TODOS = "todos"
READINGS = "readings"
NOTES = "notes"
STUDY_SESSIONS = "study_sessions"
COURSE_GRADES = "course_grades"

BY_DUE_DATE = (Order("due_date"), Order("title"))


async def load_courses(store: Datastore) -> list[Course]:
    rows = await store.select(COURSES, order=[Order("id")])
    return [Course.from_row(row) for row in rows]


async def load_assignments(
    store: Datastore,
    course_id: t.Optional[str] = None,
    status: t.Optional[str] = None,
    filters: t.Sequence[Filter] = (),
) -> list[Assignment]:
    """Fetch assignments with their course attached.

    ``status`` is matched after coercion, so legacy spellings and missing
    values are filtered the same way they are reported.
    """
    query = list(filters)
    if course_id:
        query.append(eq("course_id", course_id))
    rows = await store.select(ASSIGNMENTS, query, order=BY_DUE_DATE)
    assignments = [Assignment.from_row(row) for row in rows]
    if status:
        wanted = parse_status(status)
        assignments = [a for a in assignments if a.status is wanted]
    return attach_courses(assignments, await load_courses(store))


async def load_assignment(store: Datastore, assignment_id: str) -> Assignment:
    row = await store.get_by_id(ASSIGNMENTS, assignment_id)
    return attach_courses([Assignment.from_row(row)], await load_courses(store))[0]
