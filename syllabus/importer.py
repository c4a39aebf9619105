"""Writes parsed syllabi and prepared bundles into the datastore."""
from __future__ import annotations

import logging
import random
import typing as t
import uuid
from dataclasses import dataclass

from datastore import Datastore, eq
from datastore.queries import ASSIGNMENTS, COURSES, READINGS
from planner.models import Status
from services.shared.models import ParsedSyllabus, SyllabusBundle

logger = logging.getLogger(__name__)

COURSE_COLORS = (
    "#3B82F6",  # blue
    "#F59E0B",  # amber
    "#A855F7",  # purple
    "#14B8A6",  # teal
    "#EF4444",  # red
    "#8B5CF6",  # violet
    "#10B981",  # green
    "#F97316",  # orange
)


@dataclass
class ImportResult:
    course_id: str
    assignments: int
    readings: int


def course_id_for(parsed: ParsedSyllabus) -> str:
    """The course code, else the first six letters of the title plus the term."""
    if parsed.course_code.strip():
        return parsed.course_code.strip()
    if not parsed.course_title.strip():
        raise ValueError("Missing required field: course_code or course_title")
    term = "".join(parsed.term.split())
    return f"{parsed.course_title.strip()[:6].upper()}-{term}"


async def save_parsed_syllabus(
    store: Datastore,
    parsed: ParsedSyllabus,
    choose_color: t.Callable[[t.Sequence[str]], str] = random.choice,
) -> ImportResult:
    """Upsert the course and append its assignments and readings.

    Raises:
        ValueError: If the syllabus names neither a code nor a title.
        DatastoreError: If any write fails. Earlier writes are not rolled back.
    """
    course_id = course_id_for(parsed)
    await store.upsert(
        COURSES,
        [
            {
                "id": course_id,
                "title": parsed.course_title or course_id,
                "professor": parsed.professor or None,
                "color": choose_color(COURSE_COLORS),
            }
        ],
        on_conflict="id",
    )

    if parsed.assignments:
        await store.insert(
            ASSIGNMENTS,
            [
                {
                    "id": str(uuid.uuid4()),
                    "course_id": course_id,
                    "title": a.title,
                    "due_date": a.due_date or None,
                    "notes": a.notes or None,
                    "status": (Status.NO_CLASS if a.type == "no-class" else Status.SCHEDULED).value,
                }
                for a in parsed.assignments
            ],
        )

    if parsed.readings:
        await store.insert(
            READINGS,
            [
                {
                    "id": str(uuid.uuid4()),
                    "course_id": course_id,
                    "week": r.week or None,
                    "title": r.title,
                    "source": r.source or None,
                    "pages": r.pages or None,
                    "is_required": r.required,
                    "completed": False,
                }
                for r in parsed.readings
            ],
        )

    logger.info(
        "Saved syllabus for %s: %d assignments, %d readings",
        course_id,
        len(parsed.assignments),
        len(parsed.readings),
    )
    return ImportResult(course_id, len(parsed.assignments), len(parsed.readings))


def _with_ids(rows: t.Iterable[dict[str, t.Any]], course_id: str) -> list[dict[str, t.Any]]:
    prepared = []
    for row in rows:
        prepared.append({**row, "id": row.get("id") or str(uuid.uuid4()), "course_id": row.get("course_id") or course_id})
    return prepared


async def load_syllabus_bundle(store: Datastore, bundle: SyllabusBundle) -> ImportResult:
    """Upsert a course and load its rows, replacing existing ones in replace mode."""
    course = bundle.course.model_dump(exclude_none=True)
    course_id = bundle.course.id
    await store.upsert(COURSES, [course], on_conflict="id")

    if bundle.mode == "replace":
        removed = await store.delete(ASSIGNMENTS, [eq("course_id", course_id)])
        removed_readings = await store.delete(READINGS, [eq("course_id", course_id)])
        logger.info(
            "Replacing %s: removed %d assignments, %d readings",
            course_id,
            len(removed),
            len(removed_readings),
        )

    if bundle.assignments:
        await store.insert(ASSIGNMENTS, _with_ids(bundle.assignments, course_id))
    if bundle.readings:
        await store.insert(READINGS, _with_ids(bundle.readings, course_id))

    return ImportResult(course_id, len(bundle.assignments), len(bundle.readings))
