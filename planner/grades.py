"""
GPA calculation on a 4.0 scale.

Percent grades are mapped to grade points with the university's letter-grade
cut-offs and weighted by course credits.
"""
from __future__ import annotations

import typing as t
from collections.abc import Iterable

from planner.models import GradeEntry

DEFAULT_CREDITS = 3

# (minimum percent, grade points), highest first
GRADE_POINT_CUTOFFS: list[tuple[float, float]] = [
    (93, 4.0),
    (90, 3.7),
    (87, 3.3),
    (83, 3.0),
    (80, 2.7),
    (77, 2.3),
    (73, 2.0),
    (70, 1.7),
    (67, 1.3),
    (65, 1.0),
]


def grade_to_points(percent: float) -> float:
    for cutoff, points in GRADE_POINT_CUTOFFS:
        if percent >= cutoff:
            return points
    return 0.0


def calculate_gpa(entries: Iterable[GradeEntry], use_projected: bool = False) -> t.Optional[float]:
    """Credit-weighted GPA, rounded to two decimals.

    With ``use_projected`` the projected grade is used where present, falling
    back to the current grade. Courses without a grade are skipped; returns
    None when no course has one.
    """
    total_points = 0.0
    total_credits = 0.0
    for entry in entries:
        grade = entry.current_grade
        if use_projected and entry.projected_grade is not None:
            grade = entry.projected_grade
        if grade is None:
            continue
        total_points += grade_to_points(grade) * entry.credits
        total_credits += entry.credits
    if total_credits == 0:
        return None
    return round(total_points / total_credits, 2)


def build_grade_entries(
    courses: Iterable[dict[str, t.Any]],
    grade_rows: Iterable[dict[str, t.Any]],
) -> list[GradeEntry]:
    """Join course rows with their ``course_grades`` rows."""
    grades_by_course = {row.get("course_id"): row for row in grade_rows}
    entries = []
    for course in courses:
        grade = grades_by_course.get(course.get("id"), {})
        entries.append(GradeEntry(
            course_id=str(course.get("id", "")),
            course_title=course.get("title") or "",
            credits=grade.get("credits") or DEFAULT_CREDITS,
            current_grade=grade.get("current_grade"),
            projected_grade=grade.get("projected_grade"),
        ))
    return entries
