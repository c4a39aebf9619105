"""
Turns extracted syllabus text into a ParsedSyllabus via a JSON-mode completion.

Parsing can take 30-60 seconds for long syllabi; callers should not hold
locks across it.
"""
from __future__ import annotations

import logging
import typing as t

from assistant.provider import ChatProvider
from prompts import load_prompt
from services.shared.models import ParsedAssignment, ParsedReading, ParsedSyllabus

logger = logging.getLogger(__name__)

MAX_SYLLABUS_CHARS = 30000
ITEM_TYPES = ("assignment", "exam", "paper", "presentation", "no-class")


async def parse_syllabus(provider: ChatProvider, pages: t.Sequence[str]) -> ParsedSyllabus:
    """Ask the model for the structured syllabus and convert it defensively.

    Raises:
        ValueError: If no text could be extracted from the document.
        ProviderError: If the model request fails or returns invalid JSON.
    """
    full_text = "\n\n".join(pages)
    if not full_text.strip():
        raise ValueError("No text could be extracted from the syllabus")
    if len(full_text) > MAX_SYLLABUS_CHARS:
        logger.info("Syllabus text truncated from %d characters", len(full_text))

    data = await provider.complete_json(
        load_prompt("syllabus_parser_system_prompt"),
        {"full_text": full_text[:MAX_SYLLABUS_CHARS]},
    )
    return convert_parsed_syllabus(data)


def _text(value: t.Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _week(value: t.Any) -> t.Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _item_type(value: t.Any) -> str:
    kind = _text(value).lower().replace("_", "-").replace(" ", "-")
    return kind if kind in ITEM_TYPES else "assignment"


def convert_parsed_syllabus(data: dict[str, t.Any]) -> ParsedSyllabus:
    """
    Convert raw JSON from the model into a ParsedSyllabus.

    Missing or mistyped fields fall back to empty values; entries without a
    title are dropped.
    """
    assignments: list[ParsedAssignment] = []
    for a in data.get("assignments", []) or []:
        if not isinstance(a, dict) or not _text(a.get("title")):
            continue
        assignments.append(
            ParsedAssignment(
                title=_text(a.get("title")),
                due_date=_text(a.get("due_date")),
                notes=_text(a.get("notes")),
                type=_item_type(a.get("type")),
            )
        )

    readings: list[ParsedReading] = []
    for r in data.get("readings", []) or []:
        if not isinstance(r, dict) or not _text(r.get("title")):
            continue
        readings.append(
            ParsedReading(
                week=_week(r.get("week")),
                title=_text(r.get("title")),
                source=_text(r.get("source")),
                pages=_text(r.get("pages")),
                required=r.get("required") is not False,
            )
        )

    return ParsedSyllabus(
        course_code=_text(data.get("course_code")),
        course_title=_text(data.get("course_title")),
        professor=_text(data.get("professor")),
        term=_text(data.get("term")),
        assignments=assignments,
        readings=readings,
    )
