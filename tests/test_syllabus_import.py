"""Tests for syllabus parsing and import."""
import pytest

from datastore import MemoryDatastore, eq
from services.shared.models import ParsedAssignment, ParsedReading, ParsedSyllabus, SyllabusBundle
from syllabus.importer import COURSE_COLORS, course_id_for, load_syllabus_bundle, save_parsed_syllabus
from syllabus.parser import MAX_SYLLABUS_CHARS, convert_parsed_syllabus, parse_syllabus
from syllabus.pdf_utils import PdfExtractionError, extract_pdf_pages, extract_pdf_pages_from_content
from conftest import FakeProvider

MODEL_OUTPUT = {
    "course_code": "ARTH224",
    "course_title": "Baroque Art",
    "professor": "Dr. Moreau",
    "term": "Fall 2025",
    "assignments": [
        {"title": "Midterm", "due_date": "2025-10-14", "notes": "Slides 1-40", "type": "Exam"},
        {"title": "Fall Break", "due_date": "2025-10-13", "type": "no_class"},
        {"title": "Response paper", "due_date": None, "type": "quiz"},
        {"title": "", "due_date": "2025-10-01"},
        "not an object",
    ],
    "readings": [
        {"week": "3", "title": "Ways of Seeing", "source": "Berger", "pages": 12},
        {"week": "week four", "title": "Optional essay", "required": False},
        {"title": None},
    ],
}


def test_conversion_is_defensive() -> None:
    parsed = convert_parsed_syllabus(MODEL_OUTPUT)

    assert [a.title for a in parsed.assignments] == ["Midterm", "Fall Break", "Response paper"]
    assert [a.type for a in parsed.assignments] == ["exam", "no-class", "assignment"]
    assert parsed.assignments[2].due_date == ""
    assert parsed.readings[0].week == 3
    assert parsed.readings[0].pages == "12"
    assert parsed.readings[0].required is True
    assert parsed.readings[1].week is None
    assert parsed.readings[1].required is False
    assert len(parsed.readings) == 2


def test_conversion_of_an_empty_reply() -> None:
    assert convert_parsed_syllabus({}) == ParsedSyllabus()


@pytest.mark.asyncio
async def test_parse_syllabus_sends_truncated_text() -> None:
    provider = FakeProvider(json_reply=MODEL_OUTPUT)
    pages = ["Baroque Art syllabus", "x" * (MAX_SYLLABUS_CHARS + 500)]

    parsed = await parse_syllabus(provider, pages)

    assert parsed.course_code == "ARTH224"
    sent = provider.json_calls[0]
    assert len(sent["payload"]["full_text"]) == MAX_SYLLABUS_CHARS
    assert sent["payload"]["full_text"].startswith("Baroque Art syllabus\n\n")
    assert "JSON" in sent["system_prompt"]


@pytest.mark.asyncio
async def test_parse_syllabus_without_text() -> None:
    with pytest.raises(ValueError):
        await parse_syllabus(FakeProvider(), ["", "  "])


def test_pdf_extraction_rejects_bad_input(tmp_path) -> None:
    with pytest.raises(PdfExtractionError):
        extract_pdf_pages_from_content(b"")
    with pytest.raises(PdfExtractionError):
        extract_pdf_pages_from_content(b"this is not a pdf")
    with pytest.raises(FileNotFoundError):
        extract_pdf_pages(str(tmp_path / "missing.pdf"))


def test_course_id_falls_back_to_title_and_term() -> None:
    assert course_id_for(ParsedSyllabus(course_code=" FREN201 ")) == "FREN201"
    assert course_id_for(ParsedSyllabus(course_title="Baroque Art", term="Fall 2025")) == "BAROQU-Fall2025"
    with pytest.raises(ValueError):
        course_id_for(ParsedSyllabus())


@pytest.mark.asyncio
async def test_save_parsed_syllabus_writes_course_assignments_and_readings() -> None:
    store = MemoryDatastore()
    parsed = ParsedSyllabus(
        course_code="ARTH224",
        course_title="Baroque Art",
        professor="Dr. Moreau",
        term="Fall 2025",
        assignments=[
            ParsedAssignment(title="Midterm", due_date="2025-10-14", type="exam"),
            ParsedAssignment(title="Fall Break", due_date="2025-10-13", type="no-class"),
        ],
        readings=[ParsedReading(week=3, title="Ways of Seeing"), ParsedReading(title="Optional", required=False)],
    )

    result = await save_parsed_syllabus(store, parsed, choose_color=lambda colors: colors[0])

    assert (result.course_id, result.assignments, result.readings) == ("ARTH224", 2, 2)
    course = await store.get_by_id("courses", "ARTH224")
    assert course["color"] == COURSE_COLORS[0]
    assert course["professor"] == "Dr. Moreau"

    statuses = {row["title"]: row["status"] for row in await store.select("assignments")}
    assert statuses == {"Midterm": "scheduled", "Fall Break": "no-class"}

    readings = await store.select("readings", [eq("course_id", "ARTH224")])
    assert {r["title"]: r["is_required"] for r in readings} == {"Ways of Seeing": True, "Optional": False}
    assert all(r["completed"] is False for r in readings)


@pytest.mark.asyncio
async def test_saving_twice_updates_the_course_and_appends_rows() -> None:
    store = MemoryDatastore()
    parsed = ParsedSyllabus(course_code="ARTH224", course_title="Baroque Art",
                            assignments=[ParsedAssignment(title="Midterm", due_date="2025-10-14")])

    await save_parsed_syllabus(store, parsed)
    await save_parsed_syllabus(store, parsed)

    assert len(await store.select("courses")) == 1
    assert len(await store.select("assignments")) == 2


def bundle(mode: str = "replace") -> SyllabusBundle:
    return SyllabusBundle.model_validate({
        "mode": mode,
        "course": {"id": "ARTH224-F25", "title": "Art History", "color": "#14B8A6"},
        "assignments": [
            {"title": "Essay", "due_date": "2025-09-18", "status": "todo"},
            {"id": "fixed-id", "title": "Final", "due_date": "2025-12-10", "status": "scheduled"},
        ],
        "readings": [{"title": "Ways of Seeing", "week": 1}],
    })


@pytest.mark.asyncio
async def test_bundle_replace_mode_swaps_the_course_rows(store: MemoryDatastore) -> None:
    result = await load_syllabus_bundle(store, bundle("replace"))

    assert (result.assignments, result.readings) == (2, 1)
    rows = await store.select("assignments", [eq("course_id", "ARTH224-F25")])
    assert sorted(row["title"] for row in rows) == ["Essay", "Final"]
    assert all(row["id"] for row in rows)
    assert "fixed-id" in {row["id"] for row in rows}
    # other courses are untouched
    assert len(await store.select("assignments", [eq("course_id", "FREN201-F25")])) == 3
    readings = await store.select("readings", [eq("course_id", "ARTH224-F25")])
    assert [r["title"] for r in readings] == ["Ways of Seeing"]
    assert (await store.get_by_id("courses", "ARTH224-F25"))["color"] == "#14B8A6"


@pytest.mark.asyncio
async def test_bundle_append_mode_keeps_existing_rows(store: MemoryDatastore) -> None:
    await load_syllabus_bundle(store, bundle("append"))

    rows = await store.select("assignments", [eq("course_id", "ARTH224-F25")])
    assert len(rows) == 3 + 2
