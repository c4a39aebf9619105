"""Tests for the PostgREST datastore, against a mocked transport."""
import json
import typing as t

import httpx
import pytest

from datastore import DatastoreError, Order, RecordNotFound, RestDatastore, eq, gte


class Recorder:
    """Mock transport handler that records requests and replays one response."""

    def __init__(self, status: int = 200, body: t.Any = None) -> None:
        self.status = status
        self.body = [] if body is None else body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.body)


def make_store(handler: t.Callable[[httpx.Request], httpx.Response]) -> RestDatastore:
    return RestDatastore("https://demo.supabase.co/", "service-key", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_select_builds_postgrest_query() -> None:
    recorder = Recorder(body=[{"id": "a1"}])
    store = make_store(recorder)

    rows = await store.select(
        "assignments",
        [eq("course_id", "ARTH224-F25"), gte("due_date", "2025-09-15"), eq("notes", None), eq("completed", False)],
        order=[Order("due_date"), Order("title", ascending=False)],
        limit=5,
    )

    assert rows == [{"id": "a1"}]
    request = recorder.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/assignments"
    params = request.url.params
    assert params["select"] == "*"
    assert params["course_id"] == "eq.ARTH224-F25"
    assert params["due_date"] == "gte.2025-09-15"
    assert params["notes"] == "is.null"
    assert params["completed"] == "eq.false"
    assert params["order"] == "due_date.asc.nullslast,title.desc.nullslast"
    assert params["limit"] == "5"
    assert request.headers["apikey"] == "service-key"
    assert request.headers["authorization"] == "Bearer service-key"
    await store.aclose()


@pytest.mark.asyncio
async def test_insert_asks_for_the_created_rows() -> None:
    recorder = Recorder(status=201, body=[{"id": "t1", "title": "New"}])
    store = make_store(recorder)

    rows = await store.insert("todos", [{"id": "t1", "title": "New"}])

    request = recorder.requests[0]
    assert rows[0]["id"] == "t1"
    assert request.method == "POST"
    assert request.headers["prefer"] == "return=representation"
    assert json.loads(request.content) == [{"id": "t1", "title": "New"}]


@pytest.mark.asyncio
async def test_upsert_merges_duplicates_on_conflict_column() -> None:
    recorder = Recorder(body=[{"course_id": "ARTH224-F25"}])
    store = make_store(recorder)

    await store.upsert("course_grades", [{"course_id": "ARTH224-F25", "current_grade": 90}], on_conflict="course_id")

    request = recorder.requests[0]
    assert request.url.params["on_conflict"] == "course_id"
    assert request.headers["prefer"] == "resolution=merge-duplicates,return=representation"


@pytest.mark.asyncio
async def test_update_by_id_with_no_match_raises_not_found() -> None:
    recorder = Recorder(body=[])
    store = make_store(recorder)

    with pytest.raises(RecordNotFound):
        await store.update_by_id("assignments", "missing", {"status": "done"})

    request = recorder.requests[0]
    assert request.method == "PATCH"
    assert request.url.params["id"] == "eq.missing"


@pytest.mark.asyncio
async def test_http_errors_carry_the_server_message() -> None:
    store = make_store(Recorder(status=400, body={"message": 'invalid input syntax for type date: "soon"'}))

    with pytest.raises(DatastoreError, match="invalid input syntax"):
        await store.select("assignments")


@pytest.mark.asyncio
async def test_timeouts_become_datastore_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    store = make_store(handler)

    with pytest.raises(DatastoreError, match="timed out"):
        await store.select("todos")


@pytest.mark.asyncio
async def test_empty_insert_makes_no_request() -> None:
    recorder = Recorder()
    store = make_store(recorder)

    assert await store.insert("todos", []) == []
    assert recorder.requests == []
