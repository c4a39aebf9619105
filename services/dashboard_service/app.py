"""
FastAPI service for the academic dashboard.

Exposes the chat assistant, syllabus import, the weekly digest and the record
endpoints in ``records``. Clients for the datastore and the language model are
created once in the lifespan and shared by every request.
"""
from __future__ import annotations

import logging
import typing as t
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from assistant.handlers import Clock, ToolDispatcher, utc_now
from assistant.loop import run_chat_turn
from assistant.models import ChatMessage
from assistant.provider import ChatProvider, ProviderError
from datastore import Datastore, DatastoreError, RecordNotFound
from datastore import queries
from planner import dates
from planner.digest import build_digest
from planner.models import StudySession
from services.config import Settings, build_datastore, build_provider
from services.dashboard_service import records
from services.dashboard_service.deps import (
    get_clock,
    get_datastore,
    get_dispatcher,
    get_provider,
    get_settings,
    require_cron_secret,
    require_loader_secret,
)
from services.log import configure_logging
from services.shared.models import (
    ChatRequest,
    ChatResponse,
    DigestResponse,
    InsertedCounts,
    LoadSyllabusResponse,
    ParsedSyllabus,
    SaveSyllabusResponse,
    SyllabusBundle,
)
from syllabus.importer import load_syllabus_bundle, save_parsed_syllabus
from syllabus.parser import parse_syllabus
from syllabus.pdf_utils import extract_pdf_pages_from_content

logger = logging.getLogger(__name__)

_PARAM_SOURCES = ("body", "query", "path", "header")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize resources on startup and cleanup on shutdown."""
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)

    if app.state.datastore is None:
        app.state.datastore = build_datastore(settings)
    if app.state.provider is None:
        if settings.openai_api_key:
            app.state.provider = build_provider(settings)
        else:
            logger.warning("OPENAI_API_KEY is not set; chat and syllabus parsing are unavailable")

    yield

    if app.state.provider is not None:
        await app.state.provider.aclose()
    await app.state.datastore.aclose()


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = exc.errors()[0]
    if error["type"] == "json_invalid":
        return JSONResponse(status_code=400, content={"error": "Invalid JSON"})
    field = ".".join(str(part) for part in error["loc"] if part not in _PARAM_SOURCES) or "body"
    if error["type"] == "missing":
        message = f"Missing required field: {field}"
    else:
        message = f"Invalid value for {field}: {error['msg']}"
    return JSONResponse(status_code=400, content={"error": message})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


async def datastore_error_handler(request: Request, exc: DatastoreError) -> JSONResponse:
    if isinstance(exc, RecordNotFound):
        return JSONResponse(status_code=404, content={"error": str(exc)})
    logger.error("Datastore error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    logger.error("Provider error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


def create_app(
    settings: t.Optional[Settings] = None,
    datastore: t.Optional[Datastore] = None,
    provider: t.Optional[ChatProvider] = None,
    clock: t.Optional[Clock] = None,
) -> FastAPI:
    """Build the application. Missing collaborators are created from settings at startup."""
    app = FastAPI(
        title="Academic Dashboard Service",
        description="Assignments, calendar, to-dos and the Frederick chat assistant",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings or Settings.from_env()
    app.state.datastore = datastore
    app.state.provider = provider
    app.state.clock = clock or utc_now

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(DatastoreError, datastore_error_handler)
    app.add_exception_handler(ProviderError, provider_error_handler)

    app.include_router(records.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint for container orchestration."""
        return {"status": "healthy", "service": "dashboard-service"}

    @app.post("/api/chat", response_model=ChatResponse)
    async def chat(
        request: ChatRequest,
        provider: ChatProvider = Depends(get_provider),
        dispatcher: ToolDispatcher = Depends(get_dispatcher),
        settings: Settings = Depends(get_settings),
    ) -> ChatResponse:
        """
        Answer the latest user message, running at most one tool.

        Provider failures surface as a 500 with a short error message.
        """
        messages = [ChatMessage(role=m.role, content=m.content) for m in request.messages]
        try:
            result = await run_chat_turn(messages, provider, dispatcher, settings.student_name)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return ChatResponse(content=result.content_blocks())

    @app.post("/api/parse-syllabus", response_model=ParsedSyllabus)
    async def parse_syllabus_upload(
        file: t.Optional[UploadFile] = File(None),
        provider: ChatProvider = Depends(get_provider),
    ) -> ParsedSyllabus:
        """
        Parse an uploaded syllabus PDF into structured data.

        This endpoint can take 30-60 seconds for complex PDFs due to LLM processing.
        """
        if file is None:
            raise HTTPException(status_code=400, detail="No file provided")
        content = await file.read()
        try:
            pages = await run_in_threadpool(extract_pdf_pages_from_content, content)
            return await parse_syllabus(provider, pages)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app.post("/api/save-parsed-syllabus", response_model=SaveSyllabusResponse)
    async def save_parsed(
        parsed: ParsedSyllabus,
        store: Datastore = Depends(get_datastore),
    ) -> SaveSyllabusResponse:
        try:
            result = await save_parsed_syllabus(store, parsed)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return SaveSyllabusResponse(
            courseId=result.course_id,
            assignmentsAdded=result.assignments,
            readingsAdded=result.readings,
        )

    @app.post(
        "/api/email-digest",
        response_model=DigestResponse,
        dependencies=[Depends(require_cron_secret)],
    )
    async def email_digest(
        store: Datastore = Depends(get_datastore),
        settings: Settings = Depends(get_settings),
        clock: Clock = Depends(get_clock),
    ) -> DigestResponse:
        """Week-ahead assignments and week-behind study time, rendered for email."""
        now = clock()
        assignments = await queries.load_assignments(store)
        rows = await store.select(queries.STUDY_SESSIONS)
        digest = build_digest(
            assignments,
            [StudySession.from_row(row) for row in rows],
            today=dates.today(now, settings.tz),
            now=now,
        )
        preview = digest.render_html(settings.student_name)
        logger.info(
            "Digest prepared: %d assignments, %d study minutes",
            len(digest.assignments),
            digest.study.total_minutes,
        )
        return DigestResponse(
            assignmentsCount=len(digest.assignments),
            studyMinutes=digest.study.total_minutes,
            previewHtml=preview,
        )

    @app.post(
        "/api/syllabus/load",
        response_model=LoadSyllabusResponse,
        dependencies=[Depends(require_loader_secret)],
    )
    async def load_syllabus(
        bundle: SyllabusBundle,
        store: Datastore = Depends(get_datastore),
    ) -> LoadSyllabusResponse:
        result = await load_syllabus_bundle(store, bundle)
        return LoadSyllabusResponse(
            inserted=InsertedCounts(assignments=result.assignments, readings=result.readings),
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
