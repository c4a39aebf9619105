"""Request-scoped access to the clients created in the app lifespan."""
from __future__ import annotations

import hmac
import typing as t
from datetime import date, datetime

from fastapi import Depends, Header, HTTPException, Request

from assistant.handlers import Clock, ToolDispatcher
from assistant.provider import ChatProvider, ProviderError
from datastore import Datastore
from planner import dates
from services.config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_datastore(request: Request) -> Datastore:
    return request.app.state.datastore


def get_provider(request: Request) -> ChatProvider:
    provider = request.app.state.provider
    if provider is None:
        raise ProviderError("OPENAI_API_KEY is not set")
    return provider


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_now(clock: Clock = Depends(get_clock)) -> datetime:
    return clock()


def get_today(now: datetime = Depends(get_now), settings: Settings = Depends(get_settings)) -> date:
    return dates.today(now, settings.tz)


def get_dispatcher(
    store: Datastore = Depends(get_datastore),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> ToolDispatcher:
    return ToolDispatcher(store, tz=settings.tz, clock=clock, student_name=settings.student_name)


def check_secret(expected: str, provided: t.Optional[str]) -> None:
    """401 unless ``provided`` matches. An unset secret rejects every caller."""
    if not expected or not provided or not hmac.compare_digest(expected.encode(), provided.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")


def require_cron_secret(
    authorization: t.Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    token = None
    if authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):]
    check_secret(settings.cron_secret, token)


def require_loader_secret(
    x_loader_secret: t.Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    check_secret(settings.loader_secret, x_loader_secret)
