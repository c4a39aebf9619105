"""
Runtime configuration read from environment variables.

Secrets and endpoints are the only configuration; there is no config file.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from assistant.provider import DEFAULT_MODEL, OpenAIChatProvider
from datastore import Datastore, MemoryDatastore, RestDatastore
from planner.dates import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    openai_api_key: str = ""
    openai_model: str = DEFAULT_MODEL
    datastore_url: str = ""
    datastore_key: str = ""
    cron_secret: str = ""
    loader_secret: str = ""
    timezone: str = DEFAULT_TIMEZONE
    student_name: str = "Jenna"
    request_timeout: float = 30.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
            datastore_url=os.getenv("SUPABASE_URL", ""),
            datastore_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY", ""),
            cron_secret=os.getenv("CRON_SECRET", ""),
            loader_secret=os.getenv("LOADER_SECRET", ""),
            timezone=os.getenv("DASHBOARD_TIMEZONE", DEFAULT_TIMEZONE),
            student_name=os.getenv("STUDENT_NAME", "Jenna"),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "30")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def build_datastore(settings: Settings) -> Datastore:
    """Hosted store when configured, otherwise an empty in-memory one."""
    if settings.datastore_url:
        if not settings.datastore_key:
            raise RuntimeError("SUPABASE_SERVICE_ROLE_KEY environment variable is not set.")
        return RestDatastore(settings.datastore_url, settings.datastore_key, timeout=settings.request_timeout)
    logger.warning("SUPABASE_URL is not set; using an in-memory datastore")
    return MemoryDatastore()


def build_provider(settings: Settings) -> OpenAIChatProvider:
    if not settings.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable is not set.")
    return OpenAIChatProvider(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout=settings.request_timeout,
    )
