from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import ValidationError

from .core.config import settings
from .core.log import configure_logging

from .api.routes import router as api_router
import autolight.api.routes as routes_module

from .domain.interfaces import OutputSink
from .drivers.output_log import LoggingOutputSink
from .drivers.output_webhook import WebhookOutputSink
from .services.room import RoomService
from .storage.sqlite_repo import SQLiteRepository


logger = logging.getLogger(__name__)


def build_sink() -> OutputSink:
    if settings.output_mode.lower() == "webhook":
        return WebhookOutputSink(
            base_url=settings.webhook_url,
            timeout=settings.webhook_timeout_seconds,
        )

    # default to in-process log sink
    return LoggingOutputSink()


async def restore_settings(repo: SQLiteRepository) -> None:
    stored = await repo.get_all_settings()
    for key, raw in stored.items():
        try:
            setattr(settings, key, json.loads(raw))
        except (ValueError, ValidationError, AttributeError) as e:
            logger.warning("Ignoring stored setting %s=%s: %s", key, raw, e)
    if stored:
        logger.info("Restored %d stored setting(s)", len(stored))


repo = SQLiteRepository(settings.sqlite_path)
room: RoomService | None = None


def get_room() -> RoomService:
    assert room is not None
    return room


def get_repo() -> SQLiteRepository:
    return repo


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting %s (room=%s)", settings.app_name, settings.room_id)

    await repo.init()
    await restore_settings(repo)

    sink = build_sink()
    logger.info("Output sink: %s", sink.sink_id)

    global room
    room = RoomService(
        room_id=settings.room_id,
        settings_provider=settings.light_settings,
        sink=sink,
        repo=repo,
    )
    await room.start()

    try:
        yield
    finally:
        if room:
            await room.stop()

        logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Make the dependency functions in routes resolve to the real ones
app.dependency_overrides[routes_module.get_room] = get_room
app.dependency_overrides[routes_module.get_repo] = get_repo

app.include_router(api_router, prefix="/api")
