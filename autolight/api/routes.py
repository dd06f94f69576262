from __future__ import annotations

import json
import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from ..core.config import Settings, settings
from ..core.timeutil import now_utc
from ..domain.models import ButtonEvent, ButtonEventType, SensorEvent, SensorReading
from ..services.room import RoomService
from ..storage.sqlite_repo import SQLiteRepository
from .schemas import ButtonEventRequest, SensorEventRequest, SettingsUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependency getters ---
# main.py swaps these in via app.dependency_overrides.
def get_room() -> RoomService:  # overridden in main
    raise RuntimeError("Room dependency not configured")

def get_repo() -> SQLiteRepository:  # overridden in main
    raise RuntimeError("Repo dependency not configured")


@router.get("/live")
async def get_live(room: RoomService = Depends(get_room)):
    live = room.live
    r = live.last_reading
    return {
        "app": settings.app_name,
        "room_id": live.room_id,
        "output": live.sink_id,
        "now_utc": now_utc().isoformat(),
        "last_reading": {
            "directOccupancy": r.direct_occupancy if r else None,
            "adjacentOccupancy": r.adjacent_occupancy if r else None,
            "luminance": r.luminance if r else None,
        },
        "light": live.light,
        "reason": live.reason,
        "manual": {
            "active": live.manual,
            "timer_pending": live.timer_pending,
        },
        "status": {
            "colorHint": live.status_color,
            "text": live.status_text,
        },
        "events_processed": live.events_processed,
    }


@router.post("/events/sensor")
async def post_sensor_event(req: SensorEventRequest, room: RoomService = Depends(get_room)):
    reading = SensorReading(
        direct_occupancy=bool(req.direct_occupancy),
        adjacent_occupancy=bool(req.adjacent_occupancy),
        luminance=float(req.luminance or 0.0),
    )
    room.submit(SensorEvent(reading))
    return {"ok": True, "queued": "sensor"}


@router.post("/events/button")
async def post_button_event(req: ButtonEventRequest, room: RoomService = Depends(get_room)):
    room.submit(ButtonEvent(ButtonEventType(req.event_type)))
    return {"ok": True, "queued": "button", "eventType": req.event_type}


@router.get("/readings")
async def readings(
    minutes: int = 60,
    limit: int = 5000,
    repo: SQLiteRepository = Depends(get_repo),
):
    end = now_utc()
    start = end - timedelta(minutes=max(1, minutes))
    rows = await repo.query_readings(start.isoformat(), end.isoformat(), limit=min(limit, 20000))
    return {
        "start_utc": start.isoformat(),
        "end_utc": end.isoformat(),
        "rows": [
            {
                "ts_utc": r.ts_utc.isoformat(),
                "directOccupancy": r.direct_occupancy,
                "adjacentOccupancy": r.adjacent_occupancy,
                "luminance": r.luminance,
            }
            for r in rows
        ],
    }


@router.get("/outputs")
async def outputs(
    minutes: int = 240,
    limit: int = 2000,
    repo: SQLiteRepository = Depends(get_repo),
):
    end = now_utc()
    start = end - timedelta(minutes=max(1, minutes))
    rows = await repo.query_outputs(start.isoformat(), end.isoformat(), limit=min(limit, 20000))
    return {
        "start_utc": start.isoformat(),
        "end_utc": end.isoformat(),
        "rows": [
            {
                "ts_utc": o.ts_utc.isoformat(),
                "light": o.light,
                "reason": o.reason,
                "colorHint": o.color_hint,
                "text": o.text,
            }
            for o in rows
        ],
    }


# --- Settings endpoints ---

RESTART_REQUIRED_KEYS = frozenset({
    "app_name", "room_id", "sqlite_path", "log_file", "log_level",
    "output_mode", "webhook_url", "webhook_timeout_seconds",
})

# All Settings field names (for validation)
_SETTINGS_FIELDS = {name: field for name, field in Settings.model_fields.items()}


def _cast_setting_value(key: str, raw: object) -> object:
    """Cast a raw value to the type expected by the Settings field."""
    field = _SETTINGS_FIELDS.get(key)
    if field is None:
        raise HTTPException(status_code=400, detail=f"Unknown setting key: {key}")
    annotation = field.annotation
    try:
        if annotation is bool:
            if isinstance(raw, str):
                return raw.lower() in ("true", "1", "yes")
            return bool(raw)
        if annotation is int:
            return int(raw)
        if annotation is float:
            return float(raw)
        if annotation is str:
            return str(raw)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"Invalid value for {key}: {raw!r}")
    return raw


def apply_settings(updates: dict[str, object]) -> None:
    """Validate the merged settings first so a bad key never half-applies a batch."""
    try:
        Settings(**{**settings.model_dump(), **updates})
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    for key, value in updates.items():
        setattr(settings, key, value)


@router.get("/settings")
async def get_settings():
    current = {}
    for key in _SETTINGS_FIELDS:
        current[key] = getattr(settings, key)
    return {
        "settings": current,
        "restart_required_keys": sorted(RESTART_REQUIRED_KEYS),
    }


@router.put("/settings")
async def update_settings(
    req: SettingsUpdateRequest,
    repo: SQLiteRepository = Depends(get_repo),
):
    typed: dict[str, object] = {}
    for key, raw_value in req.updates.items():
        typed[key] = _cast_setting_value(key, raw_value)

    apply_settings(typed)
    await repo.set_settings_batch({k: json.dumps(v) for k, v in typed.items()})
    logger.info("Settings updated: %s", ", ".join(typed))

    return {
        "ok": True,
        "updated_keys": list(typed),
        "runtime_applied": [k for k in typed if k not in RESTART_REQUIRED_KEYS],
    }
