from __future__ import annotations
import aiosqlite
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional
from ..core.timeutil import now_utc
from ..domain.models import OutputPair, SensorReading


@dataclass(frozen=True)
class ReadingRow:
    ts_utc: datetime
    room_id: str
    direct_occupancy: bool
    adjacent_occupancy: bool
    luminance: float


@dataclass(frozen=True)
class OutputRow:
    ts_utc: datetime
    room_id: str
    light: Optional[str]
    reason: Optional[str]
    color_hint: str
    text: str


class SQLiteRepository:
    def __init__(self, path: str) -> None:
        self._path = path

    async def init(self) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS readings (
                    ts_utc TEXT NOT NULL,
                    room_id TEXT NOT NULL,
                    direct_occupancy INTEGER NOT NULL,
                    adjacent_occupancy INTEGER NOT NULL,
                    luminance REAL NOT NULL
                )
                """
            )
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS outputs (
                    ts_utc TEXT NOT NULL,
                    room_id TEXT NOT NULL,
                    light TEXT,
                    reason TEXT,
                    color_hint TEXT NOT NULL,
                    text TEXT NOT NULL
                )
                """
            )
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            await db.execute("CREATE INDEX IF NOT EXISTS idx_readings_ts ON readings(ts_utc)")
            await db.execute("CREATE INDEX IF NOT EXISTS idx_outputs_ts ON outputs(ts_utc)")
            await db.commit()

    async def insert_reading(self, room_id: str, r: SensorReading) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                "INSERT INTO readings(ts_utc,room_id,direct_occupancy,adjacent_occupancy,luminance) VALUES (?,?,?,?,?)",
                (
                    now_utc().isoformat(),
                    room_id,
                    1 if r.direct_occupancy else 0,
                    1 if r.adjacent_occupancy else 0,
                    float(r.luminance),
                ),
            )
            await db.commit()

    async def insert_output(self, room_id: str, o: OutputPair) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                "INSERT INTO outputs(ts_utc,room_id,light,reason,color_hint,text) VALUES (?,?,?,?,?,?)",
                (
                    now_utc().isoformat(),
                    room_id,
                    o.primary.light.value if o.primary else None,
                    o.primary.reason.value if o.primary else None,
                    o.status.color_hint,
                    o.status.text,
                ),
            )
            await db.commit()

    async def query_readings(self, start_ts: str, end_ts: str, limit: int) -> List[ReadingRow]:
        async with aiosqlite.connect(self._path) as db:
            cur = await db.execute(
                """
                SELECT ts_utc,room_id,direct_occupancy,adjacent_occupancy,luminance
                FROM readings
                WHERE ts_utc >= ? AND ts_utc <= ?
                ORDER BY ts_utc DESC
                LIMIT ?
                """,
                (start_ts, end_ts, limit),
            )
            rows = await cur.fetchall()
        out: list[ReadingRow] = []
        for ts, room, direct, adjacent, lux in rows:
            out.append(
                ReadingRow(
                    ts_utc=datetime.fromisoformat(ts),
                    room_id=room,
                    direct_occupancy=bool(direct),
                    adjacent_occupancy=bool(adjacent),
                    luminance=float(lux),
                )
            )
        return list(reversed(out))

    async def query_outputs(self, start_ts: str, end_ts: str, limit: int) -> List[OutputRow]:
        async with aiosqlite.connect(self._path) as db:
            cur = await db.execute(
                """
                SELECT ts_utc,room_id,light,reason,color_hint,text
                FROM outputs
                WHERE ts_utc >= ? AND ts_utc <= ?
                ORDER BY ts_utc DESC
                LIMIT ?
                """,
                (start_ts, end_ts, limit),
            )
            rows = await cur.fetchall()
        out: list[OutputRow] = []
        for ts, room, light, reason, color, text in rows:
            out.append(
                OutputRow(
                    ts_utc=datetime.fromisoformat(ts),
                    room_id=room,
                    light=light,
                    reason=reason,
                    color_hint=color,
                    text=text,
                )
            )
        return list(reversed(out))

    async def get_all_settings(self) -> Dict[str, str]:
        async with aiosqlite.connect(self._path) as db:
            cur = await db.execute("SELECT key, value FROM settings")
            rows = await cur.fetchall()
        return {k: v for k, v in rows}

    async def set_settings_batch(self, updates: Dict[str, str]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        async with aiosqlite.connect(self._path) as db:
            for key, value in updates.items():
                await db.execute(
                    "INSERT INTO settings(key, value, updated_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
                    (key, value, now),
                )
            await db.commit()
