"""Tests for the asyncio room loop, using real loop timers with short dwell times."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from autolight.domain import manual_override
from autolight.domain.models import (
    ButtonEvent,
    ButtonEventType,
    LightOutput,
    LightState,
    Reason,
    SensorEvent,
    SensorReading,
)
from autolight.drivers.output_log import LoggingOutputSink
from autolight.services.room import RoomService


class MemoryRepo:
    def __init__(self) -> None:
        self.readings = []
        self.outputs = []

    async def init(self) -> None:
        pass

    async def insert_reading(self, room_id, reading) -> None:
        self.readings.append((room_id, reading))

    async def insert_output(self, room_id, outputs) -> None:
        self.outputs.append((room_id, outputs))


@pytest.fixture
def short_timeouts(monkeypatch):
    monkeypatch.setattr(manual_override, "MANUAL_ON_TIMEOUT", timedelta(seconds=0.05))
    monkeypatch.setattr(manual_override, "MANUAL_OFF_TIMEOUT", timedelta(seconds=0.02))


@pytest.fixture
def room_parts(light_settings):
    sink = LoggingOutputSink()
    repo = MemoryRepo()
    room = RoomService("office", lambda: light_settings, sink, repo)
    return room, sink, repo


@pytest.mark.asyncio
async def test_start_emits_init(room_parts):
    room, sink, repo = room_parts
    await room.start()
    try:
        assert sink.last_primary == LightOutput(LightState.OFF, Reason.INIT)
        assert room.live.light == "Off"
        assert room.live.status_text == "Off (Init)"
        assert repo.outputs[0][0] == "office"
    finally:
        await room.stop()


@pytest.mark.asyncio
async def test_sensor_events_processed_in_order(room_parts):
    room, sink, repo = room_parts
    await room.start()
    try:
        room.submit(SensorEvent(SensorReading(adjacent_occupancy=True)))
        room.submit(SensorEvent(SensorReading(direct_occupancy=True)))
        room.submit(SensorEvent(SensorReading(direct_occupancy=True)))
        await room.join()

        lights = [o.primary.light for o in sink.sent if o.primary]
        assert lights == [LightState.OFF, LightState.ADJACENT, LightState.DIRECT]
        assert len(repo.readings) == 3
        assert room.live.events_processed == 3
        assert room.live.light == "Direct"
    finally:
        await room.stop()


@pytest.mark.asyncio
async def test_manual_timer_returns_to_automatic(room_parts, short_timeouts):
    room, sink, _ = room_parts
    await room.start()
    try:
        room.submit(SensorEvent(SensorReading()))
        room.submit(ButtonEvent(ButtonEventType.SINGLE_PUSH))
        await room.join()
        assert sink.last_primary == LightOutput(LightState.DIRECT, Reason.MANUAL)
        assert room.live.manual
        assert room.live.timer_pending

        await asyncio.sleep(0.15)
        await room.join()

        assert sink.last_primary == LightOutput(LightState.OFF, Reason.LEAVING)
        assert not room.live.manual
        assert not room.live.timer_pending
    finally:
        await room.stop()


@pytest.mark.asyncio
async def test_occupancy_holds_manual_mode(room_parts, short_timeouts):
    room, sink, _ = room_parts
    await room.start()
    try:
        room.submit(SensorEvent(SensorReading(direct_occupancy=True, luminance=50)))
        room.submit(ButtonEvent(ButtonEventType.SINGLE_PUSH))
        await room.join()

        await asyncio.sleep(0.15)
        await room.join()

        assert room.live.manual
        assert sink.last_primary == LightOutput(LightState.DIRECT, Reason.MANUAL)
    finally:
        await room.stop()


@pytest.mark.asyncio
async def test_failing_event_does_not_stop_loop(room_parts, caplog):
    room, sink, _ = room_parts
    await room.start()
    try:
        room.submit("garbage")
        room.submit(SensorEvent(SensorReading(direct_occupancy=True)))
        await room.join()

        assert "Room event error" in caplog.text
        assert sink.last_primary.light == LightState.DIRECT
    finally:
        await room.stop()


@pytest.mark.asyncio
async def test_stop_cancels_pending_timer(room_parts, short_timeouts):
    room, sink, _ = room_parts
    await room.start()
    room.submit(ButtonEvent(ButtonEventType.SINGLE_PUSH))
    await room.join()
    await room.stop()

    await asyncio.sleep(0.1)
    assert sink.last_primary == LightOutput(LightState.DIRECT, Reason.MANUAL)


class FlakyRepo(MemoryRepo):
    """Fails the first write of each kind, like a briefly locked database."""

    def __init__(self) -> None:
        super().__init__()
        self.reading_failures = 1
        self.output_failures = 1

    async def insert_reading(self, room_id, reading) -> None:
        if self.reading_failures:
            self.reading_failures -= 1
            raise OSError("database is locked")
        await super().insert_reading(room_id, reading)

    async def insert_output(self, room_id, outputs) -> None:
        if self.output_failures:
            self.output_failures -= 1
            raise OSError("database is locked")
        await super().insert_output(room_id, outputs)


@pytest.mark.asyncio
async def test_history_failure_does_not_drop_emission(light_settings, caplog):
    sink = LoggingOutputSink()
    repo = FlakyRepo()
    room = RoomService("office", lambda: light_settings, sink, repo)
    await room.start()
    try:
        # startup output write fails, the sink still got Off/Init
        assert sink.last_primary == LightOutput(LightState.OFF, Reason.INIT)
        assert room.live.status_text == "Off (Init)"

        room.submit(SensorEvent(SensorReading(direct_occupancy=True)))
        room.submit(SensorEvent(SensorReading(direct_occupancy=True)))
        await room.join()

        lights = [o.primary.light for o in sink.sent if o.primary]
        assert lights == [LightState.OFF, LightState.DIRECT]
        assert room.live.light == "Direct"
        assert room.live.status_text == "Direct (Entering)"
        assert room.live.events_processed == 2
        assert len(repo.readings) == 1
        assert "history write failed" in caplog.text
    finally:
        await room.stop()


def test_live_reports_sink(room_parts):
    room, _, _ = room_parts
    assert room.live.sink_id == "log"
