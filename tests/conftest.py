"""Shared fixtures: a manually clocked scheduler and a dispatcher harness."""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

import pytest

from autolight.domain.context import InMemoryContextStore, PersistedContext
from autolight.domain.dispatcher import Dispatcher
from autolight.domain.models import (
    ButtonEvent,
    ButtonEventType,
    LightSettings,
    ManualTimeout,
    OutputPair,
    SensorEvent,
    SensorReading,
)

DARK = 0.0
BRIGHT = 20.0
THRESHOLD = 10.0


class FakeTimer:
    def __init__(self, due: timedelta, event: ManualTimeout) -> None:
        self.due = due
        self.event = event
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    def __init__(self) -> None:
        self.now = timedelta(0)
        self._timers: list[FakeTimer] = []

    def schedule(self, delay: timedelta, event: ManualTimeout) -> FakeTimer:
        timer = FakeTimer(self.now + delay, event)
        self._timers.append(timer)
        return timer

    @property
    def active(self) -> list[FakeTimer]:
        return [t for t in self._timers if not t.cancelled]

    def advance(self, delta: timedelta) -> list[ManualTimeout]:
        self.now += delta
        due = [t for t in self.active if t.due <= self.now]
        self._timers = [t for t in self.active if t.due > self.now]
        return [t.event for t in sorted(due, key=lambda t: t.due)]


class Harness:
    def __init__(self, settings: LightSettings) -> None:
        self.settings = settings
        self.store = InMemoryContextStore()
        self.scheduler = FakeScheduler()
        self.dispatcher = Dispatcher(self.store, self.scheduler, lambda: self.settings)

    @property
    def ctx(self) -> PersistedContext:
        return self.store.load()

    def sensor(self, direct: bool = False, adjacent: bool = False, lux: float = DARK) -> Optional[OutputPair]:
        return self.dispatcher.handle(SensorEvent(SensorReading(direct, adjacent, lux)))

    def press(self, kind: ButtonEventType = ButtonEventType.SINGLE_PUSH) -> Optional[OutputPair]:
        return self.dispatcher.handle(ButtonEvent(kind))

    def advance(self, minutes: float) -> list[OutputPair]:
        emitted = []
        for event in self.scheduler.advance(timedelta(minutes=minutes)):
            out = self.dispatcher.handle(event)
            if out is not None:
                emitted.append(out)
        return emitted


@pytest.fixture
def light_settings():
    return LightSettings(
        luminance_direct_threshold=THRESHOLD,
        luminance_adjacent_threshold=THRESHOLD,
        hysteresis=1.2,
        keep_in_direct=False,
    )


@pytest.fixture
def harness(light_settings):
    return Harness(light_settings)
