from __future__ import annotations
from datetime import timedelta
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .models import ManualTimeout, OutputPair, SensorReading

if TYPE_CHECKING:
    from .context import PersistedContext


@runtime_checkable
class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


@runtime_checkable
class Scheduler(Protocol):
    def schedule(self, delay: timedelta, event: ManualTimeout) -> TimerHandle:
        """Deliver ``event`` back into the room's event stream after ``delay``."""
        ...


@runtime_checkable
class ContextStore(Protocol):
    def load(self) -> PersistedContext:
        ...

    def store(self, ctx: PersistedContext) -> None:
        ...


@runtime_checkable
class OutputSink(Protocol):
    sink_id: str

    async def send(self, outputs: OutputPair) -> None:
        ...


@runtime_checkable
class Repository(Protocol):
    async def init(self) -> None:
        ...

    async def insert_reading(self, room_id: str, reading: SensorReading) -> None:
        ...

    async def insert_output(self, room_id: str, outputs: OutputPair) -> None:
        ...
