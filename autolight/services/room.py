from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..domain.context import InMemoryContextStore
from ..domain.dispatcher import Dispatcher
from ..domain.interfaces import OutputSink, Repository
from ..domain.models import Event, LightSettings, OutputPair, SensorEvent, SensorReading
from .scheduler import AsyncioScheduler

logger = logging.getLogger(__name__)

_STOP = object()


@dataclass
class LiveState:
    room_id: str
    sink_id: str = ""
    last_reading: Optional[SensorReading] = None
    light: Optional[str] = None
    reason: Optional[str] = None
    manual: bool = False
    timer_pending: bool = False
    status_text: Optional[str] = None
    status_color: Optional[str] = None
    events_processed: int = 0


class RoomService:
    """Host runtime for one room.

    Sensor readings, button presses and manual timeouts all go through a
    single queue and are handled one at a time by one consumer task.
    """

    def __init__(
        self,
        room_id: str,
        settings_provider: Callable[[], LightSettings],
        sink: OutputSink,
        repo: Repository,
    ) -> None:
        self._room_id = room_id
        self._sink = sink
        self._repo = repo
        self._store = InMemoryContextStore()
        self._dispatcher = Dispatcher(
            store=self._store,
            scheduler=AsyncioScheduler(self.submit),
            settings_provider=settings_provider,
        )

        self._queue: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self.live = LiveState(room_id=room_id, sink_id=sink.sink_id)

    async def start(self) -> None:
        startup = self._dispatcher.on_start()
        if startup is not None:
            await self._emit(startup)
        self._refresh_live()
        self._task = asyncio.create_task(self._run(), name=f"room_{self._room_id}")

    async def stop(self) -> None:
        ctx = self._store.load()
        ctx.cancel_timer()
        self._store.store(ctx)
        if self._task:
            self._queue.put_nowait(_STOP)
            await self._task
            self._task = None

    def submit(self, event: Event) -> None:
        self._queue.put_nowait(event)

    async def join(self) -> None:
        """Wait until every queued event has been handled."""
        await self._queue.join()

    async def _run(self) -> None:
        logger.info("Room loop started (room=%s)", self._room_id)

        while True:
            event = await self._queue.get()
            if event is _STOP:
                self._queue.task_done()
                break

            try:
                outputs = self._dispatcher.handle(event)

                if outputs is not None:
                    await self._emit(outputs)

                if isinstance(event, SensorEvent):
                    self.live.last_reading = event.reading
                    await self._record_reading(event.reading)

                self._refresh_live()
                self.live.events_processed += 1

            except Exception as e:
                logger.exception("Room event error (%s): %s", type(event).__name__, e)

            finally:
                self._queue.task_done()

        logger.info("Room loop stopped (room=%s)", self._room_id)

    async def _emit(self, outputs: OutputPair) -> None:
        await self._sink.send(outputs)
        self.live.status_text = outputs.status.text
        self.live.status_color = outputs.status.color_hint

        # history is best effort
        try:
            await self._repo.insert_output(self._room_id, outputs)
        except Exception as e:
            logger.exception("Output history write failed: %s", e)

    async def _record_reading(self, reading: SensorReading) -> None:
        try:
            await self._repo.insert_reading(self._room_id, reading)
        except Exception as e:
            logger.exception("Reading history write failed: %s", e)

    def _refresh_live(self) -> None:
        ctx = self._store.load()
        self.live.light = ctx.prev_state.light.value
        self.live.reason = ctx.prev_state.reason.value
        self.live.manual = ctx.manual
        self.live.timer_pending = ctx.pending_timer is not None
