from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from typing import Optional

from .interfaces import TimerHandle
from .models import INITIAL_OUTPUT, LightOutput, Reason, SensorReading

logger = logging.getLogger(__name__)


@dataclass
class PersistedContext:
    """Per-room state carried from one event to the next."""

    prev_state: LightOutput = INITIAL_OUTPUT
    prev_reading: Optional[SensorReading] = None
    pending_timer: Optional[TimerHandle] = None
    timer_token: int = 0

    @property
    def manual(self) -> bool:
        return self.prev_state.reason == Reason.MANUAL

    def reading_or_default(self) -> SensorReading:
        if self.prev_reading is None:
            logger.warning("No previous sensor reading found, assuming empty and dark room")
            return SensorReading()
        return self.prev_reading

    def cancel_timer(self) -> None:
        if self.pending_timer is not None:
            self.pending_timer.cancel()
            self.pending_timer = None


class InMemoryContextStore:
    def __init__(self) -> None:
        self._ctx = PersistedContext()

    def load(self) -> PersistedContext:
        """Return a working copy; nothing changes until it is stored."""
        return replace(self._ctx)

    def store(self, ctx: PersistedContext) -> None:
        self._ctx = ctx
