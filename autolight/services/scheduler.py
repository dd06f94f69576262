from __future__ import annotations
import asyncio
import logging
from datetime import timedelta
from typing import Callable

from ..domain.models import Event, ManualTimeout

logger = logging.getLogger(__name__)


class AsyncioScheduler:
    """One-shot timers on the running loop that feed events back to the room queue."""

    def __init__(self, deliver: Callable[[Event], None]) -> None:
        self._deliver = deliver

    def schedule(self, delay: timedelta, event: ManualTimeout) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        logger.debug("Scheduling %s in %.0fs", event, delay.total_seconds())
        return loop.call_later(delay.total_seconds(), self._deliver, event)
