from __future__ import annotations
import logging
from typing import Callable, Optional

from .context import PersistedContext
from .encoder import encode
from .interfaces import ContextStore, Scheduler
from .manual_override import ManualOverrideController
from .models import (
    INITIAL_OUTPUT,
    ButtonEvent,
    Event,
    LightOutput,
    LightSettings,
    ManualTimeout,
    OutputPair,
    SensorEvent,
)
from .state_machine import transition

logger = logging.getLogger(__name__)


class Dispatcher:
    """Routes each room event and owns the context load/store boundary."""

    def __init__(
        self,
        store: ContextStore,
        scheduler: Scheduler,
        settings_provider: Callable[[], LightSettings],
    ) -> None:
        self._store = store
        self._settings_provider = settings_provider
        self.manual = ManualOverrideController(scheduler, settings_provider)

    def on_start(self) -> Optional[OutputPair]:
        return encode(INITIAL_OUTPUT)

    def handle(self, event: Event) -> Optional[OutputPair]:
        ctx = self._store.load()
        if isinstance(event, ButtonEvent):
            outputs = self._commit(ctx, self.manual.on_button_press(ctx, event))
        elif isinstance(event, SensorEvent):
            outputs = self._on_sensor(ctx, event)
        elif isinstance(event, ManualTimeout):
            new_state, status_only = self.manual.on_timer_fire(ctx, event)
            outputs = encode(new_state, status_only)
        else:
            raise TypeError(f"Unsupported event: {event!r}")

        # only a fully handled event is stored
        self._store.store(ctx)
        return outputs

    def _on_sensor(self, ctx: PersistedContext, event: SensorEvent) -> Optional[OutputPair]:
        prev_reading = ctx.prev_reading
        ctx.prev_reading = event.reading

        if ctx.manual:
            self.manual.on_sensor_reading(ctx, event.reading)
            return None

        new_state = transition(prev_reading, event.reading, ctx.prev_state, self._settings_provider())
        return self._commit(ctx, new_state)

    def _commit(self, ctx: PersistedContext, new_state: Optional[LightOutput]) -> Optional[OutputPair]:
        if new_state is None or new_state.light == ctx.prev_state.light:
            return None

        logger.info(
            "Light %s -> %s (%s)",
            ctx.prev_state.light.value,
            new_state.light.value,
            new_state.reason.value,
        )
        ctx.prev_state = new_state
        return encode(new_state)
