from __future__ import annotations
import logging
from datetime import timedelta
from typing import Callable, Optional

from .context import PersistedContext
from .interfaces import Scheduler
from .models import (
    ButtonEvent,
    ButtonEventType,
    LightOutput,
    LightSettings,
    LightState,
    ManualTimeout,
    Reason,
    SensorReading,
)
from .state_machine import transition

logger = logging.getLogger(__name__)

# Continuous absence required before manual mode hands back control
MANUAL_ON_TIMEOUT = timedelta(minutes=20)
MANUAL_OFF_TIMEOUT = timedelta(minutes=3)


class ManualOverrideController:
    """Button toggling plus the occupancy-gated return to automatic mode.

    The dwell timer only runs while nobody is detected. Any occupancy seen
    while manual clears it, and the full duration restarts once the room
    is empty again.
    """

    def __init__(self, scheduler: Scheduler, settings_provider: Callable[[], LightSettings]) -> None:
        self._scheduler = scheduler
        self._settings_provider = settings_provider

    def on_button_press(self, ctx: PersistedContext, event: ButtonEvent) -> Optional[LightOutput]:
        if event.event_type != ButtonEventType.SINGLE_PUSH:
            logger.debug("Ignoring button event %s", event.event_type.value)
            return None

        light = LightState.DIRECT if ctx.prev_state.light == LightState.OFF else LightState.OFF
        manual_state = LightOutput(light, Reason.MANUAL)
        logger.info("Manual toggle: %s -> %s", ctx.prev_state.light.value, light.value)

        self.rearm(ctx, manual_state)
        return manual_state

    def on_sensor_reading(self, ctx: PersistedContext, reading: SensorReading) -> None:
        ctx.prev_reading = reading
        self.rearm(ctx)

    def rearm(self, ctx: PersistedContext, manual_state: Optional[LightOutput] = None) -> None:
        ctx.cancel_timer()

        state = manual_state or ctx.prev_state
        if state.reason != Reason.MANUAL:
            return

        if ctx.reading_or_default().occupied:
            logger.debug("Occupancy present, manual timer not armed")
            return

        duration = MANUAL_OFF_TIMEOUT if state.light == LightState.OFF else MANUAL_ON_TIMEOUT
        ctx.timer_token += 1
        ctx.pending_timer = self._scheduler.schedule(duration, ManualTimeout(ctx.timer_token))
        logger.info("Manual timer armed for %s (light=%s)", duration, state.light.value)

    def on_timer_fire(
        self, ctx: PersistedContext, event: ManualTimeout
    ) -> tuple[Optional[LightOutput], Optional[LightOutput]]:
        """Handle an expired dwell timer.

        Returns ``(new_state, status_only)``. At most one is set: ``new_state``
        when automatic rules change the light, ``status_only`` when manual mode
        ends without a light change. Both are None when occupancy came back.
        """
        if ctx.pending_timer is None or event.token != ctx.timer_token or not ctx.manual:
            logger.debug("Ignoring stale manual timeout (token=%s)", event.token)
            return None, None
        ctx.pending_timer = None

        latest = ctx.reading_or_default()
        if latest.occupied:
            self.rearm(ctx)
            return None, None

        logger.info("Manual timeout elapsed, returning to automatic mode")
        new_state = transition(latest, latest, ctx.prev_state, self._settings_provider())
        if new_state is not None:
            logger.info(
                "Light %s -> %s (%s)",
                ctx.prev_state.light.value,
                new_state.light.value,
                new_state.reason.value,
            )
            ctx.prev_state = new_state
            return new_state, None

        status_only = LightOutput(ctx.prev_state.light, Reason.LEAVING)
        logger.info("Light stays %s (%s)", status_only.light.value, status_only.reason.value)
        ctx.prev_state = status_only
        return None, status_only
