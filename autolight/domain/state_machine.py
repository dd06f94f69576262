from __future__ import annotations
import logging
from typing import Optional

from .models import LightOutput, LightSettings, LightState, Reason, SensorReading

logger = logging.getLogger(__name__)


def transition(
    prev_reading: Optional[SensorReading],
    curr_reading: SensorReading,
    prev_state: LightOutput,
    settings: LightSettings,
) -> Optional[LightOutput]:
    """Decide the next light state for an automatic-mode reading.

    Returns None when the light should stay as it is. Leaving a lit state
    uses ``hysteresis * threshold``; entering one uses the bare threshold.
    """
    direct_occ = curr_reading.direct_occupancy
    adjacent_occ = curr_reading.adjacent_occupancy or direct_occ
    lux = curr_reading.luminance

    direct_thr = settings.luminance_direct_threshold
    adjacent_thr = settings.adjacent_threshold
    h = settings.hysteresis

    is_direct = direct_occ and lux < direct_thr
    is_adjacent = adjacent_occ and lux < adjacent_thr

    if prev_state.light == LightState.DIRECT:
        if not direct_occ and not (settings.keep_in_direct and adjacent_occ):
            if not adjacent_occ:
                return LightOutput(LightState.OFF, Reason.LEAVING)
            if is_adjacent:
                return LightOutput(LightState.ADJACENT, Reason.LEAVING)

        if lux >= h * direct_thr:
            return LightOutput(LightState.OFF, Reason.LUMINANCE)
        return None

    if prev_state.light == LightState.ADJACENT:
        if is_direct:
            return LightOutput(LightState.DIRECT, Reason.ENTERING)
        if not adjacent_occ:
            return LightOutput(LightState.OFF, Reason.LEAVING)
        if lux >= h * adjacent_thr:
            return LightOutput(LightState.OFF, Reason.LUMINANCE)
        return None

    if prev_state.light == LightState.OFF:
        # Entering: it was already dark before occupancy arrived
        prev_lux = prev_reading.luminance if prev_reading is not None else 0.0
        if is_direct:
            reason = Reason.ENTERING if prev_lux < direct_thr else Reason.LUMINANCE
            return LightOutput(LightState.DIRECT, reason)
        if is_adjacent:
            reason = Reason.ENTERING if prev_lux < adjacent_thr else Reason.LUMINANCE
            return LightOutput(LightState.ADJACENT, reason)
        return None

    logger.error("Unknown light state: %s", prev_state.light)
    return None
