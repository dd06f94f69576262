from __future__ import annotations
import logging
from typing import Optional

from .models import LightOutput, LightState, OutputPair, StatusMessage

logger = logging.getLogger(__name__)

COLOR_HINTS = {
    LightState.DIRECT: "green",
    LightState.ADJACENT: "yellow",
    LightState.OFF: "red",
}


def status_for(output: LightOutput) -> Optional[StatusMessage]:
    color = COLOR_HINTS.get(output.light)
    if color is None:
        logger.error("Unknown light state: %s", output.light)
        return None
    return StatusMessage(color_hint=color, text=f"{output.light.value} ({output.reason.value})")


def encode(
    new_output: Optional[LightOutput],
    status_fallback: Optional[LightOutput] = None,
) -> Optional[OutputPair]:
    """Build the (primary, status) pair; None means nothing should be sent."""
    source = new_output or status_fallback
    if source is None:
        return None

    status = status_for(source)
    if status is None:
        return None
    return OutputPair(primary=new_output, status=status)
