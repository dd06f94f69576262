from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class LightState(str, Enum):
    OFF = "Off"
    ADJACENT = "Adjacent"
    DIRECT = "Direct"


class Reason(str, Enum):
    ENTERING = "Entering"
    LEAVING = "Leaving"
    LUMINANCE = "Luminance"
    MANUAL = "Manual"
    INIT = "Init"


class ButtonEventType(str, Enum):
    BTN_DOWN = "btn_down"
    BTN_UP = "btn_up"
    SINGLE_PUSH = "single_push"
    DOUBLE_PUSH = "double_push"
    LONG_PUSH = "long_push"
    TRIPLE_PUSH = "triple_push"


@dataclass(frozen=True)
class LightOutput:
    light: LightState
    reason: Reason


INITIAL_OUTPUT = LightOutput(LightState.OFF, Reason.INIT)


@dataclass(frozen=True)
class SensorReading:
    direct_occupancy: bool = False
    adjacent_occupancy: bool = False
    luminance: float = 0.0

    @property
    def occupied(self) -> bool:
        return self.direct_occupancy or self.adjacent_occupancy


@dataclass(frozen=True)
class LightSettings:
    luminance_direct_threshold: float
    luminance_adjacent_threshold: float  # -1 => use direct threshold
    hysteresis: float = 1.2
    keep_in_direct: bool = False

    @property
    def adjacent_threshold(self) -> float:
        if self.luminance_adjacent_threshold == -1:
            return self.luminance_direct_threshold
        return self.luminance_adjacent_threshold


# --- Inbound events ---
@dataclass(frozen=True)
class SensorEvent:
    reading: SensorReading


@dataclass(frozen=True)
class ButtonEvent:
    event_type: ButtonEventType


@dataclass(frozen=True)
class ManualTimeout:
    """Delivered by the scheduler when the manual dwell timer expires.

    ``token`` identifies the arming that produced it, so a timeout queued
    just before its timer was cancelled can be recognised and dropped.
    """

    token: int = 0


Event = Union[SensorEvent, ButtonEvent, ManualTimeout]


# --- Outbound messages ---
@dataclass(frozen=True)
class StatusMessage:
    color_hint: str  # "green" | "yellow" | "red" | "grey"
    text: str


@dataclass(frozen=True)
class OutputPair:
    primary: Optional[LightOutput]
    status: StatusMessage
