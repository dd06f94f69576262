from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Literal, Optional


class SensorEventRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    direct_occupancy: Optional[bool] = Field(default=None, alias="directOccupancy")
    adjacent_occupancy: Optional[bool] = Field(default=None, alias="adjacentOccupancy")
    luminance: Optional[float] = None


class ButtonEventRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_type: Literal[
        "btn_down", "btn_up", "single_push", "double_push", "long_push", "triple_push"
    ] = Field(alias="eventType")


class SettingsUpdateRequest(BaseModel):
    updates: Dict[str, Any]
