# smartpark/schemas/events.py
"""
State-change events published to the notification sink after a commit.
Serialized with model_dump(mode="json") for dashboards.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


class EntryEvent(BaseModel):
    type: Literal["entry"] = "entry"
    spot: str
    vehicle: str
    vehicle_class: Optional[str]
    entry_time: datetime


class ExitEvent(BaseModel):
    type: Literal["exit"] = "exit"
    spot: Optional[str]
    vehicle: str
    duration_minutes: int
    fee: float


class ClearAllEvent(BaseModel):
    type: Literal["clear_all"] = "clear_all"
    sessions_cleared: int = 0
    spots_freed: int = 0


ParkingEvent = Annotated[Union[EntryEvent, ExitEvent, ClearAllEvent], Field(discriminator="type")]
