# smartpark/schemas/parking_spot.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class ParkingSpotOut(BaseModel):
    name: str
    vehicle_class: str
    status: str
    occupant_id: Optional[int]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ClassAvailabilityOut(BaseModel):
    vehicle_class: str
    total: int
    available: int
    occupied: int
