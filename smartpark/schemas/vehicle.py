# smartpark/schemas/vehicle.py
from pydantic import BaseModel
from datetime import datetime
from typing import Literal, Optional

VehicleClass = Literal["car", "bike", "truck"]


class VehicleCreate(BaseModel):
    plate_number: str
    owner_name: Optional[str] = None
    vehicle_class: VehicleClass = "car"
    qr_code: Optional[str] = None      # defaults to QR-<plate>


class VehicleOut(BaseModel):
    id: int
    qr_code: str
    plate_number: str
    owner_name: Optional[str]
    vehicle_class: Optional[str]
    is_active: bool
    registered_at: Optional[datetime]

    class Config:
        from_attributes = True
