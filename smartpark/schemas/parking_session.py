# smartpark/schemas/parking_session.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class SessionLogOut(BaseModel):
    id: int
    vehicle_id: int
    qr_code: Optional[str] = None
    plate_number: Optional[str] = None
    owner_name: Optional[str] = None
    vehicle_class: Optional[str] = None
    spot_name: Optional[str]
    entry_time: datetime
    exit_time: Optional[datetime]
    duration_minutes: Optional[int]
    fee: Optional[float]
