# smartpark/schemas/rate.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class RateUpsert(BaseModel):
    vehicle_class: str
    rate_per_minute: float = Field(ge=0)


class RateOut(BaseModel):
    vehicle_class: str
    rate_per_minute: float
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
