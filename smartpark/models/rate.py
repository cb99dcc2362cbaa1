# smartpark/models/rate.py
"""Per-class pricing table (Fee Policy). Upserted by the pricing endpoints."""

from sqlalchemy import Column, DateTime, Float, String
from smartpark.database import Base


class Rate(Base):
    __tablename__ = "rates"

    vehicle_class = Column(String(20), primary_key=True)
    rate_per_minute = Column(Float, nullable=False)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<Rate {self.vehicle_class}={self.rate_per_minute}/min>"
