# smartpark/models/parking_spot.py
"""
Parking spots table (Spot Pool).
Seeded once at startup; afterwards only the scan interpreter changes
status/occupant. A spot is occupied exactly when it has an occupant.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from smartpark.database import Base

SPOT_AVAILABLE = "available"
SPOT_OCCUPIED = "occupied"


class ParkingSpot(Base):
    __tablename__ = "parking_spots"
    __table_args__ = (
        CheckConstraint(
            "(status = 'occupied' AND occupant_id IS NOT NULL) OR "
            "(status = 'available' AND occupant_id IS NULL)",
            name="ck_spot_occupant_matches_status",
        ),
    )

    name = Column(String(20), primary_key=True)
    vehicle_class = Column(String(20), nullable=False, index=True)
    status = Column(String(20), default=SPOT_AVAILABLE, nullable=False, index=True)
    occupant_id = Column(Integer, ForeignKey("vehicles.id"), unique=True)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<ParkingSpot {self.name} class={self.vehicle_class} status={self.status}>"
