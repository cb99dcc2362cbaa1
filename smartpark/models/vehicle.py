# smartpark/models/vehicle.py
"""
Registered vehicles table (Vehicle Registry).
A vehicle is found by its QR payload or by its plate number.
vehicle_class decides which spots it may occupy.
"""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from smartpark.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    qr_code = Column(String(100), unique=True, nullable=False, index=True)
    plate_number = Column(String(50), unique=True, nullable=False, index=True)
    owner_name = Column(String(200))
    vehicle_class = Column(String(20))        # car | bike | truck (None = undeclared)
    is_active = Column(Boolean, default=True, nullable=False)
    registered_at = Column(DateTime)

    def __repr__(self):
        return f"<Vehicle {self.plate_number} qr={self.qr_code} class={self.vehicle_class}>"
