# smartpark/models/parking_session.py
"""
Parking sessions table (Session Ledger).
One row per stay. exit_time IS NULL marks the open session; the partial
unique index allows at most one of those per vehicle.
duration_minutes and fee are written once, when the session closes.
"""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String, text
from smartpark.database import Base


class ParkingSession(Base):
    __tablename__ = "parking_sessions"
    __table_args__ = (
        Index(
            "uq_one_open_session_per_vehicle",
            "vehicle_id",
            unique=True,
            sqlite_where=text("exit_time IS NULL"),
            postgresql_where=text("exit_time IS NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    spot_name = Column(String(20))               # spot held during the stay
    entry_time = Column(DateTime, nullable=False, index=True)
    exit_time = Column(DateTime)
    duration_minutes = Column(Integer)           # set on exit
    fee = Column(Float)                          # set on exit

    @property
    def is_open(self) -> bool:
        return self.exit_time is None

    def __repr__(self):
        return f"<ParkingSession {self.id} vehicle={self.vehicle_id} spot={self.spot_name} open={self.is_open}>"
