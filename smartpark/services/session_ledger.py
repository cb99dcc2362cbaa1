# smartpark/services/session_ledger.py
"""
Session Ledger: append-only record of parking stays.

A session is created on entry and closed on exit, each exactly once.
create() refuses a second open session for the same vehicle; the partial
unique index on parking_sessions backs this up at the storage level.
Like SpotPool, nothing here commits.
"""

import math
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session
from smartpark.models.parking_session import ParkingSession
from smartpark.models.vehicle import Vehicle
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)


class SessionAlreadyOpen(Exception):
    pass


class SessionAlreadyClosed(Exception):
    pass


def compute_duration_minutes(entry_time: datetime, exit_time: datetime) -> int:
    """
    Whole minutes, rounded up: 1s -> 1, 60s -> 1, 61s -> 2.
    Zero only when exit == entry; a clock running backwards counts as zero.
    """
    elapsed = (exit_time - entry_time).total_seconds()
    if elapsed <= 0:
        return 0
    return max(1, math.ceil(elapsed / 60))


class SessionLedger:
    def __init__(self, db: Session):
        self.db = db

    def open_session_for(self, vehicle_id: int) -> Optional[ParkingSession]:
        return (
            self.db.query(ParkingSession)
            .filter(ParkingSession.vehicle_id == vehicle_id, ParkingSession.exit_time.is_(None))
            .first()
        )

    def last_closed_for(self, vehicle_id: int) -> Optional[ParkingSession]:
        return (
            self.db.query(ParkingSession)
            .filter(ParkingSession.vehicle_id == vehicle_id, ParkingSession.exit_time.isnot(None))
            .order_by(ParkingSession.exit_time.desc())
            .first()
        )

    def create(self, vehicle_id: int, spot_name: str, entry_time: datetime) -> ParkingSession:
        if self.open_session_for(vehicle_id) is not None:
            raise SessionAlreadyOpen(f"Vehicle {vehicle_id} already has an open session")
        session = ParkingSession(vehicle_id=vehicle_id, spot_name=spot_name, entry_time=entry_time)
        self.db.add(session)
        self.db.flush()
        return session

    def close(self, session_id: int, exit_time: datetime, duration_minutes: int, fee: float) -> ParkingSession:
        session = self.db.get(ParkingSession, session_id)
        if session is None:
            raise SessionAlreadyClosed(f"Session {session_id} does not exist")
        if session.exit_time is not None:
            raise SessionAlreadyClosed(f"Session {session_id} closed at {session.exit_time}")
        session.exit_time = exit_time
        session.duration_minutes = duration_minutes
        session.fee = fee
        self.db.flush()
        return session

    def count_open(self) -> int:
        return (
            self.db.query(func.count(ParkingSession.id))
            .filter(ParkingSession.exit_time.is_(None))
            .scalar()
        )

    def clear_all(self) -> int:
        """Delete every session row. Returns how many were removed."""
        return self.db.query(ParkingSession).delete(synchronize_session=False)

    def recent(self, limit: int = 100, vehicle_id: int = None, open_only: bool = False) -> list[dict]:
        """Newest sessions joined with their vehicle, as plain dicts for the log views."""
        q = (
            self.db.query(ParkingSession, Vehicle)
            .outerjoin(Vehicle, Vehicle.id == ParkingSession.vehicle_id)
        )
        if vehicle_id is not None:
            q = q.filter(ParkingSession.vehicle_id == vehicle_id)
        if open_only:
            q = q.filter(ParkingSession.exit_time.is_(None))
        rows = q.order_by(ParkingSession.id.desc()).limit(limit).all()
        return [
            {
                "id": s.id,
                "vehicle_id": s.vehicle_id,
                "qr_code": v.qr_code if v else None,
                "plate_number": v.plate_number if v else None,
                "owner_name": v.owner_name if v else None,
                "vehicle_class": v.vehicle_class if v else None,
                "spot_name": s.spot_name,
                "entry_time": s.entry_time,
                "exit_time": s.exit_time,
                "duration_minutes": s.duration_minutes,
                "fee": s.fee,
            }
            for s, v in rows
        ]
