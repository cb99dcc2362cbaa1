# smartpark/services/spot_pool.py
"""
Spot Pool: the named parking spots and their occupancy.

Every method works on the caller's SQLAlchemy session and never commits,
so spot changes land in the same transaction as the session ledger writes.
occupy() is a conditional UPDATE: it only succeeds while the spot is still
available, which makes select-and-occupy safe across concurrent entries.
"""

import re
from datetime import datetime
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session
from smartpark.models.parking_spot import ParkingSpot, SPOT_AVAILABLE, SPOT_OCCUPIED
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)

_DIGITS = re.compile(r"(\d+)")


class SpotUnavailable(Exception):
    pass


def natural_key(name: str):
    """Sort key so that C2 comes before C10."""
    return [int(part) if part.isdigit() else part.lower() for part in _DIGITS.split(name)]


class SpotPool:
    def __init__(self, db: Session):
        self.db = db

    def get(self, spot_name: str) -> Optional[ParkingSpot]:
        return self.db.get(ParkingSpot, spot_name)

    def list_spots(self, vehicle_class: str = None) -> list[ParkingSpot]:
        q = self.db.query(ParkingSpot)
        if vehicle_class:
            q = q.filter(ParkingSpot.vehicle_class == vehicle_class)
        return sorted(q.all(), key=lambda s: natural_key(s.name))

    def _available(self, vehicle_class: str) -> list[ParkingSpot]:
        spots = (
            self.db.query(ParkingSpot)
            .filter(ParkingSpot.vehicle_class == vehicle_class, ParkingSpot.status == SPOT_AVAILABLE)
            .all()
        )
        return sorted(spots, key=lambda s: natural_key(s.name))

    def find_available(self, vehicle_class: Optional[str]) -> Optional[ParkingSpot]:
        """Lowest-named available spot of the class, or None."""
        if not vehicle_class:
            return None
        candidates = self._available(vehicle_class)
        return candidates[0] if candidates else None

    def occupy(self, spot_name: str, vehicle_id: int) -> ParkingSpot:
        result = self.db.execute(
            update(ParkingSpot)
            .where(ParkingSpot.name == spot_name, ParkingSpot.status == SPOT_AVAILABLE)
            .values(status=SPOT_OCCUPIED, occupant_id=vehicle_id, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise SpotUnavailable(f"Spot {spot_name} is no longer available")
        spot = self.get(spot_name)
        self.db.refresh(spot)
        return spot

    def allocate(self, vehicle_class: Optional[str], vehicle_id: int) -> Optional[ParkingSpot]:
        """
        Occupy the first available spot of the class for the vehicle.
        Candidates lost to a concurrent entry are skipped. None when full.
        """
        if not vehicle_class:
            return None
        for candidate in self._available(vehicle_class):
            try:
                return self.occupy(candidate.name, vehicle_id)
            except SpotUnavailable:
                logger.debug(f"[SPOTS] {candidate.name} taken concurrently, trying next")
        return None

    def free(self, spot_name: str) -> ParkingSpot:
        spot = self.get(spot_name)
        if spot is None:
            raise SpotUnavailable(f"Unknown spot {spot_name}")
        spot.status = SPOT_AVAILABLE
        spot.occupant_id = None
        spot.updated_at = datetime.utcnow()
        self.db.flush()
        return spot

    def find_occupied_by(self, vehicle_id: int) -> Optional[ParkingSpot]:
        return self.db.query(ParkingSpot).filter(ParkingSpot.occupant_id == vehicle_id).first()

    def count_occupied(self) -> int:
        return self.db.query(func.count(ParkingSpot.name)).filter(ParkingSpot.status == SPOT_OCCUPIED).scalar()

    def free_all(self) -> int:
        """Free every occupied spot. Returns how many were occupied."""
        result = self.db.execute(
            update(ParkingSpot)
            .where(ParkingSpot.status == SPOT_OCCUPIED)
            .values(status=SPOT_AVAILABLE, occupant_id=None, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def availability(self) -> list[dict]:
        """Per-class totals for dashboards."""
        rows = (
            self.db.query(ParkingSpot.vehicle_class, ParkingSpot.status, func.count(ParkingSpot.name))
            .group_by(ParkingSpot.vehicle_class, ParkingSpot.status)
            .all()
        )
        summary: dict[str, dict] = {}
        for vehicle_class, status, count in rows:
            entry = summary.setdefault(vehicle_class, {"vehicle_class": vehicle_class,
                                                       "total": 0, "available": 0, "occupied": 0})
            entry[status] = entry.get(status, 0) + count
            entry["total"] += count
        return [summary[k] for k in sorted(summary)]
