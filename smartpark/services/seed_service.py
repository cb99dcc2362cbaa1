# smartpark/services/seed_service.py
"""
Idempotent startup seeding: parking spots from SPOT_LAYOUT, default rates,
and a few sample vehicles for a fresh install.
"""

from datetime import datetime

from sqlalchemy.orm import Session
from smartpark.config import settings
from smartpark.models.parking_spot import ParkingSpot, SPOT_AVAILABLE
from smartpark.models.rate import Rate
from smartpark.models.vehicle import Vehicle
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)

SAMPLE_VEHICLES = [
    {"owner_name": "John", "plate_number": "MH12AB1234", "vehicle_class": "car"},
    {"owner_name": "Rohit", "plate_number": "MH12XY9876", "vehicle_class": "bike"},
    {"owner_name": "Akash", "plate_number": "MH14TR5555", "vehicle_class": "truck"},
]


def spot_names(layout: dict = None, prefixes: dict = None) -> list[tuple[str, str]]:
    """[(name, class)] for the layout, e.g. ("C1", "car")."""
    layout = settings.SPOT_LAYOUT if layout is None else layout
    prefixes = settings.SPOT_PREFIXES if prefixes is None else prefixes
    names = []
    for vehicle_class, count in layout.items():
        prefix = prefixes.get(vehicle_class, vehicle_class[:1].upper())
        names.extend((f"{prefix}{i}", vehicle_class) for i in range(1, count + 1))
    return names


def seed_spots(db: Session, layout: dict = None, prefixes: dict = None) -> int:
    existing = {name for (name,) in db.query(ParkingSpot.name).all()}
    added = 0
    for name, vehicle_class in spot_names(layout, prefixes):
        if name in existing:
            continue
        db.add(ParkingSpot(name=name, vehicle_class=vehicle_class, status=SPOT_AVAILABLE,
                           occupant_id=None, updated_at=datetime.utcnow()))
        added += 1
    db.commit()
    if added:
        logger.info(f"Seeded {added} parking spots")
    return added


def seed_rates(db: Session, rates: dict = None) -> int:
    rates = settings.DEFAULT_RATES if rates is None else rates
    added = 0
    for vehicle_class, rate in rates.items():
        if db.get(Rate, vehicle_class) is None:
            db.add(Rate(vehicle_class=vehicle_class, rate_per_minute=rate, updated_at=datetime.utcnow()))
            added += 1
    db.commit()
    if added:
        logger.info(f"Seeded {added} default rates")
    return added


def seed_sample_vehicles(db: Session) -> int:
    if db.query(Vehicle).count() > 0:
        return 0
    for v in SAMPLE_VEHICLES:
        db.add(Vehicle(qr_code=f"QR-{v['plate_number']}", plate_number=v["plate_number"],
                       owner_name=v["owner_name"], vehicle_class=v["vehicle_class"],
                       is_active=True, registered_at=datetime.utcnow()))
    db.commit()
    logger.info(f"Seeded {len(SAMPLE_VEHICLES)} sample vehicles")
    return len(SAMPLE_VEHICLES)


def seed_all(db: Session) -> dict:
    return {
        "spots": seed_spots(db),
        "rates": seed_rates(db),
        "vehicles": seed_sample_vehicles(db) if settings.SEED_SAMPLE_VEHICLES else 0,
    }
