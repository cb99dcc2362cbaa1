# smartpark/services/vehicle_service.py
"""
Vehicle Registry: lookup and registration helpers.
Used by the scan interpreter (read-only) and the vehicles router.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session
from smartpark.models.vehicle import Vehicle
from smartpark.models.parking_session import ParkingSession
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)


class VehicleAlreadyRegistered(Exception):
    pass


class VehicleStillParked(Exception):
    pass


def normalize_plate(plate_number: str) -> str:
    """Upper-case and strip whitespace: 'mh 12 ab 1234' -> 'MH12AB1234'."""
    return "".join(plate_number.split()).upper()


def default_qr_code(plate_number: str) -> str:
    return f"QR-{normalize_plate(plate_number)}"


def resolve(db: Session, identifier: str) -> Optional[Vehicle]:
    """
    Find an active vehicle by QR payload or plate number.
    An exact QR match wins over a plate match.
    """
    identifier = identifier.strip()
    if not identifier:
        return None
    vehicle = (
        db.query(Vehicle)
        .filter(Vehicle.qr_code == identifier, Vehicle.is_active.is_(True))
        .first()
    )
    if vehicle:
        return vehicle
    return (
        db.query(Vehicle)
        .filter(Vehicle.plate_number == normalize_plate(identifier), Vehicle.is_active.is_(True))
        .first()
    )


def is_registered(db: Session, identifier: str) -> bool:
    """Check if an identifier maps to an active vehicle."""
    return resolve(db, identifier) is not None


def list_vehicles(db: Session, vehicle_class: str = None, include_inactive: bool = False):
    q = db.query(Vehicle)
    if not include_inactive:
        q = q.filter(Vehicle.is_active.is_(True))
    if vehicle_class:
        q = q.filter(Vehicle.vehicle_class == vehicle_class)
    return q.order_by(Vehicle.registered_at.desc(), Vehicle.id.desc()).all()


def register_vehicle(db: Session, plate_number: str, owner_name: str = None,
                     vehicle_class: str = "car", qr_code: str = None) -> Vehicle:
    """Register a vehicle. Raises VehicleAlreadyRegistered on a plate or QR clash."""
    plate = normalize_plate(plate_number)
    qr = (qr_code or "").strip() or default_qr_code(plate)

    existing = db.query(Vehicle).filter(or_(Vehicle.plate_number == plate, Vehicle.qr_code == qr)).first()
    if existing and existing.is_active:
        raise VehicleAlreadyRegistered(f"Vehicle {plate} / {qr} already registered")
    if existing and existing.plate_number == plate and existing.qr_code == qr:
        # Same vehicle coming back after deactivation
        existing.owner_name = owner_name
        existing.vehicle_class = vehicle_class
        existing.is_active = True
        existing.registered_at = datetime.utcnow()
        db.commit()
        db.refresh(existing)
        logger.info(f"[REGISTRY] Re-activated {plate} ({vehicle_class})")
        return existing
    if existing:
        raise VehicleAlreadyRegistered(f"Vehicle {plate} / {qr} clashes with a deactivated vehicle")

    vehicle = Vehicle(
        qr_code=qr,
        plate_number=plate,
        owner_name=owner_name,
        vehicle_class=vehicle_class,
        is_active=True,
        registered_at=datetime.utcnow(),
    )
    db.add(vehicle)
    db.commit()
    db.refresh(vehicle)
    logger.info(f"[REGISTRY] Registered {plate} ({vehicle_class}) qr={qr}")
    return vehicle


def deactivate_vehicle(db: Session, identifier: str) -> Vehicle:
    """
    Soft-delete a vehicle. Refused while the vehicle has an open session:
    the car must be scanned out (or the lot cleared) first.
    Returns None if the identifier is unknown.
    """
    vehicle = resolve(db, identifier)
    if not vehicle:
        return None

    open_session = (
        db.query(ParkingSession)
        .filter(ParkingSession.vehicle_id == vehicle.id, ParkingSession.exit_time.is_(None))
        .first()
    )
    if open_session:
        raise VehicleStillParked(f"Vehicle {vehicle.plate_number} is parked in {open_session.spot_name}")

    vehicle.is_active = False
    db.commit()
    logger.info(f"[REGISTRY] Deactivated {vehicle.plate_number}")
    return vehicle
