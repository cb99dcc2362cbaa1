# smartpark/routers/vehicles.py
"""Vehicle Registry: register, list, look up and deactivate vehicles."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from smartpark.database import get_db
from smartpark.schemas.vehicle import VehicleCreate, VehicleOut
from smartpark.services import vehicle_service

router = APIRouter()


@router.get("/vehicles", response_model=list[VehicleOut], summary="List registered vehicles")
def list_vehicles(vehicle_class: str = None, db: Session = Depends(get_db)):
    return vehicle_service.list_vehicles(db, vehicle_class)


@router.post("/vehicles", response_model=VehicleOut, summary="Register a new vehicle")
def register_vehicle(body: VehicleCreate, db: Session = Depends(get_db)):
    """Register a vehicle; its QR payload defaults to QR-<plate>."""
    if not body.plate_number.strip():
        raise HTTPException(status_code=400, detail="plate_number required")
    try:
        return vehicle_service.register_vehicle(
            db, body.plate_number, body.owner_name, body.vehicle_class, body.qr_code,
        )
    except vehicle_service.VehicleAlreadyRegistered as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/vehicles/{identifier}", summary="Deactivate a vehicle")
def remove_vehicle(identifier: str, db: Session = Depends(get_db)):
    try:
        vehicle = vehicle_service.deactivate_vehicle(db, identifier)
    except vehicle_service.VehicleStillParked as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return {"status": "removed", "plate": vehicle.plate_number}


@router.get("/vehicles/lookup/{identifier}", summary="Look up a QR payload or plate number")
def lookup_vehicle(identifier: str, db: Session = Depends(get_db)):
    vehicle = vehicle_service.resolve(db, identifier)
    if not vehicle:
        return {"identifier": identifier, "status": "unknown", "registered": False}
    return {"identifier": identifier, "status": "known", "registered": True,
            "plate": vehicle.plate_number, "owner": vehicle.owner_name, "class": vehicle.vehicle_class}
