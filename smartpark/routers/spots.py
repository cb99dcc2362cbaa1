# smartpark/routers/spots.py
"""Spot status and dashboard snapshot endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from smartpark.database import get_db
from smartpark.schemas.parking_spot import ClassAvailabilityOut, ParkingSpotOut
from smartpark.services.session_ledger import SessionLedger
from smartpark.services.spot_pool import SpotPool

router = APIRouter()


@router.get("/slots", response_model=list[ParkingSpotOut], summary="All parking spots")
def list_slots(vehicle_class: str = None, db: Session = Depends(get_db)):
    return SpotPool(db).list_spots(vehicle_class)


@router.get("/slots/availability", response_model=list[ClassAvailabilityOut], summary="Free spots per class")
def slot_availability(db: Session = Depends(get_db)):
    return SpotPool(db).availability()


@router.get("/dashboard", summary="Spots, availability and recent sessions in one call")
def dashboard(limit: int = 100, db: Session = Depends(get_db)):
    pool = SpotPool(db)
    return {
        "spots": [ParkingSpotOut.model_validate(s).model_dump(mode="json") for s in pool.list_spots()],
        "availability": pool.availability(),
        "logs": SessionLedger(db).recent(limit),
    }
