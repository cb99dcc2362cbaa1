# smartpark/routers/pricing.py
"""Per-class rate configuration."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from smartpark.database import get_db
from smartpark.schemas.rate import RateOut, RateUpsert
from smartpark.services import fee_policy

router = APIRouter()


@router.get("/pricing", response_model=list[RateOut], summary="Configured rates per minute")
def get_pricing(db: Session = Depends(get_db)):
    return fee_policy.list_rates(db)


@router.post("/pricing", response_model=RateOut, summary="Set the rate for a vehicle class")
def set_pricing(body: RateUpsert, db: Session = Depends(get_db)):
    return fee_policy.upsert_rate(db, body.vehicle_class, body.rate_per_minute)


@router.delete("/pricing/clear", summary="Remove all configured rates (defaults apply)")
def clear_pricing(db: Session = Depends(get_db)):
    return {"status": "cleared", "count": fee_policy.clear_rates(db)}
