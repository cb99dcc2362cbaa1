# smartpark/services/fee_policy.py
"""
Fee Policy: per-class rate lookup and fee calculation.

Lookup order: rates table -> settings.DEFAULT_RATES -> settings.FALLBACK_RATE.
A missing rate never fails a scan. A stored rate of 0 means free parking.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session
from smartpark.config import settings
from smartpark.models.rate import Rate
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)


class FeePolicy:
    def __init__(self, defaults: dict = None, fallback: float = None):
        self.defaults = dict(settings.DEFAULT_RATES if defaults is None else defaults)
        self.fallback = settings.FALLBACK_RATE if fallback is None else fallback

    def default_rate(self, vehicle_class: Optional[str]) -> float:
        return self.defaults.get(vehicle_class, self.fallback)

    def rate_for(self, db: Session, vehicle_class: Optional[str]) -> float:
        if vehicle_class:
            row = db.get(Rate, vehicle_class)
            if row is not None and row.rate_per_minute is not None:
                return row.rate_per_minute
        rate = self.default_rate(vehicle_class)
        logger.debug(f"[FEES] No configured rate for {vehicle_class!r}, using default {rate}")
        return rate

    @staticmethod
    def fee_for(duration_minutes: int, rate: float) -> float:
        return duration_minutes * rate


def list_rates(db: Session):
    return db.query(Rate).order_by(Rate.vehicle_class).all()


def upsert_rate(db: Session, vehicle_class: str, rate_per_minute: float) -> Rate:
    if rate_per_minute < 0:
        raise ValueError("rate_per_minute must be >= 0")
    row = db.get(Rate, vehicle_class)
    if row is None:
        row = Rate(vehicle_class=vehicle_class, rate_per_minute=rate_per_minute, updated_at=datetime.utcnow())
        db.add(row)
    else:
        row.rate_per_minute = rate_per_minute
        row.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(row)
    logger.info(f"[FEES] Rate for {vehicle_class} set to {rate_per_minute}/min")
    return row


def clear_rates(db: Session) -> int:
    count = db.query(Rate).delete(synchronize_session=False)
    db.commit()
    logger.info(f"[FEES] Cleared {count} configured rates, defaults apply")
    return count
