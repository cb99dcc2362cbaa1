# smartpark/routers/health.py
"""
System health check endpoint.
Reports the database, the ESP32 gate controller and the live lot counters.
"""

from datetime import datetime

import requests
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session
from smartpark.config import settings
from smartpark.database import get_db
from smartpark.dependencies import get_broadcaster
from smartpark.services.notification_sink import DashboardBroadcaster
from smartpark.services.session_ledger import SessionLedger
from smartpark.services.spot_pool import SpotPool

router = APIRouter()


def _check_database(db: Session) -> str:
    try:
        db.execute(text("SELECT 1"))
        return "ok"
    except Exception as e:
        return f"error: {e}"


def _check_gate_controller() -> str:
    if not settings.GATE_CONTROLLER_ENABLED:
        return "disabled"
    try:
        resp = requests.get(f"{settings.GATE_CONTROLLER_URL}/", timeout=settings.GATE_TIMEOUT_SECONDS)
    except requests.exceptions.Timeout:
        return "timeout"
    except requests.exceptions.RequestException:
        return "unreachable"
    return "ok" if resp.ok else f"http_{resp.status_code}"


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db), broadcaster: DashboardBroadcaster = Depends(get_broadcaster)):
    """
    status is "degraded" when the database or an enabled gate controller
    does not answer. Lot counters are only filled in when the database is up.
    """
    database = _check_database(db)
    gate = _check_gate_controller()
    result = {
        "status": "ok" if database == "ok" and gate in ("ok", "disabled") else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "database": database,
        "gate_controller": gate,
        "dashboards": broadcaster.client_count,
    }
    if database == "ok":
        result["occupied_spots"] = SpotPool(db).count_occupied()
        result["open_sessions"] = SessionLedger(db).count_open()
    return result
