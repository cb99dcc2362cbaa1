# smartpark/routers/sessions.py
"""Session log and administrative reset."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from smartpark.database import get_db
from smartpark.dependencies import get_interpreter
from smartpark.schemas.parking_session import SessionLogOut
from smartpark.schemas.scan import ClearAllResult
from smartpark.services.scan_interpreter import ClearAllFailed, ScanInterpreter
from smartpark.services.session_ledger import SessionLedger

router = APIRouter()


@router.get("/logs", response_model=list[SessionLogOut], summary="Parking sessions, newest first")
def list_logs(limit: int = 100, open_only: bool = False, db: Session = Depends(get_db)):
    return SessionLedger(db).recent(limit, open_only=open_only)


@router.delete("/logs/clear", response_model=ClearAllResult, summary="Delete all sessions and free all spots")
async def clear_logs(interpreter: ScanInterpreter = Depends(get_interpreter)):
    try:
        return await interpreter.handle_clear_all()
    except ClearAllFailed as e:
        raise HTTPException(status_code=500, detail=str(e))
