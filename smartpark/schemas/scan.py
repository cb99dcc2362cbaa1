# smartpark/schemas/scan.py
"""
Scan request/outcome models.
ScanOutcome is the structured result returned for every scan; failures are
outcomes too, never exceptions.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ScanStatus(str, Enum):
    ENTRY_SUCCESS = "entry_success"
    EXIT_SUCCESS = "exit_success"
    UNREGISTERED = "unregistered"
    NO_SPOT_AVAILABLE = "no_spot_available"
    DUPLICATE_SCAN = "duplicate_scan"
    INVALID_REQUEST = "invalid_request"
    INTERNAL_ERROR = "internal_error"


CONSISTENCY_ANOMALY = "consistency_anomaly"


class ScanRequest(BaseModel):
    identifier: Optional[str] = None


class ScanOutcome(BaseModel):
    status: ScanStatus
    identifier: Optional[str] = None
    vehicle: Optional[str] = None          # plate number
    vehicle_class: Optional[str] = None
    spot: Optional[str] = None
    entry_time: Optional[datetime] = None
    exit_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    fee: Optional[float] = None
    anomaly: Optional[str] = None          # consistency_anomaly on a recovered exit
    message: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status in (ScanStatus.ENTRY_SUCCESS, ScanStatus.EXIT_SUCCESS)


class ClearAllResult(BaseModel):
    sessions_cleared: int
    spots_freed: int


class PlateScanOutcome(ScanOutcome):
    plate: Optional[str] = None
    confidence: Optional[float] = None
