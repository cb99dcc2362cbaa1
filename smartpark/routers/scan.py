# smartpark/routers/scan.py
"""
Checkpoint scan endpoints.
POST /scan             QR payload or plate typed/decoded by the client.
POST /recognize-plate  camera image; plate recognized, then scanned.
"""

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse
from smartpark.dependencies import get_interpreter, get_recognizer_dep
from smartpark.schemas.scan import PlateScanOutcome, ScanOutcome, ScanRequest, ScanStatus
from smartpark.services.plate_recognition import PlateRecognizer, RecognitionError
from smartpark.services.scan_interpreter import ScanInterpreter
from smartpark.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png"}

STATUS_CODES = {
    ScanStatus.ENTRY_SUCCESS: status.HTTP_200_OK,
    ScanStatus.EXIT_SUCCESS: status.HTTP_200_OK,
    ScanStatus.DUPLICATE_SCAN: status.HTTP_200_OK,
    ScanStatus.UNREGISTERED: status.HTTP_404_NOT_FOUND,
    ScanStatus.NO_SPOT_AVAILABLE: status.HTTP_409_CONFLICT,
    ScanStatus.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    ScanStatus.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _respond(outcome: ScanOutcome) -> JSONResponse:
    return JSONResponse(status_code=STATUS_CODES[outcome.status], content=outcome.model_dump(mode="json"))


@router.post("/scan", response_model=ScanOutcome, summary="Scan a vehicle at the checkpoint")
async def scan(body: ScanRequest, interpreter: ScanInterpreter = Depends(get_interpreter)):
    """Entry if the vehicle is outside, exit if it is parked."""
    outcome = await interpreter.handle_scan(body.identifier)
    return _respond(outcome)


@router.post("/recognize-plate", response_model=PlateScanOutcome, summary="Scan by license plate photo")
async def recognize_plate(
    image: UploadFile = File(...),
    interpreter: ScanInterpreter = Depends(get_interpreter),
    recognizer: PlateRecognizer = Depends(get_recognizer_dep),
):
    if image.content_type not in ALLOWED_IMAGE_TYPES:
        return _respond(ScanOutcome(status=ScanStatus.INVALID_REQUEST,
                                    message="Only image files are allowed (JPEG, JPG, PNG)"))
    data = await image.read()
    if len(data) > MAX_IMAGE_BYTES:
        return _respond(ScanOutcome(status=ScanStatus.INVALID_REQUEST, message="Image larger than 5MB"))

    try:
        reading = await recognizer.recognize(data, image.filename or "upload.jpg")
    except RecognitionError as e:
        logger.warning(f"[LPR] {e}")
        return _respond(ScanOutcome(status=ScanStatus.INVALID_REQUEST, message=str(e)))

    outcome = await interpreter.handle_scan(reading.plate_number)
    result = PlateScanOutcome(**outcome.model_dump(), plate=reading.plate_number, confidence=reading.confidence)
    return JSONResponse(status_code=STATUS_CODES[outcome.status], content=result.model_dump(mode="json"))
