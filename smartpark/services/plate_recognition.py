# smartpark/services/plate_recognition.py
"""
License plate recognition strategies.

Both backends return the best plate reading; the /recognize-plate route
hands the plate to the scan interpreter as a plain identifier.

  mock   deterministic stand-in for demos and tests (no network)
  cloud  Plate Recognizer API (https://platerecognizer.com/)
"""

import hashlib
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from smartpark.config import settings
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)

# Indian plates: MH12AB1234, DL1CA123 ...
INDIAN_PLATE_RE = re.compile(r"^[A-Z]{2}[0-9]{1,2}[A-Z]{1,2}[0-9]{1,4}$", re.IGNORECASE)


class RecognitionError(Exception):
    pass


@dataclass
class PlateReading:
    plate_number: str
    confidence: float
    region: Optional[str] = None
    vehicle_type: Optional[str] = None


def clean_plate(raw: str) -> str:
    return re.sub(r"\s+", "", raw or "").upper()


def is_valid_indian_plate(plate_number: str) -> bool:
    return bool(INDIAN_PLATE_RE.match(plate_number))


class PlateRecognizer(ABC):
    @abstractmethod
    async def recognize(self, image: bytes, filename: str = "upload.jpg") -> PlateReading:
        """Return the best plate reading or raise RecognitionError."""


class MockPlateRecognizer(PlateRecognizer):
    """
    Picks one of a fixed set of plates from a hash of the image bytes, so the
    same photo always yields the same plate.
    """

    SAMPLE_PLATES = ["MH12AB1234", "MH12XY9876", "MH14TR5555"]

    def __init__(self, plates: list[str] = None, confidence: float = 0.95):
        self.plates = plates or self.SAMPLE_PLATES
        self.confidence = confidence

    async def recognize(self, image: bytes, filename: str = "upload.jpg") -> PlateReading:
        if not image:
            raise RecognitionError("Empty image")
        digest = hashlib.sha1(image).digest()
        plate = self.plates[digest[0] % len(self.plates)]
        logger.info(f"[LPR] Mock recognized {plate} from {filename} ({len(image)} bytes)")
        return PlateReading(plate_number=plate, confidence=self.confidence, region="in")


class PlateRecognizerClient(PlateRecognizer):
    def __init__(self, api_key: str = None, api_url: str = None, regions: list[str] = None,
                 min_confidence: float = None, timeout: float = 10):
        self.api_key = settings.PLATE_RECOGNIZER_API_KEY if api_key is None else api_key
        self.api_url = api_url or settings.PLATE_RECOGNIZER_URL
        self.regions = regions or settings.PLATE_RECOGNIZER_REGIONS
        self.min_confidence = settings.PLATE_MIN_CONFIDENCE if min_confidence is None else min_confidence
        self.timeout = timeout

    async def recognize(self, image: bytes, filename: str = "upload.jpg") -> PlateReading:
        if not self.api_key:
            raise RecognitionError("Plate Recognizer API key is not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.api_url,
                    headers={"Authorization": f"Token {self.api_key}"},
                    files={"upload": (filename, image)},
                    data={"regions": self.regions},
                )
        except httpx.HTTPError as e:
            logger.error(f"[LPR] Plate Recognizer unreachable: {e}")
            raise RecognitionError(f"License plate recognition failed: {e}") from e

        if response.status_code not in (200, 201):
            raise RecognitionError(f"Plate Recognizer returned HTTP {response.status_code}")
        return self.parse_response(response.json())

    def parse_response(self, data: dict) -> PlateReading:
        results = data.get("results") or []
        if not results:
            raise RecognitionError("No license plates detected in the image")

        best = max(results, key=lambda r: r.get("score", 0))
        if best.get("score", 0) < self.min_confidence:
            raise RecognitionError("License plate confidence too low")

        plate = clean_plate(best.get("plate", ""))
        if not is_valid_indian_plate(plate):
            raise RecognitionError(f"Invalid Indian license plate format: {plate}")

        region = best.get("region") or {}
        vehicle = best.get("vehicle") or {}
        logger.info(f"[LPR] Recognized {plate} (score={best['score']:.2f})")
        return PlateReading(
            plate_number=plate,
            confidence=best["score"],
            region=region.get("code") if isinstance(region, dict) else region,
            vehicle_type=vehicle.get("type"),
        )


def get_recognizer(backend: str = None) -> PlateRecognizer:
    backend = (backend or settings.PLATE_RECOGNIZER_BACKEND).lower()
    if backend == "cloud":
        return PlateRecognizerClient()
    if backend != "mock":
        logger.warning(f"[LPR] Unknown recognizer backend {backend!r}, using mock")
    return MockPlateRecognizer()
