# smartpark/services/gate_controller.py
"""
Gate/LED controller sink. Tells the ESP32 at the checkpoint to open the
barrier and light the assigned spot.

Endpoints: POST http://{GATE_CONTROLLER_IP}/entry  {vehicleId, vehicleType, slotId}
           POST http://{GATE_CONTROLLER_IP}/exit   {vehicleId, slotId, fee}
An exit without a known spot sends slotId null (gate only).
One attempt per event with a short timeout; errors are logged, never raised.
"""

from typing import Optional

import httpx

from smartpark.config import settings
from smartpark.schemas.events import ClearAllEvent, EntryEvent, ExitEvent, ParkingEvent
from smartpark.services.notification_sink import BackgroundSink
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)


class GateController(BackgroundSink):
    def __init__(self, base_url: str = None, enabled: bool = None, timeout: float = None):
        super().__init__()
        self.base_url = (base_url or settings.GATE_CONTROLLER_URL).rstrip("/")
        self.enabled = settings.GATE_CONTROLLER_ENABLED if enabled is None else enabled
        self.timeout = settings.GATE_TIMEOUT_SECONDS if timeout is None else timeout

    def publish(self, event: ParkingEvent) -> None:
        if not self.enabled:
            logger.debug(f"[GATE] Controller disabled, skipping {event.type}")
            return
        if isinstance(event, EntryEvent):
            self._spawn(self.trigger_entry(event.vehicle, event.vehicle_class, event.spot), name="gate-entry")
        elif isinstance(event, ExitEvent):
            if not event.spot:
                # slotId null opens the barrier and leaves every LED as it is
                logger.warning(f"[GATE] Exit for {event.vehicle} has no spot, opening gate only")
            self._spawn(self.trigger_exit(event.vehicle, event.spot, event.fee), name="gate-exit")
        elif isinstance(event, ClearAllEvent):
            logger.debug("[GATE] clear_all has no gate action")

    async def trigger_entry(self, vehicle_id: str, vehicle_class: str, spot: str) -> dict:
        logger.info(f"[GATE] 🚗 Entry sequence for {vehicle_id} ({vehicle_class}) -> {spot}")
        return await self._post("/entry", {"vehicleId": vehicle_id, "vehicleType": vehicle_class, "slotId": spot})

    async def trigger_exit(self, vehicle_id: str, spot: Optional[str], fee: float) -> dict:
        logger.info(f"[GATE] 🚗 Exit sequence for {vehicle_id} from {spot} | Fee: {fee}")
        return await self._post("/exit", {"vehicleId": vehicle_id, "slotId": spot, "fee": fee})

    async def _post(self, endpoint: str, payload: dict) -> dict:
        url = f"{self.base_url}{endpoint}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=payload)
            if response.status_code != 200:
                logger.warning(f"[GATE] {url} returned HTTP {response.status_code}")
            try:
                return response.json()
            except ValueError:
                return {"raw": response.text}
        except httpx.TimeoutException:
            logger.error(f"[GATE] Timeout calling {url}")
            return {"error": "timeout"}
        except httpx.HTTPError as e:
            logger.error(f"[GATE] {url} unreachable: {e}")
            return {"error": str(e)}
