# smartpark/services/notification_sink.py
"""
Notification sinks: fire-and-forget delivery of parking events.

publish() never blocks and never raises. Delivery runs as a background task
on the running event loop; failures are logged and dropped (no retries).
The scan interpreter only calls publish() after its transaction commits.
"""

import asyncio
from abc import ABC, abstractmethod

from smartpark.config import settings
from smartpark.schemas.events import ParkingEvent
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)


class NotificationSink(ABC):
    @abstractmethod
    def publish(self, event: ParkingEvent) -> None:
        ...

    async def drain(self):
        """Wait for in-flight deliveries. Used at shutdown and in tests."""


class BackgroundSink(NotificationSink):
    """Runs each delivery as a tracked asyncio task."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    def _spawn(self, coro, name: str):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning(f"[NOTIFY] No running event loop, dropped {name}")
            return None
        task = loop.create_task(self._guarded(coro, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @staticmethod
    async def _guarded(coro, name: str):
        try:
            await coro
        except Exception as e:
            logger.error(f"[NOTIFY] {name} failed: {e}", exc_info=True)

    async def drain(self):
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class CompositeSink(NotificationSink):
    """Fans one event out to several sinks; one failing sink never affects the rest."""

    def __init__(self, sinks: list[NotificationSink]):
        self.sinks = list(sinks)

    def publish(self, event: ParkingEvent) -> None:
        for sink in self.sinks:
            try:
                sink.publish(event)
            except Exception as e:
                logger.error(f"[NOTIFY] {type(sink).__name__} rejected {event.type}: {e}", exc_info=True)

    async def drain(self):
        for sink in self.sinks:
            await sink.drain()


class NullSink(NotificationSink):
    def publish(self, event: ParkingEvent) -> None:
        logger.debug(f"[NOTIFY] Discarded {event.type}")


class DashboardBroadcaster(BackgroundSink):
    """
    Pushes events to every connected dashboard WebSocket as
    {"type": <entry|exit|clear_all>, "data": {...}}.
    Clients that fail or time out are dropped.
    """

    def __init__(self, send_timeout: float = settings.NOTIFY_SEND_TIMEOUT_SECONDS):
        super().__init__()
        self.send_timeout = send_timeout
        self._clients: set = set()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def connect(self, websocket):
        await websocket.accept()
        self._clients.add(websocket)
        logger.info(f"[NOTIFY] Dashboard connected ({self.client_count} total)")

    def disconnect(self, websocket):
        if websocket in self._clients:
            self._clients.discard(websocket)
            logger.info(f"[NOTIFY] Dashboard disconnected ({self.client_count} left)")

    def publish(self, event: ParkingEvent) -> None:
        if not self._clients:
            logger.debug(f"[NOTIFY] No dashboards connected, {event.type} not broadcast")
            return
        payload = event.model_dump(mode="json")
        message = {"type": payload.pop("type"), "data": payload}
        self._spawn(self._broadcast(message), name=f"broadcast-{event.type}")

    async def _broadcast(self, message: dict):
        clients = list(self._clients)
        results = await asyncio.gather(
            *(asyncio.wait_for(ws.send_json(message), timeout=self.send_timeout) for ws in clients),
            return_exceptions=True,
        )
        for ws, result in zip(clients, results):
            if isinstance(result, Exception):
                logger.warning(f"[NOTIFY] Dropping dashboard after failed send: {result!r}")
                self.disconnect(ws)
