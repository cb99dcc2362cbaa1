# smartpark/services/scan_interpreter.py
"""
Scan Interpreter: turns one checkpoint scan into an entry or an exit.

  1. resolve the identifier (QR payload or plate) to a registered vehicle
  2. under that vehicle's lock, look for its open session
  3. none  -> allocate a spot of the vehicle's class and open a session
     open  -> free the spot, close the session with duration and fee
  4. commit, release the lock, then publish the event

Steps 2-3 run in one database transaction in the thread pool. Any failure
rolls the whole transaction back and the scan reports internal_error.
Nothing is raised to the caller: every path ends in a ScanOutcome.
"""

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from smartpark.config import settings
from smartpark.schemas.events import ClearAllEvent, EntryEvent, ExitEvent, ParkingEvent
from smartpark.schemas.scan import CONSISTENCY_ANOMALY, ClearAllResult, ScanOutcome, ScanStatus
from smartpark.services import vehicle_service
from smartpark.services.fee_policy import FeePolicy
from smartpark.services.notification_sink import NotificationSink, NullSink
from smartpark.services.session_ledger import SessionLedger, compute_duration_minutes
from smartpark.services.spot_pool import SpotPool
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)


class ClearAllFailed(Exception):
    """The whole-lot reset could not be committed; nothing was changed."""


@dataclass(frozen=True)
class VehicleRef:
    """Detached snapshot of a vehicle, safe to pass between threads."""
    id: int
    plate_number: str
    vehicle_class: Optional[str]


class TransitionLocks:
    """
    Per-vehicle mutual exclusion plus an exclusive mode for whole-lot resets.

    hold(key) serializes transitions of one vehicle while other vehicles
    proceed. hold_all() waits until no transition is running; from the moment
    it starts waiting new transitions queue behind it until it is released.
    """

    def __init__(self):
        self._locks: dict = {}
        self._users: dict = defaultdict(int)
        self._cond = asyncio.Condition()
        self._active = 0
        self._exclusive = False
        self._pending_exclusive = 0

    @asynccontextmanager
    async def hold(self, key):
        async with self._cond:
            # A waiting hold_all() goes first so a busy lot cannot starve it
            await self._cond.wait_for(lambda: not self._exclusive and not self._pending_exclusive)
            self._active += 1
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                self._locks.pop(key, None)
            async with self._cond:
                self._active -= 1
                self._cond.notify_all()

    @asynccontextmanager
    async def hold_all(self):
        async with self._cond:
            self._pending_exclusive += 1
            try:
                await self._cond.wait_for(lambda: not self._exclusive and self._active == 0)
            finally:
                self._pending_exclusive -= 1
                self._cond.notify_all()
            self._exclusive = True
        try:
            yield
        finally:
            async with self._cond:
                self._exclusive = False
                self._cond.notify_all()

    def __len__(self):
        return len(self._locks)


class ScanInterpreter:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        sink: NotificationSink = None,
        fee_policy: FeePolicy = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        debounce_seconds: int = None,
    ):
        self.session_factory = session_factory
        self.sink = sink or NullSink()
        self.fee_policy = fee_policy or FeePolicy()
        self.clock = clock
        seconds = settings.SCAN_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        self.debounce = timedelta(seconds=max(0, seconds))
        self.locks = TransitionLocks()

    # ── Public API ─────────────────────────────────────────────────────────

    async def handle_scan(self, identifier: str) -> ScanOutcome:
        identifier = identifier.strip() if isinstance(identifier, str) else ""
        if not identifier:
            logger.warning("[SCAN] Rejected empty identifier")
            return ScanOutcome(status=ScanStatus.INVALID_REQUEST, message="identifier required")

        logger.info(f"[SCAN] Received identifier={identifier!r}")
        try:
            vehicle = await run_in_threadpool(self._resolve, identifier)
        except Exception as e:
            logger.error(f"[SCAN] Vehicle lookup failed for {identifier!r}: {e}", exc_info=True)
            return self._internal_error(identifier)

        if vehicle is None:
            logger.info(f"[SCAN] {identifier!r} is not registered")
            return ScanOutcome(status=ScanStatus.UNREGISTERED, identifier=identifier,
                               message="Vehicle not registered")

        async with self.locks.hold(vehicle.id):
            try:
                outcome, event = await run_in_threadpool(self._transition, vehicle, identifier)
            except Exception as e:
                logger.error(f"[SCAN] Transition failed for {vehicle.plate_number}: {e}", exc_info=True)
                return self._internal_error(identifier)

        if event is not None:
            self._notify(event)
        return outcome

    async def handle_clear_all(self) -> ClearAllResult:
        """
        Delete every session and free every spot in one transaction.
        Raises ClearAllFailed if the reset could not be committed.
        """
        async with self.locks.hold_all():
            try:
                result = await run_in_threadpool(self._clear_all)
            except Exception as e:
                logger.error(f"[CLEAR] Reset failed: {e}", exc_info=True)
                raise ClearAllFailed("clear-all failed, nothing was changed") from e

        logger.info(f"[CLEAR] Cleared {result.sessions_cleared} sessions, freed {result.spots_freed} spots")
        self._notify(ClearAllEvent(sessions_cleared=result.sessions_cleared, spots_freed=result.spots_freed))
        return result

    # ── Transactions (run in the thread pool) ──────────────────────────────

    def _resolve(self, identifier: str) -> Optional[VehicleRef]:
        db = self.session_factory()
        try:
            vehicle = vehicle_service.resolve(db, identifier)
            if vehicle is None:
                return None
            return VehicleRef(id=vehicle.id, plate_number=vehicle.plate_number,
                              vehicle_class=vehicle.vehicle_class)
        finally:
            db.close()

    def _transition(self, vehicle: VehicleRef, identifier: str):
        db = self.session_factory()
        try:
            now = self.clock()
            ledger = SessionLedger(db)
            pool = SpotPool(db)

            open_session = ledger.open_session_for(vehicle.id)
            if open_session is None:
                result = self._enter(db, ledger, pool, vehicle, identifier, now)
            else:
                result = self._exit(db, ledger, pool, vehicle, identifier, open_session, now)

            db.commit()
            return result
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _enter(self, db, ledger: SessionLedger, pool: SpotPool, vehicle: VehicleRef, identifier, now):
        last = ledger.last_closed_for(vehicle.id)
        if last is not None and self._is_repeat(last.exit_time, now):
            logger.info(f"[SCAN] Duplicate scan of {vehicle.plate_number} right after exit, ignored")
            return ScanOutcome(status=ScanStatus.DUPLICATE_SCAN, identifier=identifier,
                               vehicle=vehicle.plate_number, vehicle_class=vehicle.vehicle_class,
                               spot=last.spot_name, message="Vehicle just exited"), None

        spot = pool.allocate(vehicle.vehicle_class, vehicle.id)
        if spot is None:
            logger.warning(f"[ENTRY] No {vehicle.vehicle_class or 'undeclared-class'} spot free for {vehicle.plate_number}")
            return ScanOutcome(status=ScanStatus.NO_SPOT_AVAILABLE, identifier=identifier,
                               vehicle=vehicle.plate_number, vehicle_class=vehicle.vehicle_class,
                               message=f"No free {vehicle.vehicle_class} spots available"), None

        ledger.create(vehicle.id, spot.name, now)
        logger.info(f"[ENTRY] {vehicle.plate_number} ({vehicle.vehicle_class}) -> {spot.name} at {now.isoformat()}")

        outcome = ScanOutcome(status=ScanStatus.ENTRY_SUCCESS, identifier=identifier,
                              vehicle=vehicle.plate_number, vehicle_class=vehicle.vehicle_class,
                              spot=spot.name, entry_time=now)
        event = EntryEvent(spot=spot.name, vehicle=vehicle.plate_number,
                           vehicle_class=vehicle.vehicle_class, entry_time=now)
        return outcome, event

    def _exit(self, db, ledger: SessionLedger, pool: SpotPool, vehicle: VehicleRef, identifier, open_session, now):
        if self._is_repeat(open_session.entry_time, now):
            logger.info(f"[SCAN] Duplicate scan of {vehicle.plate_number} right after entry, ignored")
            return ScanOutcome(status=ScanStatus.DUPLICATE_SCAN, identifier=identifier,
                               vehicle=vehicle.plate_number, vehicle_class=vehicle.vehicle_class,
                               spot=open_session.spot_name, entry_time=open_session.entry_time,
                               message="Vehicle just entered"), None

        anomaly = None
        freed_spot = None
        spot = pool.find_occupied_by(vehicle.id)
        if spot is None:
            anomaly = CONSISTENCY_ANOMALY
            logger.warning(
                f"[ANOMALY] Session {open_session.id} of {vehicle.plate_number} records spot "
                f"{open_session.spot_name} but no spot is held by the vehicle, closing without freeing"
            )
        else:
            if spot.name != open_session.spot_name:
                anomaly = CONSISTENCY_ANOMALY
                logger.warning(
                    f"[ANOMALY] Session {open_session.id} of {vehicle.plate_number} records spot "
                    f"{open_session.spot_name} but the vehicle holds {spot.name}, freeing {spot.name}"
                )
            pool.free(spot.name)
            freed_spot = spot.name

        duration = compute_duration_minutes(open_session.entry_time, now)
        rate = self.fee_policy.rate_for(db, vehicle.vehicle_class)
        fee = self.fee_policy.fee_for(duration, rate)
        ledger.close(open_session.id, now, duration, fee)
        logger.info(
            f"[EXIT] {vehicle.plate_number} left {freed_spot or open_session.spot_name} | "
            f"Duration: {duration} min | Rate: {rate}/min | Fee: {fee}"
        )

        outcome = ScanOutcome(status=ScanStatus.EXIT_SUCCESS, identifier=identifier,
                              vehicle=vehicle.plate_number, vehicle_class=vehicle.vehicle_class,
                              spot=freed_spot or open_session.spot_name,
                              entry_time=open_session.entry_time, exit_time=now,
                              duration_minutes=duration, fee=fee, anomaly=anomaly)
        event = ExitEvent(spot=freed_spot, vehicle=vehicle.plate_number,
                          duration_minutes=duration, fee=fee)
        return outcome, event

    def _clear_all(self) -> ClearAllResult:
        db = self.session_factory()
        try:
            ledger = SessionLedger(db)
            pool = SpotPool(db)
            sessions_cleared = ledger.clear_all()
            spots_freed = pool.free_all()
            db.commit()
            return ClearAllResult(sessions_cleared=sessions_cleared, spots_freed=spots_freed)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ── Helpers ────────────────────────────────────────────────────────────

    def _is_repeat(self, last_transition: Optional[datetime], now: datetime) -> bool:
        if not self.debounce or last_transition is None:
            return False
        return timedelta(0) <= now - last_transition < self.debounce

    def _notify(self, event: ParkingEvent):
        try:
            self.sink.publish(event)
        except Exception as e:
            logger.error(f"[NOTIFY] Publishing {event.type} failed: {e}", exc_info=True)

    @staticmethod
    def _internal_error(identifier: str) -> ScanOutcome:
        return ScanOutcome(status=ScanStatus.INTERNAL_ERROR, identifier=identifier,
                           message="Internal error, scan not applied")
