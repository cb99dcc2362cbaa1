# tests/conftest.py
"""
Shared fixtures: a throw-away SQLite database per test, a controllable
clock, and helpers to register vehicles and read back lot state.
"""

import sys
import os
import tempfile
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Point the app at a scratch database before anything imports smartpark
_SCRATCH = tempfile.mkdtemp(prefix="smartpark-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_SCRATCH, 'app.db')}")
os.environ.setdefault("GATE_CONTROLLER_ENABLED", "false")
os.environ.setdefault("PLATE_RECOGNIZER_BACKEND", "mock")

import pytest
from datetime import datetime, timedelta
from sqlalchemy.orm import sessionmaker
from smartpark.database import build_engine, create_tables
from smartpark.models.parking_spot import ParkingSpot
from smartpark.models.parking_session import ParkingSession
from smartpark.services.seed_service import seed_rates, seed_spots
from smartpark.services.vehicle_service import register_vehicle


class FakeClock:
    def __init__(self, start=datetime(2026, 3, 1, 9, 0, 0)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'parking.db'}", timeout=5)
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded_factory(session_factory):
    """Default layout (C1-C5, B1-B5, T1-T3) and default rates."""
    session = session_factory()
    try:
        seed_spots(session)
        seed_rates(session)
    finally:
        session.close()
    return session_factory


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_vehicle(session_factory):
    """Register a vehicle in its own short transaction; returns its id."""
    def _make(plate, vehicle_class="car", qr_code=None, owner="Test Owner"):
        session = session_factory()
        try:
            return register_vehicle(session, plate, owner, vehicle_class, qr_code).id
        finally:
            session.close()
    return _make


@pytest.fixture
def lot_state(session_factory):
    """Read spots and sessions into plain values without holding a transaction."""
    def _state():
        session = session_factory()
        try:
            spots = {s.name: (s.status, s.occupant_id) for s in session.query(ParkingSpot).all()}
            sessions = [
                {
                    "id": s.id,
                    "vehicle_id": s.vehicle_id,
                    "spot_name": s.spot_name,
                    "entry_time": s.entry_time,
                    "exit_time": s.exit_time,
                    "duration_minutes": s.duration_minutes,
                    "fee": s.fee,
                }
                for s in session.query(ParkingSession).order_by(ParkingSession.id).all()
            ]
            return spots, sessions
        finally:
            session.close()
    return _state
