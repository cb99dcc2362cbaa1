# tests/test_api.py
"""HTTP surface tests: routers wired to a scratch database via dependency overrides."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock
from fastapi.testclient import TestClient
from smartpark.database import get_db
from smartpark.dependencies import get_interpreter, get_recognizer_dep
from smartpark.main import app
from smartpark.services.plate_recognition import MockPlateRecognizer
from smartpark.services.scan_interpreter import ScanInterpreter


@pytest.fixture
def client(seeded_factory, clock, make_vehicle):
    interpreter = ScanInterpreter(seeded_factory, sink=MagicMock(), clock=clock, debounce_seconds=10)

    def override_db():
        db = seeded_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_interpreter] = lambda: interpreter
    app.dependency_overrides[get_recognizer_dep] = lambda: MockPlateRecognizer(plates=["MH12AB1234"])

    make_vehicle("MH12AB1234", "car", owner="John")
    make_vehicle("MH14TR5555", "truck", owner="Akash")

    yield TestClient(app)
    app.dependency_overrides.clear()


class TestScanEndpoint:
    def test_entry_then_exit(self, client, clock):
        r = client.post("/api/v1/scan", json={"identifier": "QR-MH12AB1234"})
        assert r.status_code == 200
        assert r.json()["status"] == "entry_success"
        assert r.json()["spot"] == "C1"

        clock.advance(minutes=5)
        r = client.post("/api/v1/scan", json={"identifier": "MH12AB1234"})
        body = r.json()
        assert r.status_code == 200
        assert body["status"] == "exit_success"
        assert body["duration_minutes"] == 5
        assert body["fee"] == 10

    def test_unregistered_is_404(self, client):
        r = client.post("/api/v1/scan", json={"identifier": "KA01ZZ0000"})
        assert r.status_code == 404
        assert r.json()["status"] == "unregistered"

    @pytest.mark.parametrize("payload", [{"identifier": ""}, {"identifier": "  "}, {}, {"identifier": 42}])
    def test_missing_identifier_is_400(self, client, payload):
        r = client.post("/api/v1/scan", json=payload)
        assert r.status_code == 400
        assert r.json()["status"] == "invalid_request"

    def test_duplicate_scan_is_reported(self, client, clock):
        client.post("/api/v1/scan", json={"identifier": "MH12AB1234"})
        clock.advance(seconds=2)
        r = client.post("/api/v1/scan", json={"identifier": "MH12AB1234"})
        assert r.status_code == 200
        assert r.json()["status"] == "duplicate_scan"

    def test_full_lot_is_409(self, client, make_vehicle):
        for i in range(3):
            make_vehicle(f"MH14TR000{i}", "truck")
            assert client.post("/api/v1/scan", json={"identifier": f"MH14TR000{i}"}).status_code == 200

        r = client.post("/api/v1/scan", json={"identifier": "MH14TR5555"})
        assert r.status_code == 409
        assert r.json()["status"] == "no_spot_available"


class TestRecognizePlate:
    def test_photo_scan_enters_vehicle(self, client):
        r = client.post("/api/v1/recognize-plate",
                        files={"image": ("gate.jpg", b"\xff\xd8fake-jpeg", "image/jpeg")})
        body = r.json()
        assert r.status_code == 200
        assert body["plate"] == "MH12AB1234"
        assert body["status"] == "entry_success"
        assert body["confidence"] == 0.95

    def test_non_image_rejected(self, client):
        r = client.post("/api/v1/recognize-plate",
                        files={"image": ("notes.txt", b"hello", "text/plain")})
        assert r.status_code == 400
        assert r.json()["status"] == "invalid_request"


class TestLotViews:
    def test_slots_and_availability(self, client):
        client.post("/api/v1/scan", json={"identifier": "MH14TR5555"})

        slots = {s["name"]: s for s in client.get("/api/v1/slots").json()}
        assert len(slots) == 13
        assert slots["T1"]["status"] == "occupied"

        availability = {a["vehicle_class"]: a for a in client.get("/api/v1/slots/availability").json()}
        assert availability["truck"]["available"] == 2

    def test_logs_and_clear(self, client):
        client.post("/api/v1/scan", json={"identifier": "MH12AB1234"})
        client.post("/api/v1/scan", json={"identifier": "MH14TR5555"})

        logs = client.get("/api/v1/logs").json()
        assert {row["plate_number"] for row in logs} == {"MH12AB1234", "MH14TR5555"}

        r = client.delete("/api/v1/logs/clear")
        assert r.status_code == 200
        assert r.json() == {"sessions_cleared": 2, "spots_freed": 2}
        assert client.get("/api/v1/logs").json() == []

    def test_dashboard_snapshot(self, client):
        client.post("/api/v1/scan", json={"identifier": "MH12AB1234"})

        body = client.get("/api/v1/dashboard").json()
        assert set(body) == {"spots", "availability", "logs"}
        assert body["logs"][0]["spot_name"] == "C1"


class TestPricing:
    def test_set_and_clear_rates(self, client):
        r = client.post("/api/v1/pricing", json={"vehicle_class": "car", "rate_per_minute": 5})
        assert r.status_code == 200
        rates = {r["vehicle_class"]: r["rate_per_minute"] for r in client.get("/api/v1/pricing").json()}
        assert rates["car"] == 5

        assert client.delete("/api/v1/pricing/clear").json()["count"] == 3
        assert client.get("/api/v1/pricing").json() == []

    def test_negative_rate_rejected(self, client):
        r = client.post("/api/v1/pricing", json={"vehicle_class": "car", "rate_per_minute": -1})
        assert r.status_code == 422


class TestVehicles:
    def test_register_and_lookup(self, client):
        r = client.post("/api/v1/vehicles", json={"plate_number": "ka 01 ab 0001", "vehicle_class": "bike"})
        assert r.status_code == 200
        assert r.json()["qr_code"] == "QR-KA01AB0001"

        lookup = client.get("/api/v1/vehicles/lookup/QR-KA01AB0001").json()
        assert lookup["registered"] is True
        assert lookup["class"] == "bike"

    def test_duplicate_registration_is_409(self, client):
        r = client.post("/api/v1/vehicles", json={"plate_number": "MH12AB1234"})
        assert r.status_code == 409

    def test_parked_vehicle_cannot_be_removed(self, client):
        client.post("/api/v1/scan", json={"identifier": "MH12AB1234"})

        assert client.delete("/api/v1/vehicles/MH12AB1234").status_code == 409
        assert client.delete("/api/v1/vehicles/MH99XX0000").status_code == 404
        assert client.delete("/api/v1/vehicles/MH14TR5555").status_code == 200


def test_health(client):
    body = client.get("/api/v1/health").json()
    assert body["database"] == "ok"
    assert body["gate_controller"] == "disabled"
    assert body["status"] == "ok"
    assert body["open_sessions"] == 0


def test_validation_errors_elsewhere_stay_422(client):
    r = client.post("/api/v1/vehicles", json={"plate_number": "MH01AA0001", "vehicle_class": "boat"})
    assert r.status_code == 422
