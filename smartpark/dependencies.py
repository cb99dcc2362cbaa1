# smartpark/dependencies.py
"""
Process-wide wiring of the scan core: one broadcaster, one gate controller,
one interpreter. Routers get them through FastAPI Depends so tests can
swap them with app.dependency_overrides.
"""

from smartpark.database import SessionLocal
from smartpark.services.gate_controller import GateController
from smartpark.services.notification_sink import CompositeSink, DashboardBroadcaster
from smartpark.services.plate_recognition import PlateRecognizer, get_recognizer
from smartpark.services.scan_interpreter import ScanInterpreter

broadcaster = DashboardBroadcaster()
gate_controller = GateController()
interpreter = ScanInterpreter(SessionLocal, sink=CompositeSink([broadcaster, gate_controller]))
recognizer = get_recognizer()


def get_interpreter() -> ScanInterpreter:
    return interpreter


def get_broadcaster() -> DashboardBroadcaster:
    return broadcaster


def get_recognizer_dep() -> PlateRecognizer:
    return recognizer
