# smartpark/config.py
"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Database ──────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./data/parking.db"
    DB_TIMEOUT_SECONDS: float = 5.0     # SQLite busy timeout / Postgres statement_timeout

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 3000

    # ── Security ──────────────────────────────────────────────────────────
    API_KEY: Optional[str] = None   # Set in .env to enable auth on API endpoints

    # ── Gate / LED controller (ESP32) ─────────────────────────────────────
    GATE_CONTROLLER_IP: str = "10.187.14.240"
    GATE_CONTROLLER_ENABLED: bool = False
    GATE_TIMEOUT_SECONDS: float = 5.0

    # ── Facility layout ───────────────────────────────────────────────────
    # class -> number of spots; names are <prefix><n>, e.g. C1..C5
    SPOT_LAYOUT: dict[str, int] = {"car": 5, "bike": 5, "truck": 3}
    SPOT_PREFIXES: dict[str, str] = {"car": "C", "bike": "B", "truck": "T"}
    SEED_SAMPLE_VEHICLES: bool = True

    # ── Pricing (currency units per minute) ───────────────────────────────
    DEFAULT_RATES: dict[str, float] = {"car": 2, "bike": 1, "truck": 3}
    FALLBACK_RATE: float = 2           # Used when a class has no rate at all

    # ── Scan handling ─────────────────────────────────────────────────────
    SCAN_DEBOUNCE_SECONDS: int = 10    # Repeat scans inside this window are duplicates
    NOTIFY_SEND_TIMEOUT_SECONDS: float = 2.0

    # ── License plate recognition ─────────────────────────────────────────
    PLATE_RECOGNIZER_BACKEND: str = "mock"   # mock | cloud
    PLATE_RECOGNIZER_API_KEY: str = ""
    PLATE_RECOGNIZER_URL: str = "https://api.platerecognizer.com/v1/plate-reader/"
    PLATE_RECOGNIZER_REGIONS: list[str] = ["in"]
    PLATE_MIN_CONFIDENCE: float = 0.7

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_FILE: str = "parking.log"
    LOG_MAX_BYTES: int = 5 * 1024 * 1024   # rotate at 5MB, keep 10 files
    LOG_BACKUP_COUNT: int = 10

    @property
    def GATE_CONTROLLER_URL(self) -> str:
        return f"http://{self.GATE_CONTROLLER_IP}"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
