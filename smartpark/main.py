# smartpark/main.py
"""
FastAPI application entry point.
Wires middleware, error handlers, routers and the startup/shutdown hooks
(create tables, seed the lot, drain notification sinks).
"""

import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from smartpark.config import settings
from smartpark.database import SessionLocal, create_tables
from smartpark.dependencies import broadcaster, gate_controller
from smartpark.routers import dashboard_ws, health, pricing, scan, sessions, spots, vehicles
from smartpark.schemas.scan import ScanOutcome, ScanStatus
from smartpark.services.seed_service import seed_all
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)

API_PREFIX = "/api/v1"

# Checkpoint scanners and monitoring do not send API keys
OPEN_PATHS = {
    f"{API_PREFIX}/scan",
    f"{API_PREFIX}/recognize-plate",
    f"{API_PREFIX}/health",
    "/docs", "/redoc", "/openapi.json",
}
SCAN_PATHS = {f"{API_PREFIX}/scan", f"{API_PREFIX}/recognize-plate"}

app = FastAPI(
    title="SmartPark Checkpoint API",
    description="QR / plate scan interpreter and spot ledger for a small parking facility.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (dashboards are served from other origins on the LAN) ──────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Admin endpoints (pricing, registry, clear-all...) require X-API-Key
    or ?api_key= when settings.API_KEY is set. OPEN_PATHS never do.
    """

    def __init__(self, app, api_key: str):
        super().__init__(app)
        self.api_key = api_key

    async def dispatch(self, request: Request, call_next):
        if request.url.path in OPEN_PATHS:
            return await call_next(request)
        supplied = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if supplied != self.api_key:
            logger.warning(f"Rejected {request.method} {request.url.path}: bad or missing API key")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware, api_key=settings.API_KEY)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def time_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.1f}"
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({elapsed_ms:.1f}ms)")
    return response


# ── Error Handlers ───────────────────────────────────────────────────────────
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Scanners get the same outcome shape for malformed bodies as for empty ones
    if request.url.path in SCAN_PATHS:
        outcome = ScanOutcome(status=ScanStatus.INVALID_REQUEST, message="identifier required")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=outcome.model_dump(mode="json"))
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(scan.router,         prefix=API_PREFIX, tags=["📷 Checkpoint Scan"])
app.include_router(spots.router,        prefix=API_PREFIX, tags=["🅿️  Spots"])
app.include_router(sessions.router,     prefix=API_PREFIX, tags=["🧾 Sessions"])
app.include_router(pricing.router,      prefix=API_PREFIX, tags=["💰 Pricing"])
app.include_router(vehicles.router,     prefix=API_PREFIX, tags=["🚗 Vehicles"])
app.include_router(health.router,       prefix=API_PREFIX, tags=["💚 Health"])
app.include_router(dashboard_ws.router, prefix=API_PREFIX, tags=["📡 Dashboard Feed"])


# ── Lifecycle ────────────────────────────────────────────────────────────────
def _prepare_database() -> dict:
    create_tables()
    db = SessionLocal()
    try:
        return seed_all(db)
    finally:
        db.close()


@app.on_event("startup")
async def startup():
    logger.info("🚀 SmartPark Backend starting up...")
    seeded = _prepare_database()
    logger.info(f"✅ Database ready at {settings.DATABASE_URL} (seeded: {seeded})")
    gate = settings.GATE_CONTROLLER_URL if settings.GATE_CONTROLLER_ENABLED else "disabled"
    logger.info(f"🚦 Gate controller: {gate}")
    logger.info(f"🔎 Plate recognizer: {settings.PLATE_RECOGNIZER_BACKEND}")
    logger.info(f"⏱️  Duplicate-scan window: {settings.SCAN_DEBOUNCE_SECONDS}s")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT} (docs at /docs)")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 SmartPark Backend shutting down, flushing notifications...")
    await broadcaster.drain()
    await gate_controller.drain()
