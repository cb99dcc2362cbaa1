# smartpark/database.py
"""
Database connection, session management, and table creation.
Uses SQLAlchemy (SQLite by default, PostgreSQL supported). All models are
auto-imported here so create_tables() creates every table in one call.
"""

import os

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from smartpark.config import settings

Base = declarative_base()


def build_engine(url: str, timeout: float = settings.DB_TIMEOUT_SECONDS) -> Engine:
    """
    Create an engine with bounded lock waits.

    SQLite: every transaction starts with BEGIN IMMEDIATE so the
    read-check-write sequence of a scan holds the write lock from the start.
    PostgreSQL: statement_timeout caps every statement.
    """
    db_url = make_url(url)

    if db_url.get_backend_name() == "sqlite":
        if db_url.database and db_url.database != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(db_url.database)), exist_ok=True)

        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": timeout},
            echo=False,
        )

        @event.listens_for(engine, "connect")
        def _sqlite_connect(dbapi_connection, connection_record):
            # Let SQLAlchemy, not pysqlite, emit BEGIN
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _sqlite_begin(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    return create_engine(
        url,
        pool_pre_ping=True,          # Auto-reconnect if DB connection drops
        pool_size=10,
        max_overflow=20,
        pool_timeout=timeout,
        connect_args={"options": f"-c statement_timeout={int(timeout * 1000)}"},
        echo=False,                  # Set True to log all SQL queries (debug only)
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """FastAPI dependency: yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind: Engine = None):
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from smartpark.models.vehicle import Vehicle                  # noqa
    from smartpark.models.parking_spot import ParkingSpot         # noqa
    from smartpark.models.parking_session import ParkingSession   # noqa
    from smartpark.models.rate import Rate                        # noqa

    Base.metadata.create_all(bind=bind or engine)
