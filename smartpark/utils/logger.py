# smartpark/utils/logger.py
"""
Logging setup shared by the backend, the scripts and the tests.

One root configuration: console plus a size-rotated file under
settings.LOG_DIR. Modules tag their messages by category ([SCAN], [ENTRY],
[EXIT], [ANOMALY], [NOTIFY], [GATE], [LPR], [CLEAR]) so a grep on the tag
follows one concern across the log.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from smartpark.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "multipart")

_configured = False


def _file_handler(level: str, formatter: logging.Formatter) -> logging.Handler:
    os.makedirs(settings.LOG_DIR, exist_ok=True)
    handler = RotatingFileHandler(
        filename=os.path.join(settings.LOG_DIR, settings.LOG_FILE),
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(level: str = None):
    """Configure the root logger once; later calls are no-ops."""
    global _configured
    if _configured:
        return
    _configured = True

    level = (level or settings.LOG_LEVEL).upper()
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(console)
    root.addHandler(_file_handler(level, formatter))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
