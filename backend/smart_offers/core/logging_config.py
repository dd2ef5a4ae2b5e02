"""
Logging setup for the API process.

Format: timestamp | level | module | message
"""
import logging

from smart_offers.core.config import settings


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Attach a stdout handler to the package logger (idempotent)."""
    logger = logging.getLogger("smart_offers")
    logger.setLevel((level or settings.LOG_LEVEL).upper())

    if any(getattr(h, "_smart_offers", False) for h in logger.handlers):
        return

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    stream_handler._smart_offers = True
    logger.addHandler(stream_handler)
