# booking_app/utils/my_logging.py
"""Logging configuration"""
import logging
import sys
from booking_app.config.settings import get_settings

NOISY_LOGGERS = [
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "alembic",
    "celery.redirected",
    "httpx",
    "uvicorn.access",
]


def setup_logging(verbose=True):
    """Configure application logging once per process"""
    settings = get_settings()

    if verbose:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    if not verbose:
        for name in NOISY_LOGGERS:
            noisy = logging.getLogger(name)
            noisy.setLevel(logging.ERROR)
            noisy.propagate = False
