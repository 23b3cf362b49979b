# app/utils/my_logging.py
"""Logging configuration shared by the API process and the Celery worker"""
import logging
import sys
from app.config.settings import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "alembic",
    "httpx",
    "uvicorn.access",
    "celery.beat",
    "kombu",
)


def setup_logging(verbose=True):
    """
    Configure root logging to stdout.

    verbose=True honours LOG_LEVEL; verbose=False drops to WARNING and
    silences third-party chatter entirely.
    """
    settings = get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO) if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING if verbose else logging.ERROR)

    # Hold lifecycle and booking conflicts are the interesting events
    logging.getLogger("app.services").setLevel(level)
