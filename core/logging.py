"""
Logging configuration

Every module logs through ``logging.getLogger(__name__)``; request lines come
from ``api.access`` (see api.middleware), so uvicorn's own access log is muted.
"""

import logging
import sys
from typing import Optional
from core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Third-party loggers that are noisy at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "httpx", "httpcore", "uvicorn.access")


def setup_logging(level: Optional[str] = None):
    """Configure application logging; ``level`` overrides ``settings.LOG_LEVEL``."""
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {level_name} level ({settings.ENVIRONMENT})")
