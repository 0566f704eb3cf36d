"""
Logging setup.

All modules share the "carechat" logger hierarchy.
"""

import logging
import sys

from carechat.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logger = logging.getLogger("carechat")


def setup_logging(level: str | None = None) -> None:
    """Attach a stream handler to the carechat logger (idempotent)."""
    level_name = (level or get_settings().LOG_LEVEL).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    if not any(getattr(h, "_carechat", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._carechat = True
        logger.addHandler(handler)
