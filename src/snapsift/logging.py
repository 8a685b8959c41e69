"""Package loggers: one stream handler each, level from SNAPSIFT_LOG_LEVEL."""

import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LEVEL_ENV = "SNAPSIFT_LOG_LEVEL"


def _level_for(name: str) -> int:
    # The CLI reports progress at INFO; library modules only speak up on problems
    fallback = logging.INFO if name.endswith(".cli") else logging.WARNING
    requested = os.getenv(LEVEL_ENV)
    if not requested:
        return fallback
    level = logging.getLevelName(requested.strip().upper())
    return level if isinstance(level, int) else fallback


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(_level_for(name))
    return logger
