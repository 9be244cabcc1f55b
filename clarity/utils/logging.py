import logging
import os
import sys
from typing import Optional


LOGGER_NAME = "clarity"
LEVEL_ENV = "CLARITY_LOG_LEVEL"


def setup_logger(level: Optional[str] = None) -> logging.Logger:
    """
    Return the shared "clarity" logger, installing a stdout handler once.

    `level` overrides the current level even if the logger is already set up
    (scripts pass --log-level after modules have imported the logger).
    Without it the CLARITY_LOG_LEVEL environment variable or INFO is used.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if level is not None:
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if logger.handlers:
        return logger
    if level is None:
        env_level = os.environ.get(LEVEL_ENV, "INFO")
        logger.setLevel(getattr(logging, env_level.upper(), logging.INFO))
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger
