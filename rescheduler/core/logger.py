"""
Logging setup shared by services and background jobs.
"""

import logging
import sys

from rescheduler.core.config import get_settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logger(name: str) -> logging.Logger:
    """
    Get a logger with the application's stream handler attached.

    Handlers are attached once per logger name, so calling this repeatedly
    (e.g. on module reload) does not duplicate output.
    """
    log = logging.getLogger(name)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
        log.propagate = False
    level_name = get_settings().LOG_LEVEL.upper()
    log.setLevel(getattr(logging, level_name, logging.INFO))
    return log


logger = setup_logger("rescheduler")
