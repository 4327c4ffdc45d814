"""
Logging setup.

Modules either import the shared ``logger`` or create a named one with
``setup_logger(__name__)``.
"""

import logging
import sys

from parley.core.config import get_settings

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logger(name: str = "parley") -> logging.Logger:
    """Return a logger with a single stream handler attached."""
    log = logging.getLogger(name)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        log.addHandler(handler)
        log.propagate = False
    log.setLevel(get_settings().LOG_LEVEL.upper())
    return log


logger = setup_logger()
