"""
Logging setup for the simple-service entry points.

Library modules only ask for a named logger; nothing is configured until
an entry point (the CLI) calls configure_logging(). Embedding applications
keep full control of their own logging.
"""

import logging
import sys

from simple_service.config import config

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_handler: logging.Handler | None = None


def configure_logging(level: str | None = None) -> None:
    """
    Route log records to stderr at `level` (defaults to LOG_LEVEL).

    Safe to call more than once: the handler is installed a single time,
    the level is applied on every call.
    """
    global _handler
    root = logging.getLogger()
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(_handler)
    root.setLevel(getattr(logging, (level or config.log_level).upper(), logging.INFO))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
