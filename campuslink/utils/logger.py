# Shared log format for the API process

import logging
import os
import sys

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"
_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT, _DATEFMT))
    root = logging.getLogger()
    root.setLevel(LOG_LEVEL.upper())
    root.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Module logger; the first call attaches a stdout handler at LOG_LEVEL to root."""
    _configure_root()
    return logging.getLogger(name)
