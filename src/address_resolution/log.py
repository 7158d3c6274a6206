"""Logging setup for command line use; the library itself adds no handlers."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: int | str = logging.WARNING) -> logging.Logger:
    logger = logging.getLogger("address_resolution")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if getattr(handler, "_address_resolution", False):
            logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._address_resolution = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
