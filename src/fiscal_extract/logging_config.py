from __future__ import annotations

import logging
import sys

from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def configure_logging(level: int | str | None = None) -> logging.Logger:
    """Route ``fiscal_extract`` records to stdout.

    Only the package logger is touched; the host application's root logger is
    left alone.
    """

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    package_logger = logging.getLogger("fiscal_extract")
    package_logger.handlers = [handler]
    package_logger.setLevel(settings.logging_level if level is None else level)
    package_logger.propagate = False
    return package_logger
