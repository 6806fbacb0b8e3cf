"""Logging setup shared by the CLI and the services layer."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# pymongo logs every topology/heartbeat change at DEBUG/INFO
NOISY_LOGGERS = ("pymongo", "pymongo.topology", "pymongo.connection")


def configure_logging(log_path: Path | None = None, level: int = logging.INFO) -> None:
    """Install stdout (and optionally file) handlers on the root logger.

    Calling it again replaces the handlers instead of stacking them, so the
    CLI and tests can reconfigure freely.

    Args:
        log_path: Optional file to mirror log records into (UTF-8).
        level: Root logging level (defaults to INFO).
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
