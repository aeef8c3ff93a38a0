"""Run log set-up."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from osdtimestamp._constants import LOG_FILE_NAME

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 3


def configure_logging(
    log_dir: str | os.PathLike[str] | None = None,
    *,
    verbose: bool = False,
) -> Path | None:
    """Attach console and file handlers to the package logger.

    Returns the log file path, or None when no directory was given.
    Calling again replaces the handlers set up by an earlier call.
    """
    package_logger = logging.getLogger("osdtimestamp")
    package_logger.setLevel(logging.DEBUG)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(formatter)
    package_logger.addHandler(console)

    if log_dir is None:
        return None

    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    log_file = path / LOG_FILE_NAME
    file_handler = RotatingFileHandler(
        log_file, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    package_logger.addHandler(file_handler)
    return log_file
