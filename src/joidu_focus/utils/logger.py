"""Application log file.

Everything under the ``joidu_focus`` logger namespace is written to a rotating
file in the platform log directory. Nothing is logged to the terminal, which
belongs to the timer display and command output.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from platformdirs import user_log_dir

_APP_NAME = "joidu_focus"
_LOG_FILE = "joidu.log"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3
_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

_logger: logging.Logger | None = None


def log_file_path() -> Path:
    """Location of the current log file (the directory is not created)."""
    return Path(user_log_dir(_APP_NAME)) / _LOG_FILE


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    return handler


def get_logger() -> logging.Logger:
    """Return the ``joidu_focus`` logger, attaching the file handler once.

    Modules log through ``logging.getLogger(__name__)``; those loggers are
    children of this one and end up in the same file.
    """
    global _logger
    if _logger is None:
        logger = logging.getLogger(_APP_NAME)
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        if not logger.handlers:
            logger.addHandler(_file_handler(log_file_path()))
        _logger = logger
    return _logger
