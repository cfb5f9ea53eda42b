"""Tests for the application logger utility."""

from __future__ import annotations

import logging
import logging.handlers
from unittest.mock import patch

from joidu_focus.utils.logger import get_logger, log_file_path


def test_get_logger_creates_log_file(tmp_path):
    """Logger creates the log file inside user_log_dir."""
    with patch("joidu_focus.utils.logger.user_log_dir", return_value=str(tmp_path)):
        logger = get_logger()

    assert (tmp_path / "joidu.log").exists()
    assert isinstance(logger, logging.Logger)
    assert logger.name == "joidu_focus"


def test_get_logger_returns_singleton(tmp_path):
    """Repeated calls return the same logger instance."""
    with patch("joidu_focus.utils.logger.user_log_dir", return_value=str(tmp_path)):
        assert get_logger() is get_logger()


def test_rotating_handler(tmp_path):
    with patch("joidu_focus.utils.logger.user_log_dir", return_value=str(tmp_path)):
        logger = get_logger()

    handlers = [h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(handlers) == 1
    assert handlers[0].maxBytes == 5 * 1024 * 1024
    assert handlers[0].backupCount == 3


def test_module_loggers_write_to_the_same_file(tmp_path):
    """Child loggers such as the engine's end up in the application log."""
    with patch("joidu_focus.utils.logger.user_log_dir", return_value=str(tmp_path)):
        logger = get_logger()

    logging.getLogger("joidu_focus.models.focus.engine").info("engine says hi")
    for handler in logger.handlers:
        handler.flush()

    content = (tmp_path / "joidu.log").read_text(encoding="utf-8")
    assert "engine says hi" in content
    assert "[joidu_focus.models.focus.engine]" in content


def test_log_file_path(tmp_path):
    with patch("joidu_focus.utils.logger.user_log_dir", return_value=str(tmp_path / "logs")):
        path = log_file_path()

    assert path == tmp_path / "logs" / "joidu.log"
    assert not path.parent.exists()


def test_nothing_reaches_the_root_logger(tmp_path, caplog):
    with patch("joidu_focus.utils.logger.user_log_dir", return_value=str(tmp_path)):
        logger = get_logger()

    logger.info("file only")

    assert "file only" not in caplog.text
