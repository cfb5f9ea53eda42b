"""Shared test fixtures and configuration.

Keeps tests away from the real config, data and log directories.
"""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from joidu_focus.models.focus.session import FocusOptions, FocusSession


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path):
    """Send the application log file into tmp_path and reset the singleton."""
    import joidu_focus.utils.logger as logger_mod

    logger_mod._logger = None
    app_logger = logging.getLogger("joidu_focus")
    app_logger.handlers.clear()

    with patch("joidu_focus.utils.logger.user_log_dir", return_value=str(tmp_path / "logs")):
        yield

    for handler in app_logger.handlers:
        handler.close()
    app_logger.handlers.clear()
    app_logger.propagate = True
    logger_mod._logger = None


@pytest.fixture()
def tmp_config(tmp_path):
    """Provide the cached ConfigService backed by a temporary directory.

    Patches platform dirs so config/data files land in *tmp_path* only.
    Also clears the lru_cache so each test gets a fresh service instance.
    """
    from joidu_focus.services.config_service import get_config_service

    get_config_service.cache_clear()
    with patch("joidu_focus.services.config_service.user_config_dir", return_value=str(tmp_path / "config")):
        with patch("joidu_focus.services.config_service.user_data_dir", return_value=str(tmp_path / "data")):
            yield get_config_service()
    get_config_service.cache_clear()


@pytest.fixture()
def make_session():
    """Factory for focus sessions with sensible defaults."""

    def _make(task_title: str = "Write report", minutes: int = 25, **options) -> FocusSession:
        return FocusSession.create(task_title, minutes, FocusOptions(**options))

    return _make
