"""Configuration service for Joidu Focus.

``ConfigService`` is the single place that reads and writes ``config.json``
in the user config directory. It also hands out the platform data directory
used by the snapshot store and the session history.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir
from pydantic import BaseModel, ValidationError

from joidu_focus.models.config_models import AppConfig

_APP_NAME = "joidu_focus"


class ConfigService:
    """Owns ``config.json`` and the data directory layout."""

    def __init__(self):
        self.config_dir = Path(user_config_dir(_APP_NAME))
        self.config_path = self.config_dir / "config.json"
        self.data_dir = Path(user_data_dir(_APP_NAME))

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """The loaded configuration, read from disk on first access."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    @property
    def state_dir(self) -> Path:
        return self.data_dir / "state"

    @property
    def history_path(self) -> Path:
        return self.data_dir / "focus_history.db"

    def load_config(self) -> AppConfig:
        """Read ``config.json``, writing the defaults on first run."""
        if self._config is not None:
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            self._config = AppConfig()
            self.save_config()
        except Exception as e:
            raise RuntimeError(f"Failed to load config: {e}") from e

        return self._config

    def save_config(self) -> None:
        """Write the configuration back with owner-only permissions."""
        if self._config is None:
            raise RuntimeError("No configuration to save")

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self._config.model_dump_json(indent=4))

            self.config_path.chmod(0o600)
        except Exception as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def reset_config(self) -> AppConfig:
        """Replace the configuration with ``AppConfig()`` defaults and save it."""
        self._config = AppConfig()
        self.save_config()
        return self._config

    def get_value(self, key: str) -> Any:
        """Look up a dotted key such as ``focus.default_duration``.

        Raises ``KeyError`` for keys that are not configuration fields.
        """
        value: Any = self.config
        for k in key.split("."):
            if isinstance(value, BaseModel) and k in type(value).model_fields:
                value = getattr(value, k)
            else:
                raise KeyError(key)
        return value

    def set_value(self, key: str, value: Any) -> AppConfig:
        """Set a configuration value by dot-separated key.

        The whole config is re-validated, so bad values raise ``ValueError``
        and leave the current configuration untouched.
        """
        self.get_value(key)  # KeyError for unknown keys

        keys = key.split(".")
        config_dict = self.config.model_dump()
        current = config_dict
        for k in keys[:-1]:
            current = current[k]
        current[keys[-1]] = value

        try:
            new_config = AppConfig.model_validate(config_dict)
        except ValidationError as e:
            raise ValueError(f"Invalid value for '{key}': {e.errors()[0]['msg']}") from e

        self._config = new_config
        self.save_config()
        return new_config


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Process-wide ``ConfigService``, loaded on first use."""
    config_service = ConfigService()
    config_service.load_config()
    return config_service
