"""Key-value snapshot stores for in-progress session state."""

import json
import logging
import re
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


@runtime_checkable
class SnapshotStore(Protocol):
    """Minimal key-value capability the timer needs for snapshots."""

    def set(self, key: str, value: Any) -> None: ...

    def get(self, key: str) -> Any | None: ...

    def remove(self, key: str) -> None: ...


class MemorySnapshotStore:
    """In-process store, mostly for tests and one-shot runs."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def set(self, key: str, value: Any) -> None:
        # Round-trip through JSON so callers get the same guarantees as on disk
        self._data[key] = json.dumps(value)

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileSnapshotStore:
    """Stores each key as a JSON file in the user data directory."""

    def __init__(self, state_dir: Path | None = None):
        """Initialize the store."""
        if state_dir is None:
            from platformdirs import user_data_dir

            state_dir = Path(user_data_dir("joidu_focus")) / "state"

        self.state_dir = state_dir
        self.state_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid snapshot key: {key!r}")
        return self.state_dir / f"{key}.json"

    def set(self, key: str, value: Any) -> None:
        """Write a snapshot."""
        path = self.path_for(key)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(value, f, indent=2)

        # Set secure permissions
        path.chmod(0o600)

    def get(self, key: str) -> Any | None:
        """Read a snapshot. Returns None if missing or unreadable."""
        path = self.path_for(key)
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable snapshot %s: %s", path, e)
            return None

    def remove(self, key: str) -> None:
        """Delete a snapshot if present."""
        self.path_for(key).unlink(missing_ok=True)

    def __contains__(self, key: str) -> bool:
        return self.path_for(key).exists()
