"""On-device key/value storage.

Each key is persisted as its own JSON file under the storage directory.
Values must be JSON serializable. There is no schema versioning.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStorage:
    """JSON file backed key/value store."""

    def __init__(self, directory: Path):
        """Initialize storage.

        Args:
            directory: Directory holding one <key>.json file per key
        """
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        """Read a value, returning default if missing or unreadable."""
        path = self._path(key)
        if not path.exists():
            return default
        try:
            with open(path, "r") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable storage entry %s: %s", key, e)
            return default

    def set(self, key: str, value: Any) -> None:
        """Write a value."""
        path = self._path(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(value, f)

    def remove(self, key: str) -> None:
        """Delete a value if present."""
        path = self._path(key)
        if path.exists():
            path.unlink()

    def has(self, key: str) -> bool:
        return self._path(key).exists()
