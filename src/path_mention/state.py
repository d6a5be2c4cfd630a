"""Small workspace-scoped key-value persistence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

STATE_FILE_NAME = "state.json"


class StateStore(Protocol):
    """Key-value storage consumed by stateful components."""

    def get(self, key: str) -> object | None: ...

    def set(self, key: str, value: object) -> None: ...


class JsonStateStore:
    """JSON object file keyed by name; every write replaces the file atomically."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        """Return on-disk JSON path."""
        return self._path

    def get(self, key: str) -> object | None:
        """Return the stored value for key, or None when missing or unreadable."""
        return self._read().get(key)

    def set(self, key: str, value: object) -> None:
        """Store value under key. Raises OSError when the file cannot be written."""
        payload = self._read()
        payload[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, sort_keys=True)
            handle.write("\n")
        tmp.replace(self._path)

    def _read(self) -> dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, json.JSONDecodeError):
            return {}
        if not isinstance(payload, dict):
            return {}
        return payload
