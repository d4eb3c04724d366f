"""
Key-value stores backing the workspace state.

The workspace index and the remembered login live under a few top-level
keys. JsonFileStore keeps them in one JSON file and flushes on every set.
"""

import json
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Optional

from ..errors import PersistenceError


class MemoryStore:
    """Store held in process memory only."""

    def __init__(self, data: Optional[dict] = None):
        self._data: dict[str, Any] = deepcopy(data) if data else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return deepcopy(self._data[key])

    def set(self, key: str, value: Any):
        self._data[key] = deepcopy(value)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore(MemoryStore):
    """
    Store persisted to a JSON file.

    Loaded once at construction. Every set() rewrites the whole file through
    a temp file and os.replace, so a crash mid-write never leaves a truncated
    file behind.
    """

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)
        self.load()

    def load(self):
        """(Re)read the file. A missing or unreadable file loads as empty."""
        self._data = {}
        if not self.path.exists():
            return
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            print(f"Warning: Could not load {self.path.name}: {e}")
            return
        if isinstance(data, dict):
            self._data = data

    def set(self, key: str, value: Any):
        previous = self._data.get(key)
        had_key = key in self._data
        super().set(key, value)
        try:
            self._flush()
        except (OSError, TypeError, ValueError) as e:
            if had_key:
                self._data[key] = previous
            else:
                self._data.pop(key, None)
            raise PersistenceError(f"Could not write {self.path}: {e}") from e

    def _flush(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2)
        os.replace(tmp_path, self.path)
