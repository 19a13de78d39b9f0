"""JSON file backed key/value store.

The whole tree lives in memory and is written back to disk after every
``put``. Writes go to a temporary file that then replaces the target.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any

from ccbridge.storage.base import KeyValueStore, StorageError, split_path

logger = logging.getLogger(__name__)


class JsonFileStore(KeyValueStore):
    """Stores a nested JSON object in a single file."""

    def __init__(self, path: Path | str = "ccbridge-db.json", save_on_put: bool = True) -> None:
        self._path = Path(path)
        self._save_on_put = save_on_put
        self._lock = threading.Lock()
        self._data: dict[str, Any] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def put(self, path: str, value: Any) -> None:
        segments = split_path(path)
        with self._lock:
            if not segments:
                if not isinstance(value, dict):
                    raise StorageError("Root value must be an object", path=path)
                self._data = dict(value)
            else:
                node = self._data
                for segment in segments[:-1]:
                    child = node.get(segment)
                    if not isinstance(child, dict):
                        child = {}
                        node[segment] = child
                    node = child
                node[segments[-1]] = value
            if self._save_on_put:
                self._save()
        logger.debug("Stored %s", path)

    def get(self, path: str) -> Any | None:
        with self._lock:
            node: Any = self._data
            for segment in split_path(path):
                if not isinstance(node, dict) or segment not in node:
                    return None
                node = node[segment]
            return json.loads(json.dumps(node))

    def save(self) -> None:
        """Write the tree to disk."""
        with self._lock:
            self._save()

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            logger.info("Creating new store at %s", self._path)
            return {}
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read store {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Store {self._path} does not contain a JSON object")
        logger.info("Loaded store from %s (%d keys)", self._path, len(data))
        return data

    def _save(self) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
            os.replace(tmp_path, self._path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Cannot write store {self._path}: {e}") from e
