"""Abstract key/value store used to persist computer updates.

Keys are slash-separated paths (``/Turtle7``, ``/base/storage``), each
segment naming one level of a nested JSON object.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Path-keyed store of JSON-compatible values."""

    @abstractmethod
    def put(self, path: str, value: Any) -> None:
        """Store ``value`` at ``path``, replacing what was there.

        Raises:
            StorageError: If the value cannot be stored.
        """
        ...

    @abstractmethod
    def get(self, path: str) -> Any | None:
        """Return the value at ``path``, or None if nothing is stored there.

        ``get("/")`` returns the whole tree.
        """
        ...


class StorageError(Exception):
    """Raised when the store cannot be read or written."""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path


def split_path(path: str) -> list[str]:
    """Split a store path into its segments; ``/`` has none."""
    return [segment for segment in path.split("/") if segment]
