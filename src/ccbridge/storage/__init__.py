"""Key/value storage for computer updates.

Public API:
    KeyValueStore -- Abstract base class
    JsonFileStore -- JSON file backend
"""

from ccbridge.storage.base import KeyValueStore, StorageError
from ccbridge.storage.json_store import JsonFileStore

__all__ = ["KeyValueStore", "StorageError", "JsonFileStore"]
