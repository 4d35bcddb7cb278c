"""Services package."""

from daybook.services.storage import (
    CorruptStoreError,
    InMemoryStore,
    JsonFileStore,
    KeyValueStore,
    StorageError,
)

__all__ = [
    "CorruptStoreError",
    "InMemoryStore",
    "JsonFileStore",
    "KeyValueStore",
    "StorageError",
]
