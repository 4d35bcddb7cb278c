"""
Storage Services Package

Provides the abstract key-value interface and its local implementations.
"""

from daybook.services.storage.interface import (
    CorruptStoreError,
    KeyValueStore,
    StorageError,
)
from daybook.services.storage.local import (
    InMemoryStore,
    JsonFileStore,
)

__all__ = [
    # Interface
    "KeyValueStore",
    # Exceptions
    "CorruptStoreError",
    "StorageError",
    # Implementations
    "InMemoryStore",
    "JsonFileStore",
]
