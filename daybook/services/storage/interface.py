"""
Abstract Storage Interface

DESIGN DECISION: The dashboard persists through a plain key-value
interface, the same shape as a browser's local storage.
This allows us to:
1. Inject the store instead of reaching for global state
2. Use in-memory storage for testing
3. Move the JSON file elsewhere without touching the ledger

Values are strings; callers own their serialization.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """
    Abstract interface for local key-value storage.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: Storage key

        Returns:
            The stored string, or None if the key is absent

        Raises:
            StorageError: If the backing medium cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store a value under a key, replacing any previous value.

        Raises:
            StorageError: If the value cannot be written
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed
        """
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List stored keys."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptStoreError(StorageError):
    """The backing file exists but is not a valid store document."""
    pass
