"""
Abstract Storage Interface

DESIGN DECISION: The ledger talks to a tiny key-value interface.
This allows us to:
1. Keep the ledger as a single JSON record, like browser local storage
2. Use in-memory storage for testing
3. Swap the file store for something else without touching the ledger

The interface is intentionally minimal - values are opaque strings.
Serialization is the caller's job.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for a local key-value store.

    Every implementation must make `set` and `delete` durable
    before returning.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: Record name

        Returns:
            The stored string, or None if the key is absent

        Raises:
            PersistenceReadError: If the record exists but cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Overwrite the value stored under a key.

        Raises:
            PersistenceWriteError: If the value could not be stored
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """
        Remove a key. Deleting an absent key is not an error.

        Raises:
            PersistenceWriteError: If the record exists but cannot be removed
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceReadError(StorageError):
    """Stored data could not be read or parsed."""
    pass


class PersistenceWriteError(StorageError):
    """Data could not be written to storage."""
    pass
