"""
Storage Services Package

Provides the key-value storage interface and its implementations.
The ledger is kept as one JSON record in a local file store.
"""

from smart_ledger.services.storage.interface import (
    KeyValueStoreInterface,
    PersistenceReadError,
    PersistenceWriteError,
    StorageError,
)
from smart_ledger.services.storage.local_store import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
)

__all__ = [
    # Interfaces
    "KeyValueStoreInterface",
    # Exceptions
    "PersistenceReadError",
    "PersistenceWriteError",
    "StorageError",
    # Implementations
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
]
