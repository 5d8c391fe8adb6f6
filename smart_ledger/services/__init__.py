"""Services package."""

from smart_ledger.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
    PersistenceReadError,
    PersistenceWriteError,
    StorageError,
)

__all__ = [
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStoreInterface",
    "PersistenceReadError",
    "PersistenceWriteError",
    "StorageError",
]
