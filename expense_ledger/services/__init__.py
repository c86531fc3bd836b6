"""Services package."""

from expense_ledger.services.storage import (
    CorruptDocumentError,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
    LedgerPersistence,
    StorageError,
    StorageKey,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    "CorruptDocumentError",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStoreInterface",
    "LedgerPersistence",
    "StorageError",
    "StorageKey",
    "StorageReadError",
    "StorageWriteError",
]
