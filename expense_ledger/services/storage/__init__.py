"""
Storage Services Package

Provides the abstract key-value interface, local implementations of it, and
the adapter that maps ledger documents onto keys.
"""

from expense_ledger.services.storage.interface import (
    CorruptDocumentError,
    InvalidKeyError,
    KeyValueStoreInterface,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from expense_ledger.services.storage.local_store import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
)
from expense_ledger.services.storage.persistence import (
    LedgerPersistence,
    StorageKey,
)

__all__ = [
    # Interfaces
    "KeyValueStoreInterface",
    # Exceptions
    "CorruptDocumentError",
    "InvalidKeyError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Implementations
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    # Adapter
    "LedgerPersistence",
    "StorageKey",
]
