"""
Abstract Storage Interface

DESIGN DECISION: The ledger only ever needs a key-value store holding one
JSON document per key, exactly like the on-device storage the app shipped
with. We define that as an abstract interface so that:
1. A JSON-file store backs real use
2. An in-memory store backs tests
3. A different backend can be swapped in without touching ledger logic

Values are opaque strings at this layer; encoding and decoding JSON is the
persistence adapter's job.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for an async key-value store.

    Implementations raise StorageError subclasses on failure and never
    return partial data.
    """

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """
        Read the value stored under `key`.

        Returns:
            The stored string, or None if the key is absent

        Raises:
            StorageReadError: If the backend could not be read
        """
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """
        Store `value` under `key`, replacing any previous value.

        Raises:
            StorageWriteError: If the value could not be written
        """
        pass

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """
        Delete `key`. Removing an absent key is not an error.

        Raises:
            StorageWriteError: If the key could not be removed
        """
        pass

    @abstractmethod
    async def keys(self) -> list[str]:
        """List every key currently stored."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """A stored value could not be read."""
    pass


class StorageWriteError(StorageError):
    """A value could not be written or removed."""
    pass


class InvalidKeyError(StorageError, ValueError):
    """A key that cannot name a stored document."""
    pass


class CorruptDocumentError(StorageError):
    """A stored value is not the JSON document it should be."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Stored document {key!r} is unreadable: {reason}")
