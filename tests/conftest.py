"""Shared fixtures: a fixed clock and in-memory storage."""

from datetime import datetime
from typing import Optional

import pytest

from expense_ledger.config import LedgerSettings
from expense_ledger.ledger import LedgerStore
from expense_ledger.services.storage import (
    InMemoryKeyValueStore,
    LedgerPersistence,
    StorageReadError,
    StorageWriteError,
)
from expense_ledger.validation import LedgerValidator


FIXED_NOW = datetime(2024, 1, 15, 10, 30)
TODAY = "2024-01-15"
KEY_PREFIX = "test_"


class FlakyKeyValueStore(InMemoryKeyValueStore):
    """In-memory store that fails on chosen keys."""

    def __init__(
        self,
        initial: Optional[dict[str, str]] = None,
        fail_reads: Optional[set[str]] = None,
        fail_writes: Optional[set[str]] = None,
    ):
        super().__init__(initial)
        self.fail_reads = set(fail_reads or ())
        self.fail_writes = set(fail_writes or ())

    async def get_item(self, key):
        if key in self.fail_reads:
            raise StorageReadError(f"cannot read {key}")
        return await super().get_item(key)

    async def set_item(self, key, value):
        if key in self.fail_writes:
            raise StorageWriteError(f"cannot write {key}")
        await super().set_item(key, value)

    async def remove_item(self, key):
        if key in self.fail_writes:
            raise StorageWriteError(f"cannot remove {key}")
        await super().remove_item(key)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture
def ledger_settings():
    return LedgerSettings()


@pytest.fixture
def validator(ledger_settings):
    return LedgerValidator(ledger_settings)


@pytest.fixture
def memory_store():
    return FlakyKeyValueStore()


@pytest.fixture
def persistence(memory_store):
    return LedgerPersistence(memory_store, key_prefix=KEY_PREFIX)


@pytest.fixture
async def ledger(persistence, validator):
    store = LedgerStore(persistence, validator=validator, clock=fixed_clock)
    await store.load()
    return store


@pytest.fixture
def flaky_store():
    """The FlakyKeyValueStore class, for tests that need their own instance."""
    return FlakyKeyValueStore
