"""
Ledger Persistence Adapter

Maps the ledger's logical documents onto a key-value store. Each logical
key holds exactly one JSON document:

    expenses       -> list of Expense
    budget         -> single Budget (or absent)
    settings       -> AppSettings
    expense_draft  -> ExpenseDraft
    emis           -> list of LoanEMI
    splash         -> bool
    privacy_link   -> bool

DESIGN DECISION: Failures stay local to one key.
- Reads: a key that cannot be read or parsed falls back to its default and
  the other keys still load. A single malformed record inside a list is
  skipped, not the whole list.
- Writes: each save touches one key and reports a bool. There is no
  cross-key transaction and no rollback.
"""

import asyncio
import json
from enum import Enum
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from expense_ledger.audit import AuditLogger
from expense_ledger.config import get_settings
from expense_ledger.models.audit import AuditEventBuilder
from expense_ledger.models.ledger import (
    AppSettings,
    Budget,
    Expense,
    ExpenseDraft,
    LedgerSnapshot,
    LoanEMI,
)
from expense_ledger.services.storage.interface import (
    CorruptDocumentError,
    KeyValueStoreInterface,
    StorageError,
)


ModelT = TypeVar("ModelT", bound=BaseModel)


class StorageKey(str, Enum):
    """Logical documents the ledger persists."""
    EXPENSES = "expenses"
    BUDGET = "budget"
    SETTINGS = "settings"
    DRAFT = "expense_draft"
    EMIS = "emis"
    SPLASH = "splash"
    PRIVACY_LINK = "privacy_link_viewed"


class LedgerPersistence:
    """
    Reads and writes ledger documents through a KeyValueStoreInterface.

    Every public method either returns data or a bool; StorageError never
    escapes this class.
    """

    def __init__(
        self,
        store: KeyValueStoreInterface,
        key_prefix: Optional[str] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """
        Initialize the adapter.

        Args:
            store: Backend holding the documents
            key_prefix: Prefix for every physical key. Defaults to the
                        configured storage prefix.
            audit_logger: Where read/write failures are reported
        """
        self._store = store
        self._prefix = key_prefix if key_prefix is not None else get_settings().storage.key_prefix
        self._audit = audit_logger or AuditLogger()

    def physical_key(self, key: StorageKey) -> str:
        return f"{self._prefix}{key.value}"

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    async def _read_document(self, key: StorageKey) -> Any:
        """Raw decoded JSON for `key`; None when absent or unreadable."""
        physical = self.physical_key(key)
        try:
            raw = await self._store.get_item(physical)
            if raw is None:
                return None
            try:
                return json.loads(raw)
            except json.JSONDecodeError as e:
                raise CorruptDocumentError(physical, str(e)) from e
        except StorageError as e:
            self._audit.log(AuditEventBuilder.load_failed(key.value, str(e)))
            return None

    def _parse_model(self, key: StorageKey, data: Any, model: type[ModelT]) -> Optional[ModelT]:
        if data is None:
            return None
        try:
            return model.model_validate(data)
        except ValidationError as e:
            self._audit.log(AuditEventBuilder.load_failed(key.value, str(e)))
            return None

    def _parse_list(self, key: StorageKey, data: Any, model: type[ModelT]) -> list[ModelT]:
        if data is None:
            return []
        if not isinstance(data, list):
            self._audit.log(AuditEventBuilder.load_failed(key.value, "expected a JSON list"))
            return []

        records = []
        for index, item in enumerate(data):
            try:
                records.append(model.model_validate(item))
            except ValidationError as e:
                self._audit.log(AuditEventBuilder.load_failed(
                    f"{key.value}[{index}]", str(e),
                ))
        return records

    @staticmethod
    def _parse_flag(data: Any) -> bool:
        return data is True

    async def load_snapshot(self) -> LedgerSnapshot:
        """
        Load every document concurrently.

        Absent keys come back as None/empty; the caller decides which
        defaults to write back.
        """
        keys = list(StorageKey)
        documents = await asyncio.gather(*(self._read_document(key) for key in keys))
        raw = dict(zip(keys, documents))

        return LedgerSnapshot(
            expenses=self._parse_list(StorageKey.EXPENSES, raw[StorageKey.EXPENSES], Expense),
            budget=self._parse_model(StorageKey.BUDGET, raw[StorageKey.BUDGET], Budget),
            settings=self._parse_model(StorageKey.SETTINGS, raw[StorageKey.SETTINGS], AppSettings),
            emis=self._parse_list(StorageKey.EMIS, raw[StorageKey.EMIS], LoanEMI),
            draft=self._parse_model(StorageKey.DRAFT, raw[StorageKey.DRAFT], ExpenseDraft),
            has_seen_splash=self._parse_flag(raw[StorageKey.SPLASH]),
            has_viewed_privacy_link=self._parse_flag(raw[StorageKey.PRIVACY_LINK]),
        )

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    async def _write_document(self, key: StorageKey, document: Any) -> bool:
        physical = self.physical_key(key)
        try:
            await self._store.set_item(physical, json.dumps(document, ensure_ascii=False))
            return True
        except StorageError as e:
            self._audit.log(AuditEventBuilder.save_failed(key.value, str(e)))
            return False

    async def save_expenses(self, expenses: list[Expense]) -> bool:
        return await self._write_document(
            StorageKey.EXPENSES, [expense.to_document() for expense in expenses],
        )

    async def save_budget(self, budget: Budget) -> bool:
        return await self._write_document(StorageKey.BUDGET, budget.to_document())

    async def save_settings(self, settings: AppSettings) -> bool:
        return await self._write_document(StorageKey.SETTINGS, settings.to_document())

    async def save_draft(self, draft: ExpenseDraft) -> bool:
        return await self._write_document(StorageKey.DRAFT, draft.to_document())

    async def save_emis(self, emis: list[LoanEMI]) -> bool:
        return await self._write_document(StorageKey.EMIS, [emi.to_document() for emi in emis])

    async def save_flag(self, key: StorageKey, value: bool) -> bool:
        return await self._write_document(key, value)

    async def remove(self, key: StorageKey) -> bool:
        physical = self.physical_key(key)
        try:
            await self._store.remove_item(physical)
            return True
        except StorageError as e:
            self._audit.log(AuditEventBuilder.save_failed(key.value, str(e)))
            return False
