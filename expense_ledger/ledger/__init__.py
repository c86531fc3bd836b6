"""Ledger store package."""

from expense_ledger.ledger.factory import create_ledger
from expense_ledger.ledger.store import Clock, LedgerStore

__all__ = ["Clock", "LedgerStore", "create_ledger"]
