"""
Data Models Package

This package contains all Pydantic models used by the expense ledger.
Everything read from or written to storage conforms to these schemas.
"""

from expense_ledger.models.ledger import (
    AppSettings,
    Budget,
    Expense,
    ExpenseCategory,
    ExpenseDraft,
    LedgerDocument,
    LedgerSnapshot,
    LoanEMI,
    PaymentType,
    ValidationIssue,
    ValidationResult,
)
from expense_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "AppSettings",
    "Budget",
    "Expense",
    "ExpenseCategory",
    "ExpenseDraft",
    "LedgerDocument",
    "LedgerSnapshot",
    "LoanEMI",
    "PaymentType",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
