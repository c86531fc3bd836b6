"""Audit logging package."""

from expense_ledger.audit.logger import AuditLogger, CommitListener, configure_logging

__all__ = ["AuditLogger", "CommitListener", "configure_logging"]
