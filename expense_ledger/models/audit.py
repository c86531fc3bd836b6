"""
Audit Models for the Expense Ledger

Every command the ledger accepts or refuses produces one AuditEvent.
Events are written to the structured log and handed to post-commit
subscribers (haptic feedback, toasts) after a command succeeds.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Expenses
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    DAY_CLEARED = "day_cleared"
    ALL_DATA_CLEARED = "all_data_cleared"

    # Budget, settings and app documents
    BUDGET_UPDATED = "budget_updated"
    SETTINGS_UPDATED = "settings_updated"
    DRAFT_UPDATED = "draft_updated"
    FLAG_SET = "flag_set"

    # EMIs
    EMI_ADDED = "emi_added"
    EMI_UPDATED = "emi_updated"
    EMI_DELETED = "emi_deleted"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    NOT_FOUND = "not_found"
    SAVE_FAILED = "save_failed"
    LOAD_FAILED = "load_failed"

    LEDGER_LOADED = "ledger_loaded"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    `entity_id` is the ledger record the event is about, when there is one.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'emi', 'budget')"
    )
    entity_id: Optional[str] = None
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "occurred_at": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(expense_id, "Food", 250.0)
        event = AuditEventBuilder.validation_failed("add_expense", issues)
    """

    @staticmethod
    def expense_added(expense_id: str, category: str, amount: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Expense added: {category} ₹{amount:,.2f}",
            details={"category": category, "amount": amount},
        )

    @staticmethod
    def expense_updated(expense_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Expense updated: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
        )

    @staticmethod
    def expense_deleted(expense_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            description="Expense deleted",
        )

    @staticmethod
    def day_cleared(iso_date: str, removed: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DAY_CLEARED,
            entity_type="expense",
            description=f"Cleared {removed} expenses dated {iso_date}",
            details={"date": iso_date, "removed": removed},
        )

    @staticmethod
    def all_data_cleared(outcomes: dict[str, bool]) -> AuditEvent:
        failed = [key for key, ok in outcomes.items() if not ok]
        return AuditEvent(
            event_type=AuditEventType.ALL_DATA_CLEARED,
            severity=AuditSeverity.ERROR if failed else AuditSeverity.INFO,
            description=(
                f"Clear all data failed for: {', '.join(failed)}"
                if failed else "All ledger data cleared"
            ),
            details={"outcomes": outcomes},
        )

    @staticmethod
    def budget_updated(monthly: float, year: int, month: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPDATED,
            entity_type="budget",
            description=f"Budget set to ₹{monthly:,.2f} for {year}-{month + 1:02d}",
            details={"monthly": monthly, "year": year, "month": month},
        )

    @staticmethod
    def settings_updated(fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            description=f"Settings updated: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
        )

    @staticmethod
    def draft_updated(cleared: bool = False) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DRAFT_UPDATED,
            severity=AuditSeverity.DEBUG,
            entity_type="draft",
            description="Draft cleared" if cleared else "Draft updated",
        )

    @staticmethod
    def flag_set(flag: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FLAG_SET,
            severity=AuditSeverity.DEBUG,
            description=f"Flag set: {flag}",
            details={"flag": flag},
        )

    @staticmethod
    def emi_added(emi_id: str, loan_type: str, amount: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EMI_ADDED,
            entity_type="emi",
            entity_id=emi_id,
            description=f"EMI added: {loan_type} ₹{amount:,.2f}",
            details={"loan_type": loan_type, "amount": amount},
        )

    @staticmethod
    def emi_updated(emi_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EMI_UPDATED,
            entity_type="emi",
            entity_id=emi_id,
            description=f"EMI updated: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
        )

    @staticmethod
    def emi_deleted(emi_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EMI_DELETED,
            entity_type="emi",
            entity_id=emi_id,
            description="EMI deleted",
        )

    @staticmethod
    def validation_failed(command: str, issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"{command} rejected with {len(issues)} issues",
            details={"command": command, "issues": issues},
        )

    @staticmethod
    def not_found(entity_type: str, entity_id: Any) -> AuditEvent:
        # caller-supplied id of any length or type
        return AuditEvent(
            event_type=AuditEventType.NOT_FOUND,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=str(entity_id),
            description=f"No {entity_type} with that id",
        )

    @staticmethod
    def save_failed(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Could not persist {key}",
            error_message=error_message,
            details={"key": key},
        )

    @staticmethod
    def load_failed(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"Could not load {key}, using default",
            error_message=error_message,
            details={"key": key},
        )

    @staticmethod
    def ledger_loaded(expense_count: int, emi_count: int, has_budget: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            description=f"Ledger loaded: {expense_count} expenses, {emi_count} EMIs",
            details={
                "expense_count": expense_count,
                "emi_count": emi_count,
                "has_budget": has_budget,
            },
        )
