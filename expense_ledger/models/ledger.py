"""
Core Data Models for the Expense Ledger

These models define the schemas for every record the ledger keeps:
1. Expense - a single transaction
2. Budget - the one active monthly budget
3. LoanEMI - a recurring loan installment
4. AppSettings / ExpenseDraft - small documents persisted next to the ledger

DESIGN DECISION: Persisted documents keep the camelCase keys the mobile app
has always written (paymentType, createdAt, dueDate, ...). Python code uses
snake_case attributes; the alias generator maps between the two, so existing
data loads without a migration.

Bounds that depend on configuration (amount limits, budget years, notes
length) are enforced by the validation layer, not here. A record already on
disk must keep loading even if a limit is tightened later.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Categories an expense can be filed under.

    Every category adds to the monthly spend except SUBTRACT, which is
    entered by the user to take money back out of the total.
    """
    FOOD = "Food"
    TRANSPORT = "Transport"
    UTILITIES = "Utilities"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    OTHERS = "Others"
    SUBTRACT = "Subtract"
    AUTOPAY_DEDUCTION = "AutopayDeduction"
    LOAN_EMI = "LoanEMI"


class PaymentType(str, Enum):
    """How an expense or EMI was paid."""
    UPI = "UPI"
    DEBIT_CARD = "Debit Card"
    CREDIT_CARD = "Credit Card"
    CASH = "Cash"


# =============================================================================
# BASE MODEL
# =============================================================================

class LedgerDocument(BaseModel):
    """Base for every model that is written to the key-value store."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_document(self) -> dict[str, Any]:
        """JSON-ready dict using the persisted (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class Expense(LedgerDocument):
    """
    A single expense record.

    The stored sign of `amount` is historical: older app versions wrote
    negative amounts for some categories. Aggregations take the magnitude
    and re-apply a sign by category, except the category breakdown which
    sums the raw value.
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique identifier, immutable"
    )
    amount: float = Field(
        ...,
        description="Amount in INR; sign is not authoritative"
    )
    category: ExpenseCategory
    expense_date: date = Field(
        ...,
        alias="date",
        description="Calendar date of the expense"
    )
    notes: Optional[str] = None
    payment_type: Optional[PaymentType] = None
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the expense was recorded, immutable"
    )

    @property
    def display_payment_type(self) -> PaymentType:
        return self.payment_type or PaymentType.CASH

    @property
    def iso_date(self) -> str:
        return self.expense_date.isoformat()


class Budget(LedgerDocument):
    """
    The single active monthly budget.

    `month` is zero-based (0 = January), matching the stored format.
    Setting a new budget replaces this record; no history is kept.
    """

    monthly: float = Field(
        ...,
        ge=0,
        description="Budget amount for the month in INR"
    )
    year: int
    month: int = Field(
        ...,
        ge=0,
        le=11,
        description="Zero-based month the budget applies to"
    )

    def applies_to(self, day: date) -> bool:
        """Whether this budget was set for the month containing `day`."""
        return self.year == day.year and self.month == day.month - 1


class LoanEMI(LedgerDocument):
    """A loan installment, tracked separately from ordinary expenses."""

    id: str = Field(..., min_length=1)
    loan_type: str = Field(
        ...,
        min_length=1,
        description="Free-text label, e.g. 'Home Loan'"
    )
    amount: float
    due_date: date
    payment_type: PaymentType = PaymentType.CASH
    notes: Optional[str] = None
    is_paid: bool = False
    created_at: datetime = Field(default_factory=utc_now)


# =============================================================================
# APP DOCUMENTS
# =============================================================================

class AppSettings(LedgerDocument):
    """Process-wide user preferences."""

    language: Literal["en", "hi"] = "en"
    dark_mode: bool = True
    has_accepted_privacy: bool = False
    app_lock_enabled: bool = False


class ExpenseDraft(LedgerDocument):
    """
    Pre-fill for the add-expense form.

    Values are kept exactly as typed, so `amount` and `date` are strings.
    """

    amount: str = ""
    category: ExpenseCategory = ExpenseCategory.FOOD
    date: str = ""
    notes: str = ""

    @classmethod
    def empty(cls, today_iso: str) -> "ExpenseDraft":
        return cls(date=today_iso)


class LedgerSnapshot(BaseModel):
    """Everything read from storage at startup."""

    expenses: list[Expense] = Field(default_factory=list)
    budget: Optional[Budget] = None
    settings: Optional[AppSettings] = None
    emis: list[LoanEMI] = Field(default_factory=list)
    draft: Optional[ExpenseDraft] = None
    has_seen_splash: bool = False
    has_viewed_privacy_link: bool = False


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'out_of_range')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Outcome of validating one command's input.

    `cleaned` carries the normalized values (rounded amounts, parsed dates,
    sanitized notes) so the store never re-derives them.
    """

    issues: list[ValidationIssue] = Field(default_factory=list)
    cleaned: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        self.issues.extend(other.issues)
        self.cleaned.update(other.cleaned)
        return self
