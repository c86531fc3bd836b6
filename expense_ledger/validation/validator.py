"""
Validation and Sanitization for Ledger Commands

Every command the ledger store accepts goes through this module before any
state changes. Validation FAILS CLOSED: a command with a single error-level
issue is refused as a whole, nothing is partially applied.

The module has two layers:

PURE HELPERS:
- round_money / sanitize_notes / parse_iso_date
- No configuration, no I/O, trivially testable

LEDGER VALIDATOR:
- Applies the configured limits (amount caps, budget years, notes length)
- Returns a ValidationResult with every issue found and the cleaned values
- Never raises for bad input; the store decides what to do with the result
"""

import math
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from expense_ledger.config import LedgerSettings, get_settings
from expense_ledger.models.ledger import (
    ExpenseCategory,
    PaymentType,
    ValidationIssue,
    ValidationResult,
)


UNSAFE_NOTE_CHARS = re.compile(r"[<>\"'&]")
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Persisted documents use camelCase; callers may use either spelling.
FIELD_ALIASES = {
    "paymentType": "payment_type",
    "loanType": "loan_type",
    "dueDate": "due_date",
    "isPaid": "is_paid",
    "darkMode": "dark_mode",
    "hasAcceptedPrivacy": "has_accepted_privacy",
    "appLockEnabled": "app_lock_enabled",
}

EXPENSE_MUTABLE_FIELDS = ("amount", "category", "payment_type", "notes")
EMI_MUTABLE_FIELDS = ("loan_type", "amount", "due_date", "payment_type", "notes", "is_paid")
SETTINGS_FIELDS = ("language", "dark_mode", "has_accepted_privacy", "app_lock_enabled")
DRAFT_FIELDS = ("amount", "category", "date", "notes")
SUPPORTED_LANGUAGES = ("en", "hi")


# =============================================================================
# PURE HELPERS
# =============================================================================

def round_money(value: float) -> float:
    """Round to 2 decimal places, halves away from zero."""
    rounded = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return float(rounded)


def sanitize_notes(notes: Optional[str], max_length: int = 500) -> Optional[str]:
    """
    Strip HTML metacharacters and surrounding whitespace, then truncate.

    Returns None for missing or blank notes.
    """
    if notes is None:
        return None
    cleaned = UNSAFE_NOTE_CHARS.sub("", str(notes)).strip()
    if not cleaned:
        return None
    return cleaned[:max_length]


def parse_iso_date(value: Any) -> Optional[date]:
    """
    Parse a `YYYY-MM-DD` string (or pass through a date).

    Returns None when the value is not a real calendar date.
    """
    if isinstance(value, datetime):
        return None
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not ISO_DATE_PATTERN.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def normalize_keys(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Map camelCase keys from stored documents onto attribute names."""
    return {FIELD_ALIASES.get(key, key): value for key, value in changes.items()}


def _as_number(value: Any) -> Optional[float]:
    # bool is an int subclass; a checkbox value is not an amount
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, Decimal):
        try:
            return float(value)
        except (InvalidOperation, ValueError):
            return None
    return None


def _issue(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, issue_type=issue_type, message=message)


# =============================================================================
# LEDGER VALIDATOR
# =============================================================================

class LedgerValidator:
    """
    Validates and normalizes inbound ledger commands.

    Each public method returns a ValidationResult. When `is_valid` is True,
    `cleaned` holds every value the store should write.
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        """
        Initialize validator.

        Args:
            settings: Limits to enforce. Defaults to the configured ledger settings.
        """
        self._settings = settings or get_settings().ledger

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    # -------------------------------------------------------------------------
    # Field checks
    # -------------------------------------------------------------------------

    def check_amount(
        self,
        value: Any,
        field: str = "amount",
        maximum: Optional[float] = None,
        strictly_positive: bool = False,
    ) -> ValidationResult:
        """
        Amount must be a finite number whose magnitude is within `maximum`.

        The magnitude is what is bounded; expenses may arrive signed.
        """
        result = ValidationResult()
        maximum = self._settings.max_expense_amount if maximum is None else maximum
        number = _as_number(value)

        if number is None:
            result.issues.append(_issue(field, "invalid_type", f"{field} must be a number"))
        elif not math.isfinite(number):
            result.issues.append(_issue(field, "not_finite", f"{field} must be finite"))
        elif abs(number) > maximum:
            result.issues.append(_issue(
                field, "out_of_range", f"{field} magnitude exceeds {maximum:,.0f}",
            ))
        elif strictly_positive and number <= 0:
            result.issues.append(_issue(field, "out_of_range", f"{field} must be greater than zero"))
        else:
            result.cleaned[field] = round_money(number)
        return result

    def check_date(
        self,
        value: Any,
        field: str = "date",
        not_after: Optional[date] = None,
    ) -> ValidationResult:
        """Date must be `YYYY-MM-DD`; optionally no later than `not_after`."""
        result = ValidationResult()
        parsed = parse_iso_date(value)

        if parsed is None:
            result.issues.append(_issue(field, "invalid_format", f"{field} must be YYYY-MM-DD"))
        elif not_after is not None and parsed > not_after:
            result.issues.append(_issue(field, "future_date", f"{field} {parsed} is in the future"))
        else:
            result.cleaned[field] = parsed
        return result

    def check_category(self, value: Any) -> ValidationResult:
        result = ValidationResult()
        try:
            result.cleaned["category"] = ExpenseCategory(value)
        except ValueError:
            result.issues.append(_issue(
                "category", "invalid_choice", f"Unknown category: {value!r}",
            ))
        return result

    def check_payment_type(self, value: Any, required: bool = False) -> ValidationResult:
        result = ValidationResult()
        if value is None:
            if required:
                result.issues.append(_issue("payment_type", "missing", "payment_type is required"))
            else:
                result.cleaned["payment_type"] = None
            return result
        try:
            result.cleaned["payment_type"] = PaymentType(value)
        except ValueError:
            result.issues.append(_issue(
                "payment_type", "invalid_choice", f"Unknown payment type: {value!r}",
            ))
        return result

    def check_notes(self, value: Any) -> ValidationResult:
        result = ValidationResult()
        if value is not None and not isinstance(value, str):
            result.issues.append(_issue("notes", "invalid_type", "notes must be text"))
            return result
        result.cleaned["notes"] = sanitize_notes(value, self._settings.max_notes_length)
        return result

    def check_unknown_fields(
        self,
        changes: Mapping[str, Any],
        allowed: tuple[str, ...],
    ) -> ValidationResult:
        result = ValidationResult()
        for key in changes:
            if key not in allowed:
                result.issues.append(_issue(key, "not_allowed", f"{key} cannot be changed"))
        return result

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def validate_new_expense(
        self,
        amount: Any,
        category: Any,
        expense_date: Any,
        today: date,
        notes: Any = None,
        payment_type: Any = None,
    ) -> ValidationResult:
        """Validate an add-expense command. The date may not be after `today`."""
        result = ValidationResult()
        result.merge(self.check_amount(amount))
        result.merge(self.check_category(category))
        result.merge(self.check_date(expense_date, not_after=today))
        result.merge(self.check_payment_type(payment_type))
        result.merge(self.check_notes(notes))
        return result

    def validate_expense_changes(self, changes: Mapping[str, Any]) -> ValidationResult:
        """
        Validate a partial expense update.

        Only amount, category, payment type and notes may change.
        """
        changes = normalize_keys(changes)
        result = self.check_unknown_fields(changes, EXPENSE_MUTABLE_FIELDS)
        if "amount" in changes:
            result.merge(self.check_amount(changes["amount"]))
        if "category" in changes:
            result.merge(self.check_category(changes["category"]))
        if "payment_type" in changes:
            result.merge(self.check_payment_type(changes["payment_type"]))
        if "notes" in changes:
            result.merge(self.check_notes(changes["notes"]))
        return result

    # -------------------------------------------------------------------------
    # Budget
    # -------------------------------------------------------------------------

    def validate_budget(self, monthly: Any, year: Any, month: Any) -> ValidationResult:
        """monthly in [0, max_budget_amount], month in [0, 11], year in the configured range."""
        result = ValidationResult()

        number = _as_number(monthly)
        if number is None or not math.isfinite(number):
            result.issues.append(_issue("monthly", "invalid_type", "monthly must be a finite number"))
        elif not 0 <= number <= self._settings.max_budget_amount:
            result.issues.append(_issue(
                "monthly",
                "out_of_range",
                f"monthly must be between 0 and {self._settings.max_budget_amount:,.0f}",
            ))
        else:
            result.cleaned["monthly"] = round_money(number)

        if isinstance(month, bool) or not isinstance(month, int) or not 0 <= month <= 11:
            result.issues.append(_issue("month", "out_of_range", "month must be an integer 0-11"))
        else:
            result.cleaned["month"] = month

        low, high = self._settings.min_budget_year, self._settings.max_budget_year
        if isinstance(year, bool) or not isinstance(year, int) or not low <= year <= high:
            result.issues.append(_issue("year", "out_of_range", f"year must be between {low} and {high}"))
        else:
            result.cleaned["year"] = year

        return result

    # -------------------------------------------------------------------------
    # EMIs
    # -------------------------------------------------------------------------

    def check_loan_type(self, value: Any) -> ValidationResult:
        result = ValidationResult()
        if not isinstance(value, str) or not value.strip():
            result.issues.append(_issue("loan_type", "missing", "loan_type is required"))
            return result
        cleaned = UNSAFE_NOTE_CHARS.sub("", value).strip()
        if not cleaned:
            result.issues.append(_issue("loan_type", "missing", "loan_type is required"))
        elif len(cleaned) > self._settings.max_loan_type_length:
            result.issues.append(_issue(
                "loan_type",
                "too_long",
                f"loan_type exceeds {self._settings.max_loan_type_length} characters",
            ))
        else:
            result.cleaned["loan_type"] = cleaned
        return result

    def check_is_paid(self, value: Any) -> ValidationResult:
        result = ValidationResult()
        if not isinstance(value, bool):
            result.issues.append(_issue("is_paid", "invalid_type", "is_paid must be true or false"))
        else:
            result.cleaned["is_paid"] = value
        return result

    def validate_new_emi(
        self,
        loan_type: Any,
        amount: Any,
        due_date: Any,
        payment_type: Any = PaymentType.CASH,
        notes: Any = None,
        is_paid: Any = False,
    ) -> ValidationResult:
        """Validate an add-EMI command. The amount must be strictly positive."""
        result = ValidationResult()
        result.merge(self.check_loan_type(loan_type))
        result.merge(self.check_amount(amount, strictly_positive=True))
        result.merge(self.check_date(due_date, field="due_date"))
        result.merge(self.check_payment_type(payment_type, required=True))
        result.merge(self.check_notes(notes))
        result.merge(self.check_is_paid(is_paid))
        return result

    def validate_emi_changes(self, changes: Mapping[str, Any]) -> ValidationResult:
        changes = normalize_keys(changes)
        result = self.check_unknown_fields(changes, EMI_MUTABLE_FIELDS)
        if "loan_type" in changes:
            result.merge(self.check_loan_type(changes["loan_type"]))
        if "amount" in changes:
            result.merge(self.check_amount(changes["amount"], strictly_positive=True))
        if "due_date" in changes:
            result.merge(self.check_date(changes["due_date"], field="due_date"))
        if "payment_type" in changes:
            result.merge(self.check_payment_type(changes["payment_type"], required=True))
        if "notes" in changes:
            result.merge(self.check_notes(changes["notes"]))
        if "is_paid" in changes:
            result.merge(self.check_is_paid(changes["is_paid"]))
        return result

    # -------------------------------------------------------------------------
    # Settings and draft
    # -------------------------------------------------------------------------

    def validate_settings_changes(self, changes: Mapping[str, Any]) -> ValidationResult:
        changes = normalize_keys(changes)
        result = self.check_unknown_fields(changes, SETTINGS_FIELDS)
        for key, value in changes.items():
            if key not in SETTINGS_FIELDS:
                continue
            if key == "language":
                if value not in SUPPORTED_LANGUAGES:
                    result.issues.append(_issue(
                        "language", "invalid_choice", f"Unsupported language: {value!r}",
                    ))
                else:
                    result.cleaned["language"] = value
            elif not isinstance(value, bool):
                result.issues.append(_issue(key, "invalid_type", f"{key} must be true or false"))
            else:
                result.cleaned[key] = value
        return result

    def validate_draft_changes(self, changes: Mapping[str, Any]) -> ValidationResult:
        """
        Drafts hold text exactly as typed, so only types are checked here.

        Notes are still sanitized: a draft is rendered back into the form.
        """
        result = self.check_unknown_fields(changes, DRAFT_FIELDS)
        for key, value in changes.items():
            if key not in DRAFT_FIELDS:
                continue
            if key == "category":
                result.merge(self.check_category(value))
            elif not isinstance(value, str):
                result.issues.append(_issue(key, "invalid_type", f"{key} must be text"))
            elif key == "notes":
                result.cleaned["notes"] = sanitize_notes(value, self._settings.max_notes_length) or ""
            else:
                result.cleaned[key] = value
        return result


def summarize_issues(result: ValidationResult) -> list[dict]:
    """Issues as plain dicts, for audit events and log lines."""
    return [
        {"field": issue.field, "type": issue.issue_type, "message": issue.message}
        for issue in result.issues
    ]
