"""
Tests for command validation.

Covers the configured limits at their boundaries, note sanitizing and the
rejection of fields that may not change.
"""

import math
import pytest
from datetime import date, datetime

from expense_ledger.models.ledger import ExpenseCategory, PaymentType
from expense_ledger.validation import (
    LedgerValidator,
    parse_iso_date,
    round_money,
    sanitize_notes,
)
from expense_ledger.validation.validator import normalize_keys, summarize_issues


TODAY = date(2024, 1, 15)


class TestHelpers:
    """Tests for the pure helper functions."""

    def test_round_money_halves_away_from_zero(self):
        assert round_money(2.675) == 2.68
        assert round_money(-2.675) == -2.68
        assert round_money(10) == 10.0

    def test_sanitize_notes_strips_markup_characters(self):
        assert sanitize_notes("<b>Lunch</b> & 'tea'") == "bLunch/b  tea"

    def test_sanitize_notes_blank_becomes_none(self):
        assert sanitize_notes("   ") is None
        assert sanitize_notes('<>"') is None
        assert sanitize_notes(None) is None

    def test_sanitize_notes_truncates(self):
        assert sanitize_notes("x" * 501) == "x" * 500
        assert sanitize_notes("abcdef", max_length=3) == "abc"

    def test_parse_iso_date(self):
        assert parse_iso_date("2024-01-15") == date(2024, 1, 15)
        assert parse_iso_date(date(2024, 1, 15)) == date(2024, 1, 15)
        assert parse_iso_date("2024-02-30") is None
        assert parse_iso_date("15/01/2024") is None
        assert parse_iso_date("2024-1-5") is None
        assert parse_iso_date(datetime(2024, 1, 15, 9, 0)) is None
        assert parse_iso_date(20240115) is None

    def test_normalize_keys_maps_camel_case(self):
        assert normalize_keys({"paymentType": "UPI", "notes": "x"}) == {
            "payment_type": "UPI",
            "notes": "x",
        }


class TestAmountChecks:
    """Tests for amount limits."""

    @pytest.fixture
    def validator(self, ledger_settings):
        return LedgerValidator(ledger_settings)

    def test_amount_at_cap_is_accepted(self, validator):
        result = validator.check_amount(10_000_000)
        assert result.is_valid
        assert result.cleaned["amount"] == 10_000_000.0

    def test_amount_above_cap_is_rejected(self, validator):
        assert not validator.check_amount(10_000_001).is_valid
        assert not validator.check_amount(-10_000_001).is_valid

    def test_negative_amount_is_accepted(self, validator):
        result = validator.check_amount(-500)
        assert result.is_valid
        assert result.cleaned["amount"] == -500.0

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, True, "500", None])
    def test_non_numeric_amounts_are_rejected(self, validator, value):
        assert not validator.check_amount(value).is_valid

    def test_strictly_positive(self, validator):
        assert not validator.check_amount(0, strictly_positive=True).is_valid
        assert validator.check_amount(0.01, strictly_positive=True).is_valid


class TestNewExpense:
    """Tests for validate_new_expense."""

    @pytest.fixture
    def validator(self, ledger_settings):
        return LedgerValidator(ledger_settings)

    def test_valid_expense(self, validator):
        result = validator.validate_new_expense(
            amount=250.555,
            category="Food",
            expense_date="2024-01-15",
            today=TODAY,
            notes="  Lunch  ",
            payment_type="UPI",
        )
        assert result.is_valid
        assert result.cleaned == {
            "amount": 250.56,
            "category": ExpenseCategory.FOOD,
            "date": TODAY,
            "payment_type": PaymentType.UPI,
            "notes": "Lunch",
        }

    def test_future_date_is_rejected(self, validator):
        result = validator.validate_new_expense(
            amount=100, category="Food", expense_date="2024-01-16", today=TODAY,
        )
        assert not result.is_valid
        assert result.issues[0].issue_type == "future_date"

    def test_unknown_category_is_rejected(self, validator):
        result = validator.validate_new_expense(
            amount=100, category="Investment/MF/SIP", expense_date="2024-01-15", today=TODAY,
        )
        assert not result.is_valid
        assert result.issues[0].field == "category"

    def test_unknown_payment_type_is_rejected(self, validator):
        result = validator.validate_new_expense(
            amount=100,
            category="Food",
            expense_date="2024-01-15",
            today=TODAY,
            payment_type="Bitcoin",
        )
        assert not result.is_valid

    def test_missing_payment_type_is_allowed(self, validator):
        result = validator.validate_new_expense(
            amount=100, category="Food", expense_date="2024-01-15", today=TODAY,
        )
        assert result.is_valid
        assert result.cleaned["payment_type"] is None

    def test_every_issue_is_reported(self, validator):
        result = validator.validate_new_expense(
            amount="abc", category="Rent", expense_date="yesterday", today=TODAY,
        )
        assert result.error_count == 3
        fields = {issue["field"] for issue in summarize_issues(result)}
        assert fields == {"amount", "category", "date"}


class TestExpenseChanges:
    """Tests for validate_expense_changes."""

    @pytest.fixture
    def validator(self, ledger_settings):
        return LedgerValidator(ledger_settings)

    def test_mutable_fields(self, validator):
        result = validator.validate_expense_changes({"amount": 90, "paymentType": "Cash"})
        assert result.is_valid
        assert result.cleaned == {"amount": 90.0, "payment_type": PaymentType.CASH}

    @pytest.mark.parametrize("field", ["id", "date", "createdAt", "colour"])
    def test_immutable_or_unknown_fields_are_rejected(self, validator, field):
        result = validator.validate_expense_changes({field: "x"})
        assert not result.is_valid
        assert result.issues[0].issue_type == "not_allowed"


class TestBudget:
    """Tests for validate_budget."""

    @pytest.fixture
    def validator(self, ledger_settings):
        return LedgerValidator(ledger_settings)

    def test_month_bounds(self, validator):
        assert validator.validate_budget(5000, 2024, 11).is_valid
        assert validator.validate_budget(5000, 2024, 0).is_valid
        assert not validator.validate_budget(5000, 2024, 12).is_valid
        assert not validator.validate_budget(5000, 2024, -1).is_valid

    def test_year_bounds(self, validator):
        assert validator.validate_budget(5000, 2020, 0).is_valid
        assert validator.validate_budget(5000, 2050, 0).is_valid
        assert not validator.validate_budget(5000, 2019, 0).is_valid
        assert not validator.validate_budget(5000, 2051, 0).is_valid

    def test_monthly_bounds(self, validator):
        assert validator.validate_budget(0, 2024, 0).is_valid
        assert validator.validate_budget(100_000_000, 2024, 0).is_valid
        assert not validator.validate_budget(100_000_001, 2024, 0).is_valid
        assert not validator.validate_budget(-1, 2024, 0).is_valid
        assert not validator.validate_budget(math.nan, 2024, 0).is_valid

    def test_monthly_is_rounded(self, validator):
        result = validator.validate_budget(1234.567, 2024, 0)
        assert result.cleaned["monthly"] == 1234.57


class TestEMI:
    """Tests for EMI validation."""

    @pytest.fixture
    def validator(self, ledger_settings):
        return LedgerValidator(ledger_settings)

    def test_valid_emi(self, validator):
        result = validator.validate_new_emi(
            loan_type=" Home Loan ", amount=15000, due_date="2024-01-20",
        )
        assert result.is_valid
        assert result.cleaned["loan_type"] == "Home Loan"
        assert result.cleaned["payment_type"] == PaymentType.CASH
        assert result.cleaned["is_paid"] is False

    def test_zero_amount_is_rejected(self, validator):
        assert not validator.validate_new_emi("Car", 0, "2024-01-20").is_valid

    def test_blank_loan_type_is_rejected(self, validator):
        assert not validator.validate_new_emi("   ", 100, "2024-01-20").is_valid

    def test_long_loan_type_is_rejected(self, validator):
        assert not validator.validate_new_emi("L" * 101, 100, "2024-01-20").is_valid

    def test_past_due_date_is_allowed(self, validator):
        assert validator.validate_new_emi("Car", 100, "2020-01-01").is_valid

    def test_changes(self, validator):
        result = validator.validate_emi_changes({"isPaid": True, "dueDate": "2024-02-01"})
        assert result.cleaned == {"is_paid": True, "due_date": date(2024, 2, 1)}
        assert not validator.validate_emi_changes({"isPaid": "yes"}).is_valid
        assert not validator.validate_emi_changes({"payment_type": None}).is_valid
        assert not validator.validate_emi_changes({"createdAt": "x"}).is_valid


class TestSettingsAndDraft:
    """Tests for settings and draft changes."""

    @pytest.fixture
    def validator(self, ledger_settings):
        return LedgerValidator(ledger_settings)

    def test_settings(self, validator):
        result = validator.validate_settings_changes({"language": "hi", "darkMode": False})
        assert result.cleaned == {"language": "hi", "dark_mode": False}
        assert not validator.validate_settings_changes({"language": "fr"}).is_valid
        assert not validator.validate_settings_changes({"dark_mode": 1}).is_valid
        assert not validator.validate_settings_changes({"theme": "blue"}).is_valid

    def test_draft_keeps_text_as_typed(self, validator):
        result = validator.validate_draft_changes({"amount": "12.", "notes": "<tea>"})
        assert result.cleaned == {"amount": "12.", "notes": "tea"}

    def test_draft_rejects_bad_values(self, validator):
        assert not validator.validate_draft_changes({"amount": 12}).is_valid
        assert not validator.validate_draft_changes({"category": "Rent"}).is_valid
