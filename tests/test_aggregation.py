"""
Tests for ledger aggregations.

The monthly total and the category breakdown use different sign rules;
both are pinned down here.
"""

import pytest
from datetime import date

from expense_ledger.models.ledger import Budget, Expense, LoanEMI
from expense_ledger.reports import aggregation


TODAY = date(2024, 1, 15)


def make_expense(amount, category="Food", day="2024-01-15", expense_id=None):
    return Expense(
        id=expense_id or f"{category}-{amount}-{day}",
        amount=amount,
        category=category,
        expense_date=date.fromisoformat(day),
    )


def make_emi(emi_id, amount, due, is_paid=False):
    return LoanEMI(
        id=emi_id,
        loan_type="Loan",
        amount=amount,
        due_date=date.fromisoformat(due),
        is_paid=is_paid,
    )


@pytest.fixture
def january_expenses():
    return [
        make_expense(500, "Food"),
        make_expense(200, "Transport"),
        make_expense(1000, "Shopping"),
        make_expense(-300, "Subtract"),
        make_expense(-2000, "LoanEMI"),
    ]


class TestSpendTotals:
    """Tests for the spend sign convention."""

    def test_subtract_is_negative_everything_else_positive(self):
        assert aggregation.signed_amount(make_expense(300, "Subtract")) == -300
        assert aggregation.signed_amount(make_expense(-300, "Subtract")) == -300
        assert aggregation.signed_amount(make_expense(-2000, "LoanEMI")) == 2000
        assert aggregation.signed_amount(make_expense(-150, "AutopayDeduction")) == 150

    def test_month_total(self, january_expenses):
        assert aggregation.total_spend(january_expenses) == 3400

    def test_stored_sign_does_not_change_total(self):
        positive = [make_expense(500, "Food")]
        negative = [make_expense(-500, "Food")]
        assert aggregation.total_spend(positive) == aggregation.total_spend(negative) == 500

    def test_month_expenses_filters_calendar_month(self):
        expenses = [
            make_expense(10, day="2024-01-01"),
            make_expense(20, day="2024-01-31"),
            make_expense(30, day="2023-12-31"),
            make_expense(40, day="2023-01-15"),
        ]
        selected = aggregation.month_expenses(expenses, TODAY)
        assert [e.amount for e in selected] == [10, 20]

    def test_day_total(self):
        expenses = [
            make_expense(100, "Food", "2024-01-14"),
            make_expense(50, "Subtract", "2024-01-14"),
            make_expense(999, "Food", "2024-01-15"),
        ]
        assert aggregation.day_total(expenses, date(2024, 1, 14)) == 50


class TestCategoryTotals:
    """Tests for the raw category breakdown."""

    def test_raw_signs_are_kept(self, january_expenses):
        assert aggregation.category_totals(january_expenses) == {
            "Food": 500,
            "Transport": 200,
            "Shopping": 1000,
            "Subtract": -300,
            "LoanEMI": -2000,
        }

    def test_negative_food_lowers_food_bucket(self):
        expenses = [make_expense(800, "Food"), make_expense(-500, "Food", expense_id="neg")]
        assert aggregation.category_totals(expenses) == {"Food": 300}
        assert aggregation.total_spend(expenses) == 1300


class TestRemainingBudget:
    """Tests for remaining_budget."""

    def test_no_budget(self, january_expenses):
        assert aggregation.remaining_budget(None, january_expenses, TODAY) is None

    def test_current_month_budget(self, january_expenses):
        budget = Budget(monthly=5000, year=2024, month=0)
        assert aggregation.remaining_budget(budget, january_expenses, TODAY) == 1600

    def test_stale_budget_is_returned_unchanged(self, january_expenses):
        budget = Budget(monthly=5000, year=2023, month=11)
        assert aggregation.remaining_budget(budget, january_expenses, TODAY) == 5000

    def test_overspend_goes_negative(self):
        budget = Budget(monthly=100, year=2024, month=0)
        expenses = [make_expense(250, "Food")]
        assert aggregation.remaining_budget(budget, expenses, TODAY) == -150


class TestWindows:
    """Tests for day windows and recent days."""

    def test_window_covers_exactly_n_days(self):
        expenses = [
            make_expense(day_number, day=f"2024-01-{day_number:02d}")
            for day_number in range(7, 17)
        ]
        selected = aggregation.window_expenses(expenses, TODAY, 7)
        assert [e.iso_date for e in selected] == [
            "2024-01-09",
            "2024-01-10",
            "2024-01-11",
            "2024-01-12",
            "2024-01-13",
            "2024-01-14",
            "2024-01-15",
        ]

    def test_one_day_window_is_today(self):
        expenses = [make_expense(1, day="2024-01-14"), make_expense(2, day="2024-01-15")]
        assert [e.amount for e in aggregation.window_expenses(expenses, TODAY, 1)] == [2]

    def test_recent_days_newest_first(self):
        expenses = [
            make_expense(1, day="2024-01-10"),
            make_expense(2, day="2024-01-15"),
            make_expense(3, day="2024-01-15", expense_id="second"),
            make_expense(4, day="2023-12-01"),
        ]
        assert aggregation.recent_days_with_expenses(expenses, TODAY) == [
            ("2024-01-15", 2),
            ("2024-01-10", 1),
        ]


class TestEMIAggregates:
    """Tests for EMI totals and the next due EMI."""

    @pytest.fixture
    def emis(self):
        return [
            make_emi("past", 1000, "2024-01-10"),
            make_emi("paid", 500, "2024-01-18", is_paid=True),
            make_emi("next", 2000, "2024-01-20"),
            make_emi("feb", 3000, "2024-02-01"),
        ]

    def test_monthly_total_counts_paid_and_unpaid(self, emis):
        assert aggregation.monthly_emi_total(emis, TODAY) == 3500

    def test_next_due_skips_paid_and_past(self, emis):
        assert aggregation.next_due_emi(emis, TODAY).id == "next"

    def test_due_today_counts_as_upcoming(self):
        emis = [make_emi("today", 100, "2024-01-15"), make_emi("later", 100, "2024-01-16")]
        assert aggregation.next_due_emi(emis, TODAY).id == "today"

    def test_nothing_due(self):
        assert aggregation.next_due_emi([make_emi("old", 1, "2023-01-01")], TODAY) is None
