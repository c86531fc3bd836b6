"""
Ledger Aggregations

Pure functions over lists of ledger records. The store calls these with
its in-memory lists and the current date; nothing here reads a clock or
touches storage.

TWO SIGN CONVENTIONS (both deliberate, both relied on by the app):

1. SPEND TOTALS (monthly total, day totals, sheet exports)
   The stored sign is not trusted. Every category contributes +|amount|
   except SUBTRACT, which contributes -|amount|. AutopayDeduction and
   LoanEMI are spend like any other category.

2. CATEGORY BREAKDOWN
   Raw stored amounts are summed per category, sign included. A Food
   expense stored as -500 lowers the Food bucket by 500 even though it
   raises the monthly total by 500.
"""

import math
from datetime import date, timedelta
from typing import Iterable, Optional

from expense_ledger.models.ledger import Budget, Expense, ExpenseCategory, LoanEMI


def signed_amount(expense: Expense) -> float:
    """Contribution of one expense to spend totals."""
    magnitude = abs(expense.amount)
    if expense.category == ExpenseCategory.SUBTRACT:
        return -magnitude
    return magnitude


def same_month(day: date, reference: date) -> bool:
    return day.year == reference.year and day.month == reference.month


def month_expenses(expenses: Iterable[Expense], reference: date) -> list[Expense]:
    """Expenses dated in the month of `reference`, in their original order."""
    return [e for e in expenses if same_month(e.expense_date, reference)]


def total_spend(expenses: Iterable[Expense]) -> float:
    return math.fsum(signed_amount(e) for e in expenses)


def category_totals(expenses: Iterable[Expense]) -> dict[str, float]:
    """Raw signed sum per category name, in first-seen order."""
    totals: dict[str, float] = {}
    for expense in expenses:
        key = expense.category.value
        totals[key] = totals.get(key, 0.0) + expense.amount
    return totals


def remaining_budget(
    budget: Optional[Budget],
    expenses: Iterable[Expense],
    today: date,
) -> Optional[float]:
    """
    Budget left for the current month.

    A budget set for another month is returned as-is: nothing is counted
    against it until it is set again for the current month.
    """
    if budget is None:
        return None
    if not budget.applies_to(today):
        return budget.monthly

    remaining = budget.monthly - total_spend(month_expenses(expenses, today))
    if not math.isfinite(remaining):
        return budget.monthly
    return remaining


def window_expenses(expenses: Iterable[Expense], today: date, days: int) -> list[Expense]:
    """Expenses dated within the last `days` calendar days, `today` included."""
    start = today - timedelta(days=days - 1)
    return [e for e in expenses if start <= e.expense_date <= today]


def expenses_on(expenses: Iterable[Expense], day: date) -> list[Expense]:
    return [e for e in expenses if e.expense_date == day]


def day_total(expenses: Iterable[Expense], day: date) -> float:
    return total_spend(expenses_on(expenses, day))


def recent_days_with_expenses(
    expenses: Iterable[Expense],
    today: date,
    days: int = 30,
) -> list[tuple[str, int]]:
    """
    (iso_date, count) for each of the last `days` days that has expenses.

    Today comes first.
    """
    counts: dict[date, int] = {}
    for expense in expenses:
        counts[expense.expense_date] = counts.get(expense.expense_date, 0) + 1

    recent = []
    for offset in range(days):
        day = today - timedelta(days=offset)
        if counts.get(day):
            recent.append((day.isoformat(), counts[day]))
    return recent


# =============================================================================
# EMIs
# =============================================================================

def monthly_emi_total(emis: Iterable[LoanEMI], reference: date) -> float:
    """Raw sum of EMI amounts due in the month of `reference`."""
    return math.fsum(emi.amount for emi in emis if same_month(emi.due_date, reference))


def next_due_emi(emis: Iterable[LoanEMI], today: date) -> Optional[LoanEMI]:
    """Unpaid EMI with the earliest due date on or after `today`."""
    upcoming = [emi for emi in emis if not emi.is_paid and emi.due_date >= today]
    if not upcoming:
        return None
    return min(upcoming, key=lambda emi: emi.due_date)
