"""
Expense Export Formats

Three encodings are produced from the same records:

1. BACKUP CSV - every column, every field double-quoted, raw stored amounts.
   This is the only format that can be read back (parse_backup_csv).
2. SHEET TSV - tab-separated rows meant to be pasted into a spreadsheet.
   Amounts carry the spend sign convention (Subtract negative, everything
   else positive). Fields are not quoted.
3. PERIOD EXPORTS - the sheet layout restricted to a trailing window of
   days (weekly, monthly) or to a single day.

Whole amounts are written without a trailing ".0". Sheet amounts are
shown with at most 2 decimals; backup amounts keep every digit stored.
"""

import csv
import io
from datetime import date
from enum import Enum
from typing import Iterable

from pydantic import ValidationError

from expense_ledger.models.ledger import Expense
from expense_ledger.reports.aggregation import expenses_on, signed_amount, window_expenses


BACKUP_COLUMNS = ["id", "createdAt", "date", "category", "amount", "notes", "paymentType"]
SHEET_COLUMNS = ["Date", "ExpenseType", "PaymentType", "Amount", "Notes"]
SHEET_HEADER = "\t".join(SHEET_COLUMNS)


class ExportPeriod(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ExportFormatError(ValueError):
    """Backup text could not be parsed back into expenses."""
    pass


def format_amount(value: float) -> str:
    """Display form, at most 2 decimals: 500.0 -> '500', -300.0 -> '-300'."""
    if value == 0:
        return "0"
    text = f"{value:.2f}"
    return text.rstrip("0").rstrip(".")


def format_raw_amount(value: float) -> str:
    """Lossless form for backups: 500.0 -> '500', 12.345 -> '12.345'."""
    text = repr(float(value))
    if text.endswith(".0"):
        return text[:-2]
    return text


# =============================================================================
# BACKUP CSV
# =============================================================================

def generate_backup_csv(expenses: Iterable[Expense]) -> str:
    buffer = io.StringIO()
    buffer.write(",".join(BACKUP_COLUMNS) + "\n")

    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for expense in expenses:
        document = expense.to_document()
        writer.writerow([
            expense.id,
            document["createdAt"],
            expense.iso_date,
            expense.category.value,
            format_raw_amount(expense.amount),
            expense.notes or "",
            expense.payment_type.value if expense.payment_type else "",
        ])

    return buffer.getvalue().rstrip("\n")


def parse_backup_csv(text: str) -> list[Expense]:
    """
    Read a backup CSV back into expenses.

    Raises:
        ExportFormatError: If the header or any row is not a valid expense
    """
    reader = csv.DictReader(io.StringIO(text))
    if reader.fieldnames != BACKUP_COLUMNS:
        raise ExportFormatError(f"Unexpected backup header: {reader.fieldnames}")

    expenses = []
    for line_number, row in enumerate(reader, start=2):
        try:
            expenses.append(Expense.model_validate({
                "id": row["id"],
                "createdAt": row["createdAt"],
                "date": row["date"],
                "category": row["category"],
                "amount": float(row["amount"]),
                "notes": row["notes"] or None,
                "paymentType": row["paymentType"] or None,
            }))
        except (ValidationError, ValueError, TypeError) as e:
            raise ExportFormatError(f"Invalid backup row {line_number}: {e}") from e
    return expenses


# =============================================================================
# SHEET TSV
# =============================================================================

def _sheet_notes(notes: str) -> str:
    return notes.replace('"', '""').replace("\t", " ")


def _sheet_row(expense: Expense) -> str:
    return "\t".join([
        expense.iso_date,
        expense.category.value,
        expense.display_payment_type.value,
        format_amount(signed_amount(expense)),
        _sheet_notes(expense.notes or ""),
    ])


def generate_sheet_tsv(expenses: Iterable[Expense]) -> str:
    return "\n".join([SHEET_HEADER, *(_sheet_row(e) for e in expenses)])


def generate_period_export(expenses: Iterable[Expense], today: date, days: int) -> str:
    """Sheet layout for expenses dated within the last `days` days."""
    return generate_sheet_tsv(window_expenses(expenses, today, days))


def generate_day_export(expenses: Iterable[Expense], day: date) -> str:
    return generate_sheet_tsv(expenses_on(expenses, day))
