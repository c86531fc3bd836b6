"""
Tests for the backup CSV and sheet TSV exports.
"""

import pytest
from datetime import date, datetime, timezone

from expense_ledger.models.ledger import Expense
from expense_ledger.reports.export import (
    BACKUP_COLUMNS,
    SHEET_HEADER,
    ExportFormatError,
    format_amount,
    format_raw_amount,
    generate_backup_csv,
    generate_day_export,
    generate_period_export,
    generate_sheet_tsv,
    parse_backup_csv,
)


@pytest.fixture
def expenses():
    created = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    return [
        Expense(
            id="e1",
            amount=250.5,
            category="Food",
            expense_date=date(2024, 1, 15),
            notes='Said "hi"',
            payment_type="UPI",
            created_at=created,
        ),
        Expense(
            id="e2",
            amount=300,
            category="Subtract",
            expense_date=date(2024, 1, 14),
            created_at=created,
        ),
        Expense(
            id="e3",
            amount=-2000,
            category="LoanEMI",
            expense_date=date(2024, 1, 1),
            notes="car\tloan",
            payment_type="Debit Card",
            created_at=created,
        ),
    ]


class TestFormatAmount:
    """Tests for amount formatting."""

    @pytest.mark.parametrize("value, expected", [
        (500.0, "500"),
        (12.5, "12.5"),
        (-300.0, "-300"),
        (0.0, "0"),
        (99.99, "99.99"),
    ])
    def test_format(self, value, expected):
        assert format_amount(value) == expected

    @pytest.mark.parametrize("value, expected", [
        (500.0, "500"),
        (-2000.0, "-2000"),
        (12.345, "12.345"),
        (0.1, "0.1"),
        (1234.5678, "1234.5678"),
    ])
    def test_raw_format_keeps_every_digit(self, value, expected):
        assert format_raw_amount(value) == expected


class TestBackupCsv:
    """Tests for the backup CSV."""

    def test_header_is_unquoted(self, expenses):
        text = generate_backup_csv(expenses)
        assert text.splitlines()[0] == ",".join(BACKUP_COLUMNS)

    def test_rows_are_fully_quoted(self, expenses):
        lines = generate_backup_csv(expenses).splitlines()
        created = expenses[0].to_document()["createdAt"]
        assert lines[1] == (
            f'"e1","{created}","2024-01-15","Food","250.5","Said ""hi""","UPI"'
        )
        assert lines[2].endswith('"Subtract","300","",""')

    def test_raw_sign_is_kept(self, expenses):
        assert '"-2000"' in generate_backup_csv(expenses)

    def test_no_trailing_newline(self, expenses):
        assert not generate_backup_csv(expenses).endswith("\n")

    def test_empty_ledger_is_header_only(self):
        assert generate_backup_csv([]) == ",".join(BACKUP_COLUMNS)

    def test_backup_reads_back(self, expenses):
        assert parse_backup_csv(generate_backup_csv(expenses)) == expenses

    def test_unrounded_stored_amount_reads_back(self):
        """Test amounts written by older app versions are not rounded on backup."""
        expense = Expense.model_validate({
            "id": "old",
            "amount": 12.345,
            "category": "Food",
            "date": "2024-01-15",
            "createdAt": "2024-01-15T10:00:00.000Z",
        })
        text = generate_backup_csv([expense])
        assert '"12.345"' in text
        assert parse_backup_csv(text)[0].amount == 12.345

    def test_wrong_header_is_rejected(self):
        with pytest.raises(ExportFormatError):
            parse_backup_csv("id,date,amount\n1,2024-01-01,5")

    def test_bad_row_is_rejected(self, expenses):
        text = generate_backup_csv(expenses).replace('"Food"', '"Rent"')
        with pytest.raises(ExportFormatError):
            parse_backup_csv(text)


class TestSheetTsv:
    """Tests for the sheet TSV."""

    def test_rows(self, expenses):
        lines = generate_sheet_tsv(expenses).split("\n")
        assert lines[0] == SHEET_HEADER
        assert lines[1] == '2024-01-15\tFood\tUPI\t250.5\tSaid ""hi""'
        assert lines[2] == "2024-01-14\tSubtract\tCash\t-300\t"
        assert lines[3] == "2024-01-01\tLoanEMI\tDebit Card\t2000\tcar loan"

    def test_period_window(self, expenses):
        edge = [
            Expense(id="d9", amount=9, category="Food", expense_date=date(2024, 1, 9)),
            Expense(id="d8", amount=8, category="Food", expense_date=date(2024, 1, 8)),
        ]
        text = generate_period_export(expenses + edge, date(2024, 1, 15), 7)
        assert text.split("\n")[1:] == [
            '2024-01-15\tFood\tUPI\t250.5\tSaid ""hi""',
            "2024-01-14\tSubtract\tCash\t-300\t",
            "2024-01-09\tFood\tCash\t9\t",
        ]

    def test_sheet_amounts_show_two_decimals(self):
        expense = Expense(id="x", amount=12.3456, category="Food", expense_date=date(2024, 1, 15))
        assert generate_sheet_tsv([expense]).endswith("\tCash\t12.35\t")

    def test_monthly_window_reaches_previous_month(self, expenses):
        text = generate_period_export(expenses, date(2024, 1, 15), 30)
        assert len(text.split("\n")) == 4

    def test_day_export(self, expenses):
        text = generate_day_export(expenses, date(2024, 1, 14))
        assert text == f"{SHEET_HEADER}\n2024-01-14\tSubtract\tCash\t-300\t"

    def test_empty_day_is_header_only(self, expenses):
        assert generate_day_export(expenses, date(2023, 6, 1)) == SHEET_HEADER
