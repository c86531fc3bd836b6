"""Aggregation and export package."""

from expense_ledger.reports.aggregation import (
    category_totals,
    day_total,
    expenses_on,
    month_expenses,
    monthly_emi_total,
    next_due_emi,
    recent_days_with_expenses,
    remaining_budget,
    signed_amount,
    total_spend,
    window_expenses,
)
from expense_ledger.reports.export import (
    BACKUP_COLUMNS,
    SHEET_HEADER,
    ExportFormatError,
    ExportPeriod,
    format_amount,
    format_raw_amount,
    generate_backup_csv,
    generate_day_export,
    generate_period_export,
    generate_sheet_tsv,
    parse_backup_csv,
)

__all__ = [
    # Aggregation
    "category_totals",
    "day_total",
    "expenses_on",
    "month_expenses",
    "monthly_emi_total",
    "next_due_emi",
    "recent_days_with_expenses",
    "remaining_budget",
    "signed_amount",
    "total_spend",
    "window_expenses",
    # Export
    "BACKUP_COLUMNS",
    "SHEET_HEADER",
    "ExportFormatError",
    "ExportPeriod",
    "format_amount",
    "format_raw_amount",
    "generate_backup_csv",
    "generate_day_export",
    "generate_period_export",
    "generate_sheet_tsv",
    "parse_backup_csv",
]
