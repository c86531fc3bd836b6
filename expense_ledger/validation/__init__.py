"""Validation and sanitization package."""

from expense_ledger.validation.validator import (
    LedgerValidator,
    normalize_keys,
    parse_iso_date,
    round_money,
    sanitize_notes,
    summarize_issues,
)

__all__ = [
    "LedgerValidator",
    "normalize_keys",
    "parse_iso_date",
    "round_money",
    "sanitize_notes",
    "summarize_issues",
]
