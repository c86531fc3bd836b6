"""
Expense Ledger - Source Package

The local core of a personal expense tracker: expenses, loan EMIs and a
monthly budget, persisted as JSON documents on the device.

DESIGN PRINCIPLES:
1. Validate first, then mutate, then persist
2. Commands answer with a bool, never with an exception
3. One storage key per command, no hidden transactions
4. Every command is logged
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Ledger Team"
