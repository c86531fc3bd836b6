"""
Ledger Store

Owns the in-memory ledger (expenses, EMIs, the budget) together with the
small app documents stored beside it (settings, draft, UI flags), and
exposes the command/query surface screens depend on.

DESIGN DECISION: Commands are strictly sequential:

    validate -> mutate memory -> persist the touched key -> publish event

- Commands return a bool and never raise for expected conditions
  (bad input, unknown id, storage failure).
- A failed write returns False AFTER memory has changed. Memory is not
  rolled back; the next successful write of that key brings storage back
  in line. A crash between mutate and persist loses that one command.
- Queries are synchronous and read memory only.

The store is an ordinary object built at startup (see factory.py) and
passed to whatever needs it. It reads "today" from an injected clock.
"""

import asyncio
from datetime import date, datetime, timezone
from typing import Any, Callable, Mapping, Optional, Union
from uuid import uuid4

from expense_ledger.audit import AuditLogger, CommitListener
from expense_ledger.models.audit import AuditEvent, AuditEventBuilder
from expense_ledger.models.ledger import (
    AppSettings,
    Budget,
    Expense,
    ExpenseDraft,
    LoanEMI,
    PaymentType,
    ValidationResult,
)
from expense_ledger.reports import aggregation, export
from expense_ledger.reports.export import ExportPeriod
from expense_ledger.services.storage import LedgerPersistence, StorageKey
from expense_ledger.validation import LedgerValidator, parse_iso_date, summarize_issues


Clock = Callable[[], datetime]


def local_now() -> datetime:
    return datetime.now().astimezone()


class LedgerStore:
    """
    The expense ledger and its derived reporting values.

    Call `load()` once before use.
    """

    def __init__(
        self,
        persistence: LedgerPersistence,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Clock] = None,
    ):
        self._persistence = persistence
        self._validator = validator or LedgerValidator()
        self._audit = audit_logger or AuditLogger()
        self._clock = clock or local_now

        self._expenses: list[Expense] = []
        self._emis: list[LoanEMI] = []
        self._budget: Optional[Budget] = None
        self._settings = AppSettings(language=self._validator.settings.default_language)
        self._draft: Optional[ExpenseDraft] = None
        self._has_seen_splash = False
        self._has_viewed_privacy_link = False
        self._is_loaded = False

    # =========================================================================
    # State
    # =========================================================================

    @property
    def expenses(self) -> list[Expense]:
        return list(self._expenses)

    @property
    def emis(self) -> list[LoanEMI]:
        return list(self._emis)

    @property
    def budget(self) -> Optional[Budget]:
        return self._budget

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def draft(self) -> Optional[ExpenseDraft]:
        return self._draft

    @property
    def has_seen_splash(self) -> bool:
        return self._has_seen_splash

    @property
    def has_viewed_privacy_link(self) -> bool:
        return self._has_viewed_privacy_link

    @property
    def is_loaded(self) -> bool:
        return self._is_loaded

    def today(self) -> date:
        return self._clock().date()

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        return next((e for e in self._expenses if e.id == expense_id), None)

    def get_emi(self, emi_id: str) -> Optional[LoanEMI]:
        return next((emi for emi in self._emis if emi.id == emi_id), None)

    def subscribe(self, listener: CommitListener) -> Callable[[], None]:
        """Register a callback run after every successful command."""
        return self._audit.subscribe(listener)

    # =========================================================================
    # Internals
    # =========================================================================

    def _new_id(self, taken: set[str]) -> str:
        millis = int(self._clock().timestamp() * 1000)
        while True:
            candidate = f"{millis}-{uuid4().hex[:8]}"
            if candidate not in taken:
                return candidate

    def _created_at(self) -> datetime:
        return self._clock().astimezone(timezone.utc)

    def _reject(self, command: str, result: ValidationResult) -> bool:
        self._audit.log(AuditEventBuilder.validation_failed(command, summarize_issues(result)))
        return False

    def _not_found(self, entity_type: str, entity_id: str) -> bool:
        self._audit.log(AuditEventBuilder.not_found(entity_type, entity_id))
        return False

    async def _commit(self, saved: bool, event: AuditEvent) -> bool:
        """Publish `event` if the write succeeded; report the write outcome."""
        if saved:
            await self._audit.publish(event)
        return saved

    # =========================================================================
    # Loading
    # =========================================================================

    async def load(self) -> None:
        """
        Load every document from storage.

        First launch writes default settings and an empty draft so the
        next launch finds them.
        """
        snapshot = await self._persistence.load_snapshot()

        self._expenses = list(snapshot.expenses)
        self._emis = list(snapshot.emis)
        self._budget = snapshot.budget
        self._has_seen_splash = snapshot.has_seen_splash
        self._has_viewed_privacy_link = snapshot.has_viewed_privacy_link

        if snapshot.settings is None:
            self._settings = AppSettings(language=self._validator.settings.default_language)
            await self._persistence.save_settings(self._settings)
        else:
            self._settings = snapshot.settings

        if snapshot.draft is None:
            self._draft = ExpenseDraft.empty(self.today().isoformat())
            await self._persistence.save_draft(self._draft)
        else:
            self._draft = snapshot.draft

        self._is_loaded = True
        self._audit.log(AuditEventBuilder.ledger_loaded(
            expense_count=len(self._expenses),
            emi_count=len(self._emis),
            has_budget=self._budget is not None,
        ))

    # =========================================================================
    # Expense commands
    # =========================================================================

    async def add_expense(
        self,
        amount: Any,
        category: Any,
        expense_date: Any,
        notes: Optional[str] = None,
        payment_type: Any = None,
    ) -> bool:
        """
        Record a new expense dated `expense_date` (YYYY-MM-DD, not in the future).

        Returns True once the expense is stored.
        """
        result = self._validator.validate_new_expense(
            amount=amount,
            category=category,
            expense_date=expense_date,
            today=self.today(),
            notes=notes,
            payment_type=payment_type,
        )
        if not result.is_valid:
            return self._reject("add_expense", result)

        cleaned = result.cleaned
        expense = Expense(
            id=self._new_id({e.id for e in self._expenses}),
            amount=cleaned["amount"],
            category=cleaned["category"],
            expense_date=cleaned["date"],
            notes=cleaned["notes"],
            payment_type=cleaned["payment_type"],
            created_at=self._created_at(),
        )
        self._expenses = [*self._expenses, expense]

        saved = await self._persistence.save_expenses(self._expenses)
        return await self._commit(saved, AuditEventBuilder.expense_added(
            expense.id, expense.category.value, expense.amount,
        ))

    async def update_expense(
        self,
        expense_id: str,
        changes: Optional[Mapping[str, Any]] = None,
        **fields: Any,
    ) -> bool:
        """
        Change amount, category, payment type or notes of an expense.

        The id, date and creation time never change.
        """
        changes = {**(changes or {}), **fields}
        index = next((i for i, e in enumerate(self._expenses) if e.id == expense_id), None)
        if index is None:
            return self._not_found("expense", expense_id)

        result = self._validator.validate_expense_changes(changes)
        if not result.is_valid:
            return self._reject("update_expense", result)

        updated = self._expenses[index].model_copy(update=result.cleaned)
        self._expenses = [*self._expenses[:index], updated, *self._expenses[index + 1:]]

        saved = await self._persistence.save_expenses(self._expenses)
        return await self._commit(saved, AuditEventBuilder.expense_updated(
            expense_id, sorted(result.cleaned),
        ))

    async def delete_expense(self, expense_id: str) -> bool:
        remaining = [e for e in self._expenses if e.id != expense_id]
        if len(remaining) == len(self._expenses):
            return self._not_found("expense", expense_id)

        self._expenses = remaining
        saved = await self._persistence.save_expenses(self._expenses)
        return await self._commit(saved, AuditEventBuilder.expense_deleted(expense_id))

    async def clear_daily_data(self, iso_date: Optional[str] = None) -> bool:
        """Remove every expense dated exactly `iso_date` (default: today)."""
        day = self.today() if iso_date is None else parse_iso_date(iso_date)
        if day is None:
            result = self._validator.check_date(iso_date)
            return self._reject("clear_daily_data", result)

        remaining = [e for e in self._expenses if e.expense_date != day]
        removed = len(self._expenses) - len(remaining)
        self._expenses = remaining

        saved = await self._persistence.save_expenses(self._expenses)
        return await self._commit(saved, AuditEventBuilder.day_cleared(day.isoformat(), removed))

    async def clear_all_data(self) -> bool:
        """
        Drop every expense, the budget and every EMI.

        Memory is cleared first, then the three keys are deleted
        independently. Returns True only if all three deletes succeed.
        """
        self._expenses = []
        self._budget = None
        self._emis = []

        keys = (StorageKey.EXPENSES, StorageKey.BUDGET, StorageKey.EMIS)
        results = await asyncio.gather(*(self._persistence.remove(key) for key in keys))
        outcomes = {key.value: ok for key, ok in zip(keys, results)}

        event = AuditEventBuilder.all_data_cleared(outcomes)
        if all(results):
            await self._audit.publish(event)
            return True
        self._audit.log(event)
        return False

    # =========================================================================
    # Budget, settings, draft, flags
    # =========================================================================

    async def update_budget(
        self,
        monthly: Any,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> bool:
        """
        Replace the budget. `month` is zero-based.

        Year and month default to the current month.
        """
        today = self.today()
        year = today.year if year is None else year
        month = today.month - 1 if month is None else month

        result = self._validator.validate_budget(monthly, year, month)
        if not result.is_valid:
            return self._reject("update_budget", result)

        self._budget = Budget(**result.cleaned)
        saved = await self._persistence.save_budget(self._budget)
        return await self._commit(saved, AuditEventBuilder.budget_updated(
            self._budget.monthly, self._budget.year, self._budget.month,
        ))

    async def update_settings(
        self,
        changes: Optional[Mapping[str, Any]] = None,
        **fields: Any,
    ) -> bool:
        changes = {**(changes or {}), **fields}
        result = self._validator.validate_settings_changes(changes)
        if not result.is_valid:
            return self._reject("update_settings", result)

        self._settings = self._settings.model_copy(update=result.cleaned)
        saved = await self._persistence.save_settings(self._settings)
        return await self._commit(saved, AuditEventBuilder.settings_updated(sorted(result.cleaned)))

    async def update_draft(
        self,
        changes: Optional[Mapping[str, Any]] = None,
        **fields: Any,
    ) -> bool:
        changes = {**(changes or {}), **fields}
        result = self._validator.validate_draft_changes(changes)
        if not result.is_valid:
            return self._reject("update_draft", result)

        current = self._draft or ExpenseDraft.empty(self.today().isoformat())
        self._draft = current.model_copy(update=result.cleaned)
        saved = await self._persistence.save_draft(self._draft)
        return await self._commit(saved, AuditEventBuilder.draft_updated())

    async def clear_draft(self) -> bool:
        self._draft = ExpenseDraft.empty(self.today().isoformat())
        saved = await self._persistence.save_draft(self._draft)
        return await self._commit(saved, AuditEventBuilder.draft_updated(cleared=True))

    async def mark_splash_as_seen(self) -> bool:
        self._has_seen_splash = True
        saved = await self._persistence.save_flag(StorageKey.SPLASH, True)
        return await self._commit(saved, AuditEventBuilder.flag_set(StorageKey.SPLASH.value))

    async def mark_privacy_link_viewed(self) -> bool:
        self._has_viewed_privacy_link = True
        saved = await self._persistence.save_flag(StorageKey.PRIVACY_LINK, True)
        return await self._commit(saved, AuditEventBuilder.flag_set(StorageKey.PRIVACY_LINK.value))

    # =========================================================================
    # EMI commands
    # =========================================================================

    async def add_emi(
        self,
        loan_type: Any,
        amount: Any,
        due_date: Any,
        payment_type: Any = PaymentType.CASH,
        notes: Optional[str] = None,
        is_paid: bool = False,
    ) -> bool:
        result = self._validator.validate_new_emi(
            loan_type=loan_type,
            amount=amount,
            due_date=due_date,
            payment_type=payment_type,
            notes=notes,
            is_paid=is_paid,
        )
        if not result.is_valid:
            return self._reject("add_emi", result)

        emi = LoanEMI(
            id=self._new_id({emi.id for emi in self._emis}),
            created_at=self._created_at(),
            **result.cleaned,
        )
        self._emis = [*self._emis, emi]

        saved = await self._persistence.save_emis(self._emis)
        return await self._commit(saved, AuditEventBuilder.emi_added(emi.id, emi.loan_type, emi.amount))

    async def update_emi(
        self,
        emi_id: str,
        changes: Optional[Mapping[str, Any]] = None,
        **fields: Any,
    ) -> bool:
        changes = {**(changes or {}), **fields}
        index = next((i for i, emi in enumerate(self._emis) if emi.id == emi_id), None)
        if index is None:
            return self._not_found("emi", emi_id)

        result = self._validator.validate_emi_changes(changes)
        if not result.is_valid:
            return self._reject("update_emi", result)

        updated = self._emis[index].model_copy(update=result.cleaned)
        self._emis = [*self._emis[:index], updated, *self._emis[index + 1:]]

        saved = await self._persistence.save_emis(self._emis)
        return await self._commit(saved, AuditEventBuilder.emi_updated(emi_id, sorted(result.cleaned)))

    async def toggle_emi_paid(self, emi_id: str) -> bool:
        emi = self.get_emi(emi_id)
        if emi is None:
            return self._not_found("emi", emi_id)
        return await self.update_emi(emi_id, is_paid=not emi.is_paid)

    async def delete_emi(self, emi_id: str) -> bool:
        remaining = [emi for emi in self._emis if emi.id != emi_id]
        if len(remaining) == len(self._emis):
            return self._not_found("emi", emi_id)

        self._emis = remaining
        saved = await self._persistence.save_emis(self._emis)
        return await self._commit(saved, AuditEventBuilder.emi_deleted(emi_id))

    # =========================================================================
    # Queries
    # =========================================================================

    def get_current_month_expenses(self) -> list[Expense]:
        return aggregation.month_expenses(self._expenses, self.today())

    def get_total_monthly_expenses(self) -> float:
        """Spend this month: +|amount| per expense, -|amount| for Subtract."""
        return aggregation.total_spend(self.get_current_month_expenses())

    def get_remaining_budget(self) -> Optional[float]:
        return aggregation.remaining_budget(self._budget, self._expenses, self.today())

    def get_expenses_by_category(self) -> dict[str, float]:
        """Raw signed totals per category for this month (no sign rule)."""
        return aggregation.category_totals(self.get_current_month_expenses())

    def get_monthly_emi_total(self) -> float:
        return aggregation.monthly_emi_total(self._emis, self.today())

    def get_next_due_emi(self) -> Optional[LoanEMI]:
        return aggregation.next_due_emi(self._emis, self.today())

    def get_expenses_for_date(self, iso_date: str) -> list[Expense]:
        day = parse_iso_date(iso_date)
        if day is None:
            return []
        return aggregation.expenses_on(self._expenses, day)

    def get_day_total(self, iso_date: str) -> float:
        day = parse_iso_date(iso_date)
        if day is None:
            return 0.0
        return aggregation.day_total(self._expenses, day)

    def get_recent_days_with_expenses(self, days: int = 30) -> list[tuple[str, int]]:
        return aggregation.recent_days_with_expenses(self._expenses, self.today(), days)

    # -------------------------------------------------------------------------
    # Exports
    # -------------------------------------------------------------------------

    def generate_csv(self) -> str:
        """Full backup of every expense."""
        return export.generate_backup_csv(self._expenses)

    def generate_sheet_tsv(self) -> str:
        return export.generate_sheet_tsv(self._expenses)

    def generate_period_csv(self, period: Union[ExportPeriod, str]) -> Optional[str]:
        """Sheet layout for the weekly or monthly window; None for an unknown period."""
        try:
            period = ExportPeriod(period)
        except ValueError:
            return None
        settings = self._validator.settings
        days = (
            settings.weekly_window_days
            if period == ExportPeriod.WEEKLY
            else settings.monthly_window_days
        )
        return export.generate_period_export(self._expenses, self.today(), days)

    def generate_weekly_csv(self) -> str:
        return self.generate_period_csv(ExportPeriod.WEEKLY)

    def generate_monthly_csv(self) -> str:
        return self.generate_period_csv(ExportPeriod.MONTHLY)

    def generate_day_tsv(self, iso_date: str) -> Optional[str]:
        day = parse_iso_date(iso_date)
        if day is None:
            return None
        return export.generate_day_export(self._expenses, day)
