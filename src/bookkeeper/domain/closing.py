"""Period closing: preview, closing entries, and the resumable closing workflow.

Closing moves each income and expense account's net activity for a period
into a profit-and-loss clearing account, optionally sweeps the net result
into retained earnings, and then locks the period.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from bookkeeper.database.base import Database
from bookkeeper.domain.accounting import accumulate_totals, calculate_account_balance
from bookkeeper.domain.entities import (
    Account,
    AccountClass,
    AccountTotals,
    AccountingPeriod,
    ClosingAccountActivity,
    ClosingPreview,
    NewTransaction,
    SplitType,
    TransactionStatus,
)
from bookkeeper.domain.errors import (
    NotFoundError,
    StateConflictError,
    ValidationError,
    account_not_found,
)
from bookkeeper.domain.period import PeriodService
from bookkeeper.domain.settings import DEFAULT_OWNER, SettingsService

logger = logging.getLogger(__name__)

CLOSING_PAYEE_PREFIX = "Year closing - "
RETAINED_EARNINGS_PAYEE = "Year closing - Transfer to Retained Earnings"


def closing_note(start_date: date, end_date: date) -> str:
    return f"Closing entry for period {start_date.isoformat()} to {end_date.isoformat()}"


class ClosingService:
    """Computes closing previews and materializes closing entries."""

    def __init__(self, db: Database, owner_id: str = DEFAULT_OWNER):
        """Initialize closing service.

        Args:
            db: Database instance
            owner_id: Owning identity every query is scoped to
        """
        self.db = db
        self.owner_id = owner_id

    def _target_account(self, account_id: int, role: str) -> Account:
        account = self.db.get_account(self.owner_id, account_id)
        if account is None:
            raise NotFoundError(f"{role} account not found: {account_not_found(account_id)}")
        if account.is_read_only:
            raise ValidationError(f"{role} account '{account.name}' is read-only")
        return account

    def preview_closing(
        self,
        start_date: date,
        end_date: date,
        profit_and_loss_account_id: int,
        retained_earnings_account_id: Optional[int] = None,
    ) -> ClosingPreview:
        """Sum income and expense activity per account over a date range.

        Balances are in each class's normal sign, so the net result is total
        income minus total expenses. Draft transactions are ignored.

        Raises:
            ValidationError: If the range is inverted or a target account is read-only
            NotFoundError: If a target account does not exist for the owner
        """
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date.")
        pnl = self._target_account(profit_and_loss_account_id, "Profit and loss")
        retained = None
        if retained_earnings_account_id is not None:
            retained = self._target_account(retained_earnings_account_id, "Retained earnings")

        accounts = [
            acc
            for acc in self.db.list_accounts(
                self.owner_id, account_classes=[AccountClass.INCOME, AccountClass.EXPENSE]
            )
            if not acc.is_read_only
        ]
        transactions = self.db.list_transactions(
            self.owner_id,
            start_date=start_date,
            end_date=end_date,
            account_ids=[acc.id for acc in accounts],
            exclude_drafts=True,
        )
        totals = accumulate_totals(transactions, [acc.id for acc in accounts])

        income: list[ClosingAccountActivity] = []
        expenses: list[ClosingAccountActivity] = []
        for acc in accounts:
            account_totals = totals.get(acc.id, AccountTotals())
            balance = calculate_account_balance(
                acc.account_class, account_totals.debit_total, account_totals.credit_total
            )
            if balance == 0:
                continue
            activity = ClosingAccountActivity(
                account_id=acc.id,
                account_name=acc.name,
                account_code=acc.code,
                account_class=acc.account_class,
                account_type=acc.account_type,
                balance=balance,
            )
            if acc.account_class == AccountClass.INCOME:
                income.append(activity)
            else:
                expenses.append(activity)

        total_income = sum(a.balance for a in income)
        total_expenses = sum(a.balance for a in expenses)
        return ClosingPreview(
            start_date=start_date,
            end_date=end_date,
            income_accounts=tuple(income),
            expense_accounts=tuple(expenses),
            total_income=total_income,
            total_expenses=total_expenses,
            net_result=total_income - total_expenses,
            profit_and_loss_account=pnl,
            retained_earnings_account=retained,
        )

    def _double_entry_lines(self, preview: ClosingPreview) -> list[tuple[str, int, int, int]]:
        """(payee, debit account, credit account, amount) per closing entry."""
        pnl_id = preview.profit_and_loss_account.id
        lines = []
        for activity in (*preview.income_accounts, *preview.expense_accounts):
            payee = f"{CLOSING_PAYEE_PREFIX}{activity.account_name}"
            amount = abs(activity.balance)
            # A positive balance sits on the class's normal side; post against it.
            credit_normal = activity.account_class == AccountClass.INCOME
            if (activity.balance > 0) == credit_normal:
                lines.append((payee, activity.account_id, pnl_id, amount))
            else:
                lines.append((payee, pnl_id, activity.account_id, amount))

        retained = preview.retained_earnings_account
        if retained is not None and retained.id != pnl_id and preview.net_result != 0:
            amount = abs(preview.net_result)
            if preview.net_result > 0:
                lines.append((RETAINED_EARNINGS_PAYEE, pnl_id, retained.id, amount))
            else:
                lines.append((RETAINED_EARNINGS_PAYEE, retained.id, pnl_id, amount))
        return lines

    def _single_entry_lines(self, preview: ClosingPreview) -> list[tuple[str, int, int]]:
        """(payee, account, signed amount) per legacy closing posting."""
        lines = []
        for activity in (*preview.income_accounts, *preview.expense_accounts):
            # Legacy postings debit when positive and credit when negative.
            if activity.account_class == AccountClass.INCOME:
                amount = activity.balance
            else:
                amount = -activity.balance
            lines.append((f"{CLOSING_PAYEE_PREFIX}{activity.account_name}", activity.account_id, amount))

        pnl = preview.profit_and_loss_account
        offset = -sum(line[2] for line in lines)
        if offset:
            lines.append((f"{CLOSING_PAYEE_PREFIX}{pnl.name}", pnl.id, offset))

        retained = preview.retained_earnings_account
        if retained is not None and retained.id != pnl.id and preview.net_result != 0:
            lines.append((RETAINED_EARNINGS_PAYEE, pnl.id, preview.net_result))
            lines.append((RETAINED_EARNINGS_PAYEE, retained.id, -preview.net_result))
        return lines

    def existing_entries(self, period_id: int) -> list[int]:
        return [
            t.id for t in self.db.list_transactions(self.owner_id, closing_period_id=period_id)
        ]

    def create_closing_entries(
        self,
        period_id: int,
        profit_and_loss_account_id: int,
        retained_earnings_account_id: Optional[int] = None,
        closing_date: Optional[date] = None,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        changed_by: Optional[str] = None,
    ) -> list[int]:
        """Create the journal entries that zero a period's income and expenses.

        All entries share one split group, are dated ``closing_date`` (the
        period's end date by default) and reference the period.

        Returns:
            IDs of the created transactions

        Raises:
            NotFoundError: If the period or a target account does not exist
            StateConflictError: If the period is closed or already has closing entries
            ValidationError: If there is no activity to close, the date is outside the
                period or ``status`` is draft
        """
        # Drafts stay out of every report, so draft entries would close nothing.
        if status == TransactionStatus.DRAFT:
            raise ValidationError("Closing entries cannot be drafts.")
        period = PeriodService(self.db, self.owner_id).require_period(period_id)
        if period.is_closed:
            raise StateConflictError("Period is already closed.", current_state=period.status.value)
        if self.existing_entries(period_id):
            raise StateConflictError("Closing entries already exist for this period.")
        closing_date = closing_date or period.end_date
        if not period.contains(closing_date):
            raise ValidationError("Closing date must fall within the period.")

        preview = self.preview_closing(
            period.start_date,
            period.end_date,
            profit_and_loss_account_id,
            retained_earnings_account_id,
        )
        if not preview.income_accounts and not preview.expense_accounts:
            raise ValidationError("No income or expense activity to close in this period.")

        group_id = uuid.uuid4().hex
        notes = closing_note(period.start_date, period.end_date)
        settings = SettingsService(self.db, self.owner_id).get_settings()
        if settings.double_entry_mode:
            entries = [
                NewTransaction(
                    date=closing_date,
                    amount=amount,
                    status=status,
                    payee=payee,
                    notes=notes,
                    debit_account_id=debit_id,
                    credit_account_id=credit_id,
                    split_group_id=group_id,
                    split_type=SplitType.CHILD,
                    closing_period_id=period.id,
                )
                for payee, debit_id, credit_id, amount in self._double_entry_lines(preview)
            ]
        else:
            entries = [
                NewTransaction(
                    date=closing_date,
                    amount=amount,
                    status=status,
                    payee=payee,
                    notes=notes,
                    account_id=account_id,
                    split_group_id=group_id,
                    split_type=SplitType.CHILD,
                    closing_period_id=period.id,
                )
                for payee, account_id, amount in self._single_entry_lines(preview)
            ]

        ids = self.db.create_transactions(
            self.owner_id, entries, changed_by=changed_by or self.owner_id, history_note=notes
        )
        logger.info(
            "Created %d closing entries for period %s (net result %d)",
            len(ids),
            period_id,
            preview.net_result,
        )
        return ids


class ClosingStep(str, Enum):
    """Last completed step of the closing workflow."""

    OPENED = "opened"
    ENTRIES_CREATED = "entries_created"
    LOCKED = "locked"


@dataclass(frozen=True)
class ClosingState:
    period: AccountingPeriod
    step: ClosingStep
    entry_ids: tuple[int, ...] = ()
    preview: Optional[ClosingPreview] = None


class ClosingWorkflow:
    """Four-step closing procedure, resumable by period ID.

    Progress is derived from stored data only (the period and the entries
    that reference it), so a workflow interrupted after any step picks up
    at the next one in a later process.
    """

    def __init__(
        self,
        db: Database,
        profit_and_loss_account_id: int,
        retained_earnings_account_id: Optional[int] = None,
        owner_id: str = DEFAULT_OWNER,
        entry_status: TransactionStatus = TransactionStatus.COMPLETED,
        changed_by: Optional[str] = None,
    ):
        self.db = db
        self.owner_id = owner_id
        self.profit_and_loss_account_id = profit_and_loss_account_id
        self.retained_earnings_account_id = retained_earnings_account_id
        self.entry_status = entry_status
        self.changed_by = changed_by or owner_id
        self.periods = PeriodService(db, owner_id)
        self.closing = ClosingService(db, owner_id)

    def state(self, period_id: int) -> ClosingState:
        """Where the workflow stands for a period."""
        period = self.periods.require_period(period_id)
        entry_ids = tuple(self.closing.existing_entries(period_id))
        if period.is_closed:
            step = ClosingStep.LOCKED
        elif entry_ids:
            step = ClosingStep.ENTRIES_CREATED
        else:
            step = ClosingStep.OPENED
        return ClosingState(period=period, step=step, entry_ids=entry_ids)

    def open_period(self, start_date: date, end_date: date, notes: Optional[str] = None) -> int:
        """Step 1: create the period; its ID is the workflow's resume key."""
        return self.periods.create_period(start_date, end_date, notes=notes)

    def preview(self, period_id: int) -> ClosingPreview:
        """Step 2: compute the period's income and expense activity."""
        period = self.periods.require_period(period_id)
        return self.closing.preview_closing(
            period.start_date,
            period.end_date,
            self.profit_and_loss_account_id,
            self.retained_earnings_account_id,
        )

    def create_entries(self, period_id: int, closing_date: Optional[date] = None) -> list[int]:
        """Step 3: materialize the closing entries."""
        return self.closing.create_closing_entries(
            period_id,
            self.profit_and_loss_account_id,
            self.retained_earnings_account_id,
            closing_date=closing_date,
            status=self.entry_status,
            changed_by=self.changed_by,
        )

    def lock(self, period_id: int, notes: Optional[str] = None) -> AccountingPeriod:
        """Step 4: close the period."""
        return self.periods.close_period(period_id, closed_by=self.changed_by, notes=notes)

    def run(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        period_id: Optional[int] = None,
        closing_date: Optional[date] = None,
        notes: Optional[str] = None,
        skip_empty: bool = False,
    ) -> ClosingState:
        """Run every remaining step.

        Pass ``period_id`` to resume; otherwise a period is opened from the
        date range. A failure leaves the period at its last completed step.

        Args:
            skip_empty: Lock a period with no income or expense activity
                without creating entries instead of failing
        """
        if period_id is None:
            if start_date is None or end_date is None:
                raise ValidationError("Either a period ID or a start and end date is required.")
            period_id = self.open_period(start_date, end_date, notes=notes)
            logger.info("Closing workflow opened period %s", period_id)

        state = self.state(period_id)
        if state.step == ClosingStep.LOCKED:
            return state

        preview = None
        if state.step == ClosingStep.OPENED:
            preview = self.preview(period_id)
            if preview.income_accounts or preview.expense_accounts or not skip_empty:
                self.create_entries(period_id, closing_date=closing_date)

        self.lock(period_id, notes=notes)
        final = self.state(period_id)
        return ClosingState(
            period=final.period, step=final.step, entry_ids=final.entry_ids, preview=preview
        )
