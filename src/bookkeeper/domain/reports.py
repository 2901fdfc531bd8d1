"""Financial reports: income statement, balance sheet, ledger and trial balance."""

import logging
from datetime import date
from typing import Iterable, Optional

from bookkeeper.database.base import Database
from bookkeeper.domain.accounting import (
    BALANCE_TOLERANCE,
    accumulate_totals,
    calculate_trial_balance,
    summarize_account,
)
from bookkeeper.domain.entities import (
    Account,
    AccountBalanceSummary,
    AccountClass,
    AccountLedger,
    AccountTotals,
    BalanceSheet,
    BalanceSheetTotals,
    IncomeStatement,
    StatementLine,
    TrialBalance,
)
from bookkeeper.domain.errors import NotFoundError, ValidationError, account_not_found
from bookkeeper.domain.hierarchy import (
    build_forest,
    flatten_forest,
    rollup_read_only_balances,
    top_level_total,
)
from bookkeeper.domain.ledger import build_account_ledger
from bookkeeper.domain.settings import DEFAULT_OWNER

logger = logging.getLogger(__name__)


class ReportService:
    """Read-only reports computed from non-draft transactions."""

    def __init__(self, db: Database, owner_id: str = DEFAULT_OWNER):
        """Initialize report service.

        Args:
            db: Database instance
            owner_id: Owning identity every query is scoped to
        """
        self.db = db
        self.owner_id = owner_id

    def _totals(
        self, start_date: Optional[date], end_date: Optional[date], account_ids: Optional[Iterable[int]] = None
    ) -> dict[int, AccountTotals]:
        transactions = self.db.list_transactions(
            self.owner_id,
            start_date=start_date,
            end_date=end_date,
            account_ids=account_ids,
            exclude_drafts=True,
        )
        return accumulate_totals(transactions, account_ids)

    def _balances(
        self,
        accounts: list[Account],
        start_date: Optional[date],
        end_date: Optional[date],
        include_opening: bool,
    ) -> dict[int, int]:
        """Signed balances with read-only accounts rolled up from their children."""
        postable = [acc for acc in accounts if not acc.is_read_only]
        totals = self._totals(start_date, end_date, [acc.id for acc in postable])
        balances = {
            acc.id: summarize_account(
                acc,
                totals.get(acc.id, AccountTotals()),
                opening_balance=acc.opening_balance if include_opening else 0,
            ).balance
            for acc in postable
        }
        return rollup_read_only_balances(accounts, balances)

    def _statement_lines(
        self, accounts: list[Account], balances: dict[int, int], summary_only: bool
    ) -> tuple[StatementLine, ...]:
        lines = []
        for node in flatten_forest(build_forest(accounts, balances)):
            acc = node.account
            if not acc.is_open:
                continue
            if summary_only and not acc.is_read_only:
                continue
            lines.append(
                StatementLine(
                    id=acc.id,
                    name=acc.name,
                    code=acc.code,
                    balance=balances.get(acc.id, 0),
                    is_read_only=acc.is_read_only,
                    level=node.level,
                )
            )
        return tuple(lines)

    def _class_section(
        self,
        account_class: AccountClass,
        start_date: Optional[date],
        end_date: Optional[date],
        include_opening: bool,
        summary_only: bool,
    ) -> tuple[tuple[StatementLine, ...], int]:
        accounts = self.db.list_accounts(self.owner_id, account_classes=[account_class])
        balances = self._balances(accounts, start_date, end_date, include_opening)
        lines = self._statement_lines(accounts, balances, summary_only)
        return lines, top_level_total(accounts, balances)

    def income_statement(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        summary_only: bool = False,
    ) -> IncomeStatement:
        """Income and expenses over a date range, opening balances ignored.

        Args:
            start_date: First day included; defaults to January 1 of the end date's year
            end_date: Last day included; defaults to today
            summary_only: List only read-only (aggregate) accounts

        Returns:
            IncomeStatement with totals taken from top-level accounts
        """
        end_date = end_date or date.today()
        start_date = start_date or date(end_date.year, 1, 1)
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date.")

        income_lines, total_income = self._class_section(
            AccountClass.INCOME, start_date, end_date, False, summary_only
        )
        expense_lines, total_expenses = self._class_section(
            AccountClass.EXPENSE, start_date, end_date, False, summary_only
        )
        return IncomeStatement(
            start_date=start_date,
            end_date=end_date,
            income_accounts=income_lines,
            expense_accounts=expense_lines,
            total_income=total_income,
            total_expenses=total_expenses,
            net_income=total_income - total_expenses,
        )

    def balance_sheet(self, as_of_date: Optional[date] = None, summary_only: bool = False) -> BalanceSheet:
        """Assets, liabilities and equity as of a date, opening balances included.

        The sheet is balanced when assets and liabilities plus equity differ by
        less than the balance tolerance; an imbalance is reported, not raised.
        """
        as_of_date = as_of_date or date.today()
        sections = {
            account_class: self._class_section(account_class, None, as_of_date, True, summary_only)
            for account_class in (AccountClass.ASSET, AccountClass.LIABILITY, AccountClass.EQUITY)
        }
        total_assets = sections[AccountClass.ASSET][1]
        total_liabilities = sections[AccountClass.LIABILITY][1]
        total_equity = sections[AccountClass.EQUITY][1]
        liabilities_and_equity = total_liabilities + total_equity
        difference = total_assets - liabilities_and_equity
        is_balanced = abs(difference) < BALANCE_TOLERANCE
        if not is_balanced:
            logger.warning(
                "Balance sheet as of %s is off by %d miliunits", as_of_date, difference
            )

        return BalanceSheet(
            as_of_date=as_of_date,
            asset_accounts=sections[AccountClass.ASSET][0],
            liability_accounts=sections[AccountClass.LIABILITY][0],
            equity_accounts=sections[AccountClass.EQUITY][0],
            totals=BalanceSheetTotals(
                total_assets=total_assets,
                total_liabilities=total_liabilities,
                total_equity=total_equity,
                liabilities_and_equity=liabilities_and_equity,
            ),
            is_balanced=is_balanced,
            difference=difference,
        )

    def account_balances(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_read_only: bool = True,
    ) -> list[AccountBalanceSummary]:
        """Debit total, credit total and balance of every account.

        Opening balances are included only when no start date is given.
        Read-only accounts report the sum of their children.
        """
        accounts = self.db.list_accounts(self.owner_id)
        include_opening = start_date is None
        totals = self._totals(start_date, end_date)
        summaries = {
            acc.id: summarize_account(
                acc,
                totals.get(acc.id, AccountTotals()),
                opening_balance=acc.opening_balance if include_opening else 0,
            )
            for acc in accounts
            if not acc.is_read_only
        }
        rolled = rollup_read_only_balances(
            accounts, {acc_id: s.balance for acc_id, s in summaries.items()}
        )

        result = []
        for acc in accounts:
            if acc.is_read_only:
                if not include_read_only:
                    continue
                summary = summarize_account(acc, AccountTotals(), opening_balance=0)
                balance = rolled.get(acc.id, 0)
                result.append(
                    AccountBalanceSummary(
                        account_id=acc.id,
                        account_name=acc.name,
                        account_class=acc.account_class,
                        balance=balance,
                        normal_balance=summary.normal_balance,
                        is_normal=balance >= 0,
                        code=acc.code,
                    )
                )
            else:
                result.append(summaries[acc.id])
        return result

    def trial_balance(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> TrialBalance:
        """Trial balance over postable accounts; read-only parents would double count."""
        summaries = self.account_balances(start_date, end_date, include_read_only=False)
        result = calculate_trial_balance(summaries)
        if not result.is_balanced:
            logger.warning(
                "Trial balance is off by %d miliunits (debits %d, credits %d)",
                result.difference,
                result.total_debits,
                result.total_credits,
            )
        return result

    def account_ledger(
        self,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> AccountLedger:
        """Register of one account with running balances, drafts included.

        Running balances start from the opening balance and include activity
        before ``start_date``; only rows from ``start_date`` on are returned.
        """
        account = self.db.get_account(self.owner_id, account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        transactions = self.db.list_transactions(
            self.owner_id, end_date=end_date, account_ids=[account_id]
        )
        ledger = build_account_ledger(account, transactions)
        if start_date is None:
            return ledger
        entries = tuple(e for e in ledger.entries if e.transaction.date >= start_date)
        markers = tuple(
            m
            for m in ledger.month_end_balances
            if (m.year, m.month) >= (start_date.year, start_date.month)
        )
        return AccountLedger(account=account, entries=entries, month_end_balances=markers)
