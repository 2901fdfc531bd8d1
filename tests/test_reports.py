"""Tests for ReportService."""

from datetime import date

import pytest

from bookkeeper.domain.entities import TransactionStatus
from bookkeeper.domain.errors import NotFoundError, ValidationError


@pytest.fixture
def books(account_service, transaction_service, chart, post):
    """Opening balances plus a few months of activity."""
    account_service.update_account(chart["112"], opening_balance=100000)
    account_service.update_account(chart["21"], opening_balance=60000)
    account_service.update_account(chart["31"], opening_balance=40000)

    post(chart["112"], chart["41"], 50000, day=date(2024, 3, 10), payee="Customer")
    post(chart["61"], chart["112"], 20000, day=date(2024, 3, 20), payee="Landlord")
    post(chart["111"], chart["112"], 5000, day=date(2024, 4, 2), payee="ATM")
    transaction_service.create_transaction(
        date=date(2024, 5, 1),
        amount=3000,
        payee="Shop",
        debit_account_id=chart["62"],
        credit_account_id=chart["111"],
        status=TransactionStatus.DRAFT,
    )
    return chart


def _lines_by_code(lines):
    return {line.code: line for line in lines}


class TestIncomeStatement:
    def test_totals_and_lines(self, report_service, books):
        statement = report_service.income_statement(date(2024, 1, 1), date(2024, 12, 31))

        assert statement.total_income == 50000
        assert statement.total_expenses == 20000
        assert statement.net_income == 30000
        income = _lines_by_code(statement.income_accounts)
        assert income["4"].balance == 50000
        assert income["4"].is_read_only
        assert income["41"].level == 1
        # Drafts never reach reports
        assert _lines_by_code(statement.expense_accounts)["62"].balance == 0

    def test_summary_only_lists_aggregates(self, report_service, books):
        statement = report_service.income_statement(
            date(2024, 1, 1), date(2024, 12, 31), summary_only=True
        )
        assert [line.code for line in statement.income_accounts] == ["4"]
        assert [line.code for line in statement.expense_accounts] == ["6"]
        assert statement.net_income == 30000

    def test_date_range_filters_activity(self, report_service, books):
        statement = report_service.income_statement(date(2024, 3, 15), date(2024, 3, 31))
        assert statement.total_income == 0
        assert statement.total_expenses == 20000

    def test_start_defaults_to_beginning_of_year(self, report_service, books):
        statement = report_service.income_statement(end_date=date(2024, 3, 31))
        assert statement.start_date == date(2024, 1, 1)

    def test_inverted_range(self, report_service, books):
        with pytest.raises(ValidationError):
            report_service.income_statement(date(2024, 3, 1), date(2024, 2, 1))


class TestBalanceSheet:
    def test_opening_balances_balance(self, report_service, books):
        sheet = report_service.balance_sheet(date(2024, 2, 28))

        assert sheet.totals.total_assets == 100000
        assert sheet.totals.liabilities_and_equity == 100000
        assert sheet.is_balanced
        assert sheet.difference == 0

    def test_unclosed_result_shows_as_difference(self, report_service, books):
        sheet = report_service.balance_sheet(date(2024, 12, 31))

        assets = _lines_by_code(sheet.asset_accounts)
        assert assets["112"].balance == 125000
        assert assets["11"].balance == 130000
        assert assets["1"].balance == 130000
        assert sheet.totals.total_liabilities == 60000
        assert sheet.totals.total_equity == 40000
        assert not sheet.is_balanced
        assert sheet.difference == 30000

    def test_closed_accounts_are_hidden(self, report_service, account_service, books):
        account_service.update_account(books["21"], is_open=False)
        sheet = report_service.balance_sheet(date(2024, 12, 31))
        assert "21" not in _lines_by_code(sheet.liability_accounts)
        assert sheet.totals.total_liabilities == 60000


class TestTrialBalance:
    def test_balanced_with_opening_balances(self, report_service, books):
        trial = report_service.trial_balance(end_date=date(2024, 12, 31))
        assert trial.total_debits == 150000
        assert trial.total_credits == 150000
        assert trial.is_balanced

    def test_start_date_excludes_opening_balances(self, report_service, books):
        trial = report_service.trial_balance(date(2024, 4, 1), date(2024, 12, 31))
        assert trial.total_debits == 5000
        assert trial.total_credits == 5000

    def test_account_balances_roll_up(self, report_service, books):
        balances = {s.code: s for s in report_service.account_balances(end_date=date(2024, 12, 31))}
        assert balances["1"].balance == 130000
        assert balances["112"].debit_total == 50000
        assert balances["112"].credit_total == 25000

        postable = report_service.account_balances(include_read_only=False)
        assert "1" not in {s.code for s in postable}


class TestAccountLedger:
    def test_start_date_keeps_running_balance(self, report_service, books):
        ledger = report_service.account_ledger(books["112"], start_date=date(2024, 3, 15))

        assert [e.transaction.date for e in ledger.entries] == [date(2024, 4, 2), date(2024, 3, 20)]
        assert [e.balance for e in ledger.entries] == [125000, 130000]
        assert ledger.entries[1].credit_amount == 20000
        assert ledger.closing_balance == 125000

    def test_drafts_are_listed_without_moving_balance(self, report_service, books):
        ledger = report_service.account_ledger(books["111"])
        newest = ledger.entries[0]
        assert newest.transaction.status == TransactionStatus.DRAFT
        assert newest.balance == 5000

    def test_unknown_account(self, report_service, books):
        with pytest.raises(NotFoundError):
            report_service.account_ledger(999)
