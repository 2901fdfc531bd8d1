"""Tests for period closing and the closing workflow."""

from datetime import date

import pytest

from bookkeeper.domain.closing import (
    RETAINED_EARNINGS_PAYEE,
    ClosingStep,
    ClosingWorkflow,
    closing_note,
)
from bookkeeper.domain.entities import PeriodStatus, TransactionStatus
from bookkeeper.domain.errors import (
    ClosedPeriodError,
    DependencyError,
    StateConflictError,
    ValidationError,
)

YEAR_START = date(2024, 1, 1)
YEAR_END = date(2024, 12, 31)


@pytest.fixture
def year(chart, post, transaction_service):
    """Sales of 100.000 and rent of 40.000 in 2024."""
    post(chart["112"], chart["41"], 100000, day=date(2024, 5, 1), payee="Customer")
    post(chart["61"], chart["112"], 40000, day=date(2024, 6, 1), payee="Landlord")
    transaction_service.create_transaction(
        date=date(2024, 7, 1),
        amount=999,
        payee="Shop",
        debit_account_id=chart["62"],
        credit_account_id=chart["112"],
    )
    return chart


@pytest.fixture
def fy2024(period_service):
    return period_service.create_period(YEAR_START, YEAR_END)


class TestPreview:
    def test_net_result(self, closing_service, year):
        preview = closing_service.preview_closing(YEAR_START, YEAR_END, year["32"], year["31"])

        assert preview.total_income == 100000
        assert preview.total_expenses == 40000
        assert preview.net_result == 60000
        assert [a.account_id for a in preview.income_accounts] == [year["41"]]
        # Supplies only has a draft
        assert [a.account_id for a in preview.expense_accounts] == [year["61"]]
        assert preview.retained_earnings_account.id == year["31"]

    def test_loss(self, closing_service, chart, post):
        post(chart["61"], chart["112"], 7000)
        preview = closing_service.preview_closing(YEAR_START, YEAR_END, chart["32"])
        assert preview.net_result == -7000

    def test_read_only_target_is_rejected(self, closing_service, year):
        with pytest.raises(ValidationError, match="read-only"):
            closing_service.preview_closing(YEAR_START, YEAR_END, year["3"])


class TestClosingEntries:
    def test_double_entry_closing(
        self, closing_service, report_service, transaction_service, year, fy2024, double_entry
    ):
        ids = closing_service.create_closing_entries(fy2024, year["32"], year["31"])

        entries = [transaction_service.get_transaction(i) for i in ids]
        assert len(entries) == 3
        assert {e.split_group_id for e in entries} == {entries[0].split_group_id}
        assert all(e.closing_period_id == fy2024 for e in entries)
        assert all(e.date == YEAR_END for e in entries)
        assert all(e.status == TransactionStatus.COMPLETED for e in entries)
        assert entries[0].notes == closing_note(YEAR_START, YEAR_END)
        sweep = entries[-1]
        assert sweep.payee == RETAINED_EARNINGS_PAYEE
        assert (sweep.debit_account_id, sweep.credit_account_id, sweep.amount) == (
            year["32"],
            year["31"],
            60000,
        )

        statement = report_service.income_statement(YEAR_START, YEAR_END)
        assert statement.total_income == 0
        assert statement.total_expenses == 0
        sheet = report_service.balance_sheet(YEAR_END)
        assert sheet.is_balanced
        assert _lines(sheet.equity_accounts)["31"] == 60000
        assert _lines(sheet.equity_accounts)["32"] == 0

    def test_single_entry_closing_without_retained_earnings(
        self, closing_service, report_service, transaction_service, year, fy2024
    ):
        ids = closing_service.create_closing_entries(fy2024, year["32"])

        entries = [transaction_service.get_transaction(i) for i in ids]
        assert [e.account_id for e in entries] == [year["41"], year["61"], year["32"]]
        assert [e.amount for e in entries] == [100000, -40000, -60000]
        assert report_service.income_statement(YEAR_START, YEAR_END).net_income == 0
        sheet = report_service.balance_sheet(YEAR_END)
        assert _lines(sheet.equity_accounts)["32"] == 60000
        assert sheet.is_balanced

    def test_single_entry_sweep_to_retained_earnings(
        self, closing_service, report_service, year, fy2024
    ):
        ids = closing_service.create_closing_entries(fy2024, year["32"], year["31"])

        assert len(ids) == 5
        equity = _lines(report_service.balance_sheet(YEAR_END).equity_accounts)
        assert equity["31"] == 60000
        assert equity["32"] == 0

    def test_entries_can_be_dated_inside_the_period(
        self, closing_service, transaction_service, year, fy2024
    ):
        ids = closing_service.create_closing_entries(
            fy2024, year["32"], closing_date=date(2024, 12, 30)
        )
        assert transaction_service.get_transaction(ids[0]).date == date(2024, 12, 30)

        with pytest.raises(StateConflictError, match="already exist"):
            closing_service.create_closing_entries(fy2024, year["32"])

    def test_draft_entries_are_rejected(self, closing_service, year, fy2024):
        with pytest.raises(ValidationError, match="cannot be drafts"):
            closing_service.create_closing_entries(
                fy2024, year["32"], status=TransactionStatus.DRAFT
            )
        assert closing_service.existing_entries(fy2024) == []

    def test_closing_date_outside_period(self, closing_service, year, fy2024):
        with pytest.raises(ValidationError, match="within the period"):
            closing_service.create_closing_entries(fy2024, year["32"], closing_date=date(2025, 1, 1))

    def test_nothing_to_close(self, closing_service, period_service, chart):
        period_id = period_service.create_period(date(2023, 1, 1), date(2023, 12, 31))
        with pytest.raises(ValidationError, match="No income or expense"):
            closing_service.create_closing_entries(period_id, chart["32"])
        assert closing_service.existing_entries(period_id) == []

    def test_closed_period_is_rejected(self, closing_service, period_service, year, fy2024):
        period_service.close_period(fy2024)
        with pytest.raises(StateConflictError):
            closing_service.create_closing_entries(fy2024, year["32"])

    def test_closing_entry_can_be_deleted_alone(
        self, closing_service, transaction_service, year, fy2024
    ):
        ids = closing_service.create_closing_entries(fy2024, year["32"])
        assert transaction_service.delete_transaction(ids[0]) == [ids[0]]
        assert set(closing_service.existing_entries(fy2024)) == set(ids[1:])

    def test_deleting_the_period_removes_its_entries(
        self, closing_service, period_service, transaction_service, report_service, year, fy2024
    ):
        ids = closing_service.create_closing_entries(fy2024, year["32"])

        assert period_service.delete_period(fy2024) == len(ids)

        assert all(transaction_service.get_transaction(i) is None for i in ids)
        statement = report_service.income_statement(YEAR_START, YEAR_END)
        assert statement.total_income == 100000

    def test_reconciled_entries_keep_the_period(
        self, closing_service, period_service, status_service, settings_service, year, fy2024
    ):
        settings_service.update_settings(reconciliation_conditions=[])
        ids = closing_service.create_closing_entries(fy2024, year["32"])
        status_service.advance(ids[0])

        with pytest.raises(DependencyError, match="Unreconcile"):
            period_service.delete_period(fy2024)
        assert period_service.get_period(fy2024) is not None
        assert set(closing_service.existing_entries(fy2024)) == set(ids)


def _lines(lines):
    return {line.code: line.balance for line in lines}


class TestClosingWorkflow:
    def test_run_closes_and_locks(self, temp_db, transaction_service, year, double_entry):
        workflow = ClosingWorkflow(temp_db, year["32"], year["31"])

        state = workflow.run(YEAR_START, YEAR_END, notes="FY 2024")

        assert state.step == ClosingStep.LOCKED
        assert state.period.status == PeriodStatus.CLOSED
        assert len(state.entry_ids) == 3
        assert state.preview.net_result == 60000
        with pytest.raises(ClosedPeriodError):
            transaction_service.create_transaction(
                date=date(2024, 8, 1), amount=1, account_id=year["111"]
            )

    def test_resume_after_entries(self, temp_db, year, double_entry):
        workflow = ClosingWorkflow(temp_db, year["32"], year["31"])
        period_id = workflow.open_period(YEAR_START, YEAR_END)
        entry_ids = workflow.create_entries(period_id)
        assert workflow.state(period_id).step == ClosingStep.ENTRIES_CREATED

        state = workflow.run(period_id=period_id)

        assert state.step == ClosingStep.LOCKED
        assert sorted(state.entry_ids) == sorted(entry_ids)
        assert state.preview is None

    def test_locked_period_is_left_alone(self, temp_db, year):
        workflow = ClosingWorkflow(temp_db, year["32"])
        first = workflow.run(YEAR_START, YEAR_END)
        again = workflow.run(period_id=first.period.id)
        assert again.step == ClosingStep.LOCKED
        assert again.entry_ids == first.entry_ids

    def test_empty_period(self, temp_db, period_service, chart):
        workflow = ClosingWorkflow(temp_db, chart["32"])

        with pytest.raises(ValidationError):
            workflow.run(date(2023, 1, 1), date(2023, 12, 31))
        [period] = period_service.list_periods()
        assert workflow.state(period.id).step == ClosingStep.OPENED

        state = workflow.run(period_id=period.id, skip_empty=True)
        assert state.step == ClosingStep.LOCKED
        assert state.entry_ids == ()

    def test_draft_entries_never_lock_the_period(self, temp_db, report_service, year):
        workflow = ClosingWorkflow(temp_db, year["32"], entry_status=TransactionStatus.DRAFT)

        with pytest.raises(ValidationError):
            workflow.run(YEAR_START, YEAR_END)

        [period] = workflow.periods.list_periods()
        assert workflow.state(period.id).step == ClosingStep.OPENED
        statement = report_service.income_statement(YEAR_START, YEAR_END)
        assert statement.total_income == 100000

    def test_needs_period_or_dates(self, temp_db, chart):
        with pytest.raises(ValidationError):
            ClosingWorkflow(temp_db, chart["32"]).run(start_date=YEAR_START)
