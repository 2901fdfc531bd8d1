"""Tests for the SQLAlchemy Database implementation."""

import pytest
from datetime import date, datetime, UTC

from bookkeeper.domain import entities
from bookkeeper.domain.entities import NewTransaction, PeriodStatus, TransactionStatus
from bookkeeper.domain.errors import (
    ClosedPeriodError,
    ConcurrentModificationError,
    DependencyError,
    NotFoundError,
    StateConflictError,
)

OWNER = "default"


@pytest.fixture
def cash_id(temp_db):
    return temp_db.create_account(OWNER, name="Cash", code="11")


def _insert(temp_db, account_id, day=date(2024, 1, 15), **overrides):
    values = dict(date=day, amount=1000, status=TransactionStatus.DRAFT, account_id=account_id)
    values.update(overrides)
    [txn_id] = temp_db.create_transactions(OWNER, [NewTransaction(**values)], changed_by="tester")
    return txn_id


class TestDatabaseInterface:
    """Tests to verify the Database interface returns domain models."""

    def test_get_account_returns_domain_model(self, temp_db, cash_id):
        """Test that get_account returns a domain Account entity."""
        account = temp_db.get_account(OWNER, cash_id)

        assert isinstance(account, entities.Account)
        assert account.name == "Cash"
        assert account.account_class is None
        assert account.account_type == entities.AccountType.NEUTRAL
        assert isinstance(account.created_at, datetime)

    def test_accounts_are_owner_scoped(self, temp_db, cash_id):
        assert temp_db.get_account("someone-else", cash_id) is None
        assert temp_db.list_accounts("someone-else") == []

    def test_transaction_creation_records_history(self, temp_db, cash_id):
        txn_id = _insert(temp_db, cash_id)

        txn = temp_db.get_transaction(OWNER, txn_id)
        assert isinstance(txn, entities.Transaction)
        assert txn.status == TransactionStatus.DRAFT
        [entry] = temp_db.list_status_history(OWNER, txn_id)
        assert entry.from_status is None
        assert entry.to_status == TransactionStatus.DRAFT
        assert entry.changed_by == "tester"

    def test_delete_account_with_transactions(self, temp_db, cash_id):
        _insert(temp_db, cash_id)
        with pytest.raises(DependencyError):
            temp_db.delete_account(OWNER, cash_id)


class TestStatusCompareAndSet:
    def test_transition_appends_history(self, temp_db, cash_id):
        txn_id = _insert(temp_db, cash_id)

        txn = temp_db.transition_status(
            OWNER,
            txn_id,
            expected_status=TransactionStatus.DRAFT,
            new_status=TransactionStatus.PENDING,
            changed_by="tester",
            changed_at=datetime.now(UTC),
        )

        assert txn.status == TransactionStatus.PENDING
        assert len(temp_db.list_status_history(OWNER, txn_id)) == 2

    def test_stale_expected_status(self, temp_db, cash_id):
        txn_id = _insert(temp_db, cash_id, status=TransactionStatus.PENDING)

        with pytest.raises(ConcurrentModificationError) as excinfo:
            temp_db.transition_status(
                OWNER,
                txn_id,
                expected_status=TransactionStatus.DRAFT,
                new_status=TransactionStatus.PENDING,
                changed_by="tester",
                changed_at=datetime.now(UTC),
            )

        assert excinfo.value.current_state == "pending"
        assert len(temp_db.list_status_history(OWNER, txn_id)) == 1

    def test_missing_transaction(self, temp_db):
        with pytest.raises(NotFoundError):
            temp_db.transition_status(
                OWNER,
                404,
                expected_status=TransactionStatus.DRAFT,
                new_status=TransactionStatus.PENDING,
                changed_by="tester",
                changed_at=datetime.now(UTC),
            )


class TestClosedPeriodGuard:
    @pytest.fixture
    def closed_january(self, temp_db):
        period_id = temp_db.create_period(OWNER, date(2024, 1, 1), date(2024, 1, 31))
        temp_db.set_period_status(
            OWNER, period_id, expected_status=PeriodStatus.OPEN, new_status=PeriodStatus.CLOSED
        )
        return period_id

    def test_insert_rejected(self, temp_db, cash_id, closed_january):
        with pytest.raises(ClosedPeriodError) as excinfo:
            _insert(temp_db, cash_id, day=date(2024, 1, 31))
        assert excinfo.value.period.id == closed_january
        assert temp_db.list_transactions(OWNER) == []

    def test_batch_is_all_or_nothing(self, temp_db, cash_id, closed_january):
        batch = [
            NewTransaction(date=date(2024, 2, 1), amount=1, status=TransactionStatus.DRAFT, account_id=cash_id),
            NewTransaction(date=date(2024, 1, 2), amount=1, status=TransactionStatus.DRAFT, account_id=cash_id),
        ]
        with pytest.raises(ClosedPeriodError):
            temp_db.create_transactions(OWNER, batch, changed_by="tester")
        assert temp_db.list_transactions(OWNER) == []

    def test_update_out_of_closed_period_rejected(self, temp_db, cash_id, closed_january):
        txn_id = _insert(temp_db, cash_id, day=date(2024, 2, 10))
        with pytest.raises(ClosedPeriodError):
            temp_db.update_transaction(OWNER, txn_id, {"date": date(2024, 1, 10)})
        assert temp_db.get_transaction(OWNER, txn_id).date == date(2024, 2, 10)

    def test_status_transition_rejected(self, temp_db, cash_id):
        txn_id = _insert(temp_db, cash_id, day=date(2024, 1, 20))
        period_id = temp_db.create_period(OWNER, date(2024, 1, 1), date(2024, 1, 31))
        temp_db.set_period_status(
            OWNER, period_id, expected_status=PeriodStatus.OPEN, new_status=PeriodStatus.CLOSED
        )

        with pytest.raises(ClosedPeriodError):
            temp_db.transition_status(
                OWNER,
                txn_id,
                expected_status=TransactionStatus.DRAFT,
                new_status=TransactionStatus.PENDING,
                changed_by="tester",
                changed_at=datetime.now(UTC),
            )
        assert temp_db.get_transaction(OWNER, txn_id).status == TransactionStatus.DRAFT

    def test_period_status_compare_and_set(self, temp_db, closed_january):
        with pytest.raises(StateConflictError):
            temp_db.set_period_status(
                OWNER,
                closed_january,
                expected_status=PeriodStatus.OPEN,
                new_status=PeriodStatus.CLOSED,
            )
        period = temp_db.get_period(OWNER, closed_january)
        assert period.status == PeriodStatus.CLOSED
        assert period.closed_at is not None


class TestSettings:
    def test_missing_settings_return_none(self, temp_db):
        assert temp_db.get_settings(OWNER) is None

    def test_save_and_load(self, temp_db):
        temp_db.save_settings(
            entities.Settings(owner_id=OWNER, double_entry_mode=True, reconciliation_conditions=())
        )
        stored = temp_db.get_settings(OWNER)
        assert stored.double_entry_mode
        assert stored.reconciliation_conditions == ()
