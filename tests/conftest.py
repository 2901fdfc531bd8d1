"""Shared pytest fixtures for bookkeeper tests."""

import tempfile
import os
from datetime import date, datetime, UTC

import pytest

from bookkeeper.database.factories import create_sqlite_database
from bookkeeper.domain.account import AccountService
from bookkeeper.domain.closing import ClosingService
from bookkeeper.domain.documents import DocumentService
from bookkeeper.domain.entities import (
    Account,
    AccountClass,
    AccountType,
    Transaction,
    TransactionStatus,
)
from bookkeeper.domain.period import PeriodService
from bookkeeper.domain.reports import ReportService
from bookkeeper.domain.settings import SettingsService
from bookkeeper.domain.status import StatusService
from bookkeeper.domain.transaction import TransactionService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for CLI tests
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    return AccountService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    return TransactionService(temp_db)


@pytest.fixture
def status_service(temp_db):
    return StatusService(temp_db)


@pytest.fixture
def period_service(temp_db):
    return PeriodService(temp_db)


@pytest.fixture
def report_service(temp_db):
    return ReportService(temp_db)


@pytest.fixture
def closing_service(temp_db):
    return ClosingService(temp_db)


@pytest.fixture
def settings_service(temp_db):
    return SettingsService(temp_db)


@pytest.fixture
def document_service(temp_db):
    return DocumentService(temp_db)


@pytest.fixture
def chart(account_service):
    """Create a small chart of accounts and return account IDs keyed by code."""
    rows = [
        {"name": "Assets", "code": "1", "account_class": AccountClass.ASSET, "is_read_only": True},
        {"name": "Current assets", "code": "11", "account_class": AccountClass.ASSET, "is_read_only": True},
        {"name": "Cash", "code": "111", "account_class": AccountClass.ASSET},
        {"name": "Bank", "code": "112", "account_class": AccountClass.ASSET},
        {"name": "Liabilities", "code": "2", "account_class": AccountClass.LIABILITY, "is_read_only": True},
        {"name": "Loans", "code": "21", "account_class": AccountClass.LIABILITY},
        {"name": "Equity", "code": "3", "account_class": AccountClass.EQUITY, "is_read_only": True},
        {"name": "Retained earnings", "code": "31", "account_class": AccountClass.EQUITY},
        {"name": "Profit and loss", "code": "32", "account_class": AccountClass.EQUITY},
        {"name": "Income", "code": "4", "account_class": AccountClass.INCOME, "is_read_only": True},
        {"name": "Sales", "code": "41", "account_class": AccountClass.INCOME},
        {"name": "Expenses", "code": "6", "account_class": AccountClass.EXPENSE, "is_read_only": True},
        {"name": "Rent", "code": "61", "account_class": AccountClass.EXPENSE},
        {"name": "Supplies", "code": "62", "account_class": AccountClass.EXPENSE},
    ]
    account_service.create_accounts(rows)
    return {acc.code: acc.id for acc in account_service.list_accounts()}


@pytest.fixture
def double_entry(settings_service):
    """Switch the default owner to double-entry mode."""
    return settings_service.update_settings(double_entry_mode=True)


@pytest.fixture
def post(transaction_service):
    """Create a completed double-entry transaction (amount in miliunits)."""

    def _post(debit_id, credit_id, amount, day=date(2024, 6, 15), payee="Test payee", **kwargs):
        kwargs.setdefault("status", TransactionStatus.COMPLETED)
        return transaction_service.create_transaction(
            date=day,
            amount=amount,
            payee=payee,
            debit_account_id=debit_id,
            credit_account_id=credit_id,
            **kwargs,
        )

    return _post


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


def make_account(
    account_id=1,
    code=None,
    account_class=AccountClass.ASSET,
    account_type=AccountType.NEUTRAL,
    is_read_only=False,
    is_open=True,
    opening_balance=0,
    name=None,
):
    """Build an Account entity without a database."""
    return Account(
        id=account_id,
        owner_id="default",
        name=name or f"Account {account_id}",
        code=code,
        account_class=account_class,
        account_type=account_type,
        is_open=is_open,
        is_read_only=is_read_only,
        opening_balance=opening_balance,
        created_at=datetime.now(UTC),
    )


def make_transaction(
    transaction_id=1,
    amount=0,
    day=date(2024, 1, 15),
    account_id=None,
    credit_account_id=None,
    debit_account_id=None,
    status=TransactionStatus.COMPLETED,
    split_type=None,
    payee="Payee",
):
    """Build a Transaction entity without a database."""
    return Transaction(
        id=transaction_id,
        owner_id="default",
        date=day,
        amount=amount,
        payee=payee,
        payee_customer_id=None,
        notes=None,
        account_id=account_id,
        credit_account_id=credit_account_id,
        debit_account_id=debit_account_id,
        status=status,
        status_changed_at=datetime.now(UTC),
        status_changed_by="default",
        split_type=split_type,
    )
