"""Abstract database interface.

Every operation is scoped to an owner. Operations that must be atomic with
respect to concurrent writers (period creation, transaction mutation inside
a possibly closed period, status transitions) perform their checks and
writes in a single database transaction inside the implementation.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional
from datetime import date, datetime

# Import entities directly to avoid circular import through domain/__init__.py
from bookkeeper.domain.entities import (
    Account,
    AccountClass,
    AccountType,
    AccountingPeriod,
    Document,
    DocumentType,
    NewTransaction,
    PeriodStatus,
    Settings,
    StatusHistoryEntry,
    Transaction,
    TransactionStatus,
)


class Database(ABC):
    """Abstract database interface for bookkeeper."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        owner_id: str,
        name: str,
        code: Optional[str] = None,
        account_class: Optional[AccountClass] = None,
        account_type: AccountType = AccountType.NEUTRAL,
        is_open: bool = True,
        is_read_only: bool = False,
        opening_balance: int = 0,
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, owner_id: str, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(
        self,
        owner_id: str,
        account_classes: Optional[Iterable[AccountClass]] = None,
        include_closed: bool = True,
    ) -> list[Account]:
        """List accounts ordered by code, then name."""
        pass

    @abstractmethod
    def update_account(self, owner_id: str, account_id: int, changes: dict[str, Any]) -> None:
        """Update account columns named in ``changes``."""
        pass

    @abstractmethod
    def set_accounts_open(self, owner_id: str, account_ids: Iterable[int]) -> None:
        """Mark the given accounts as open."""
        pass

    @abstractmethod
    def delete_account(self, owner_id: str, account_id: int) -> None:
        """Delete an account that has no transactions."""
        pass

    @abstractmethod
    def get_account_transaction_count(self, owner_id: str, account_id: int) -> int:
        """Count transactions posting to an account on any side."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transactions(
        self,
        owner_id: str,
        transactions: list[NewTransaction],
        changed_by: str,
        history_note: Optional[str] = None,
    ) -> list[int]:
        """Insert transactions atomically, recording an initial status history row for each.

        Raises:
            ClosedPeriodError: If any date falls inside a closed period
        """
        pass

    @abstractmethod
    def get_transaction(self, owner_id: str, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def update_transaction(
        self,
        owner_id: str,
        transaction_id: int,
        changes: dict[str, Any],
        expected_status: Optional[TransactionStatus] = None,
    ) -> Transaction:
        """Update transaction columns named in ``changes``.

        Raises:
            ClosedPeriodError: If the old or new date is inside a closed period
            ConcurrentModificationError: If the status is no longer ``expected_status``
        """
        pass

    @abstractmethod
    def delete_transactions(self, owner_id: str, transaction_ids: Iterable[int]) -> None:
        """Delete transactions atomically, with their history and documents.

        Raises:
            ClosedPeriodError: If any date falls inside a closed period
        """
        pass

    @abstractmethod
    def list_transactions(
        self,
        owner_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_ids: Optional[Iterable[int]] = None,
        statuses: Optional[Iterable[TransactionStatus]] = None,
        exclude_drafts: bool = False,
        split_group_id: Optional[str] = None,
        closing_period_id: Optional[int] = None,
    ) -> list[Transaction]:
        """List transactions newest first with optional filters.

        ``account_ids`` matches transactions touching any of the accounts
        through the legacy, credit or debit column.
        """
        pass

    @abstractmethod
    def transition_status(
        self,
        owner_id: str,
        transaction_id: int,
        expected_status: TransactionStatus,
        new_status: TransactionStatus,
        changed_by: str,
        changed_at: datetime,
        notes: Optional[str] = None,
    ) -> Transaction:
        """Compare-and-set a transaction status and append a history row.

        Raises:
            ConcurrentModificationError: If the stored status differs from ``expected_status``
            ClosedPeriodError: If the transaction is dated inside a closed period
        """
        pass

    @abstractmethod
    def list_status_history(self, owner_id: str, transaction_id: int) -> list[StatusHistoryEntry]:
        """Status history of a transaction, oldest first."""
        pass

    # Accounting period operations
    @abstractmethod
    def create_period(
        self, owner_id: str, start_date: date, end_date: date, notes: Optional[str] = None
    ) -> int:
        """Create an open period unless it overlaps an existing one.

        Raises:
            PeriodOverlapError: Carrying every conflicting period
        """
        pass

    @abstractmethod
    def get_period(self, owner_id: str, period_id: int) -> Optional[AccountingPeriod]:
        """Get accounting period by ID."""
        pass

    @abstractmethod
    def list_periods(
        self, owner_id: str, status: Optional[PeriodStatus] = None
    ) -> list[AccountingPeriod]:
        """List accounting periods ordered by start date, newest first."""
        pass

    @abstractmethod
    def find_overlapping_periods(
        self, owner_id: str, start_date: date, end_date: date
    ) -> list[AccountingPeriod]:
        """Periods whose range intersects the inclusive range given."""
        pass

    @abstractmethod
    def get_closed_period_for_date(self, owner_id: str, day: date) -> Optional[AccountingPeriod]:
        """Closed period containing ``day``, if any."""
        pass

    @abstractmethod
    def set_period_status(
        self,
        owner_id: str,
        period_id: int,
        expected_status: PeriodStatus,
        new_status: PeriodStatus,
        changed_by: Optional[str] = None,
        changed_at: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> AccountingPeriod:
        """Compare-and-set a period status.

        Raises:
            StateConflictError: If the period is not in ``expected_status``
        """
        pass

    @abstractmethod
    def delete_period(self, owner_id: str, period_id: int) -> int:
        """Delete an open period and its closing entries. Returns the entry count."""
        pass

    # Settings operations
    @abstractmethod
    def get_settings(self, owner_id: str) -> Optional[Settings]:
        """Get settings record for an owner."""
        pass

    @abstractmethod
    def save_settings(self, settings: Settings) -> None:
        """Insert or replace settings record."""
        pass

    # Document operations
    @abstractmethod
    def create_document_type(
        self, owner_id: str, name: str, description: Optional[str] = None, is_required: bool = False
    ) -> int:
        """Create a document type. Returns document type ID."""
        pass

    @abstractmethod
    def get_document_type(self, owner_id: str, document_type_id: int) -> Optional[DocumentType]:
        pass

    @abstractmethod
    def list_document_types(self, owner_id: str, required_only: bool = False) -> list[DocumentType]:
        pass

    @abstractmethod
    def create_document(
        self,
        owner_id: str,
        transaction_id: int,
        document_type_id: int,
        file_name: str,
        uploaded_by: str,
    ) -> int:
        """Attach document metadata to a transaction. Returns document ID."""
        pass

    @abstractmethod
    def get_document(self, owner_id: str, document_id: int) -> Optional[Document]:
        pass

    @abstractmethod
    def mark_document_deleted(self, owner_id: str, document_id: int) -> None:
        """Soft-delete a document."""
        pass

    @abstractmethod
    def list_documents(
        self, owner_id: str, transaction_id: int, include_deleted: bool = False
    ) -> list[Document]:
        pass
