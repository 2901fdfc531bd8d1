"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic so domain code never handles ORM
objects.
"""

from typing import Optional

from bookkeeper.domain import entities as domain
from bookkeeper.database.models import (
    Account as ORMAccount,
    AccountingPeriod as ORMAccountingPeriod,
    Document as ORMDocument,
    DocumentType as ORMDocumentType,
    Settings as ORMSettings,
    Transaction as ORMTransaction,
    TransactionStatusHistory as ORMStatusHistory,
)


def _optional_status(value: Optional[str]) -> Optional[domain.TransactionStatus]:
    return domain.TransactionStatus(value) if value is not None else None


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        owner_id=orm_account.owner_id,
        name=orm_account.name,
        code=orm_account.code,
        account_class=(
            domain.AccountClass(orm_account.account_class) if orm_account.account_class else None
        ),
        account_type=domain.AccountType(orm_account.account_type or "neutral"),
        is_open=bool(orm_account.is_open),
        is_read_only=bool(orm_account.is_read_only),
        opening_balance=orm_account.opening_balance or 0,
        created_at=orm_account.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        owner_id=orm_transaction.owner_id,
        date=orm_transaction.date,
        amount=orm_transaction.amount,
        payee=orm_transaction.payee,
        payee_customer_id=orm_transaction.payee_customer_id,
        notes=orm_transaction.notes,
        account_id=orm_transaction.account_id,
        credit_account_id=orm_transaction.credit_account_id,
        debit_account_id=orm_transaction.debit_account_id,
        status=domain.TransactionStatus(orm_transaction.status),
        status_changed_at=orm_transaction.status_changed_at,
        status_changed_by=orm_transaction.status_changed_by,
        split_group_id=orm_transaction.split_group_id,
        split_type=(
            domain.SplitType(orm_transaction.split_type) if orm_transaction.split_type else None
        ),
        closing_period_id=orm_transaction.closing_period_id,
    )


def status_history_to_domain(orm_entry: ORMStatusHistory) -> domain.StatusHistoryEntry:
    """Convert SQLAlchemy status history row to domain entity."""
    return domain.StatusHistoryEntry(
        id=orm_entry.id,
        transaction_id=orm_entry.transaction_id,
        from_status=_optional_status(orm_entry.from_status),
        to_status=domain.TransactionStatus(orm_entry.to_status),
        changed_at=orm_entry.changed_at,
        changed_by=orm_entry.changed_by,
        notes=orm_entry.notes,
    )


def period_to_domain(orm_period: ORMAccountingPeriod) -> domain.AccountingPeriod:
    """Convert SQLAlchemy AccountingPeriod model to domain entity."""
    return domain.AccountingPeriod(
        id=orm_period.id,
        owner_id=orm_period.owner_id,
        start_date=orm_period.start_date,
        end_date=orm_period.end_date,
        status=domain.PeriodStatus(orm_period.status),
        closed_at=orm_period.closed_at,
        closed_by=orm_period.closed_by,
        notes=orm_period.notes,
        created_at=orm_period.created_at,
    )


def settings_to_domain(orm_settings: ORMSettings) -> domain.Settings:
    """Convert SQLAlchemy Settings model to domain Settings record."""
    raw_conditions = orm_settings.reconciliation_conditions or ""
    return domain.Settings(
        owner_id=orm_settings.owner_id,
        double_entry_mode=bool(orm_settings.double_entry_mode),
        auto_draft_to_pending=bool(orm_settings.auto_draft_to_pending),
        min_required_documents=orm_settings.min_required_documents or 0,
        reconciliation_conditions=tuple(c for c in raw_conditions.split(",") if c),
    )


def document_type_to_domain(orm_type: ORMDocumentType) -> domain.DocumentType:
    return domain.DocumentType(
        id=orm_type.id,
        owner_id=orm_type.owner_id,
        name=orm_type.name,
        description=orm_type.description,
        is_required=bool(orm_type.is_required),
        created_at=orm_type.created_at,
    )


def document_to_domain(orm_document: ORMDocument) -> domain.Document:
    return domain.Document(
        id=orm_document.id,
        owner_id=orm_document.owner_id,
        transaction_id=orm_document.transaction_id,
        document_type_id=orm_document.document_type_id,
        file_name=orm_document.file_name,
        uploaded_by=orm_document.uploaded_by,
        uploaded_at=orm_document.uploaded_at,
        is_deleted=bool(orm_document.is_deleted),
    )
