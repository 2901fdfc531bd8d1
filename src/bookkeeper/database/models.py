"""SQLAlchemy models for bookkeeper database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Boolean,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Account(Base):
    """Ledger account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    code = Column(String, nullable=True, index=True)
    account_class = Column(String, nullable=True)
    account_type = Column(String, nullable=False, default="neutral")
    is_open = Column(Boolean, nullable=False, default=True)
    is_read_only = Column(Boolean, nullable=False, default=False)
    # Miliunits
    opening_balance = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class Transaction(Base):
    """Transaction model; amounts are integer miliunits."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Integer, nullable=False)
    payee = Column(String, nullable=True)
    payee_customer_id = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    credit_account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    debit_account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    status = Column(String, nullable=False, default="draft")
    status_changed_at = Column(DateTime, default=_utcnow, nullable=False)
    status_changed_by = Column(String, nullable=True)
    split_group_id = Column(String, nullable=True, index=True)
    split_type = Column(String, nullable=True)
    closing_period_id = Column(
        Integer, ForeignKey("accounting_periods.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        Index("ix_transactions_owner_date", "owner_id", "date"),
        Index("ix_transactions_status", "status"),
    )

    # Relationships
    status_history = relationship(
        "TransactionStatusHistory", back_populates="transaction", cascade="all, delete-orphan"
    )
    documents = relationship("Document", back_populates="transaction", cascade="all, delete-orphan")


class TransactionStatusHistory(Base):
    """Append-only status transition log."""

    __tablename__ = "transaction_status_history"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True)
    from_status = Column(String, nullable=True)
    to_status = Column(String, nullable=False)
    changed_at = Column(DateTime, default=_utcnow, nullable=False)
    changed_by = Column(String, nullable=False)
    notes = Column(String, nullable=True)

    transaction = relationship("Transaction", back_populates="status_history")


class AccountingPeriod(Base):
    """Accounting period model."""

    __tablename__ = "accounting_periods"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="open")
    closed_at = Column(DateTime, nullable=True)
    closed_by = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class Settings(Base):
    """Per-owner settings; the row also serves as the owner's write lock."""

    __tablename__ = "settings"

    owner_id = Column(String, primary_key=True)
    double_entry_mode = Column(Boolean, nullable=False, default=False)
    auto_draft_to_pending = Column(Boolean, nullable=False, default=False)
    min_required_documents = Column(Integer, nullable=False, default=0)
    # Comma separated condition names
    reconciliation_conditions = Column(String, nullable=False, default="hasReceipt,requiredDocuments")
    lock_version = Column(Integer, nullable=False, default=0)


class DocumentType(Base):
    """Document type model."""

    __tablename__ = "document_types"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    is_required = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class Document(Base):
    """Metadata of a document attached to a transaction."""

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type_id = Column(Integer, ForeignKey("document_types.id", ondelete="RESTRICT"), nullable=False)
    file_name = Column(String, nullable=False)
    uploaded_by = Column(String, nullable=False)
    uploaded_at = Column(DateTime, default=_utcnow, nullable=False)
    is_deleted = Column(Boolean, nullable=False, default=False)

    transaction = relationship("Transaction", back_populates="documents")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
