"""Shared domain error messages and error types."""

from typing import Optional, Sequence


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist for the owner."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class StateConflictError(DomainError):
    """Operation not allowed in the entity's current state."""

    def __init__(self, message: str, current_state: Optional[str] = None):
        super().__init__(message)
        self.current_state = current_state


class ConcurrentModificationError(StateConflictError):
    """Stored state changed between read and write; the caller should retry."""


class PeriodOverlapError(ValidationError):
    """Candidate period intersects one or more existing periods."""

    def __init__(self, message: str, conflicts: Sequence):
        super().__init__(message)
        self.conflicts = list(conflicts)


class ClosedPeriodError(ValidationError):
    """Transaction date falls inside a closed accounting period."""

    def __init__(self, message: str, period=None):
        super().__init__(message)
        self.period = period


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def period_not_found(period_id: int) -> str:
    """Return message for missing accounting period."""
    return f"Accounting period {period_id} not found"


def document_type_not_found(document_type_id: int) -> str:
    return f"Document type {document_type_id} not found"


def closed_period_message(start_date, end_date) -> str:
    """Return message for a mutation inside a closed period."""
    return (
        f"This date falls within a closed accounting period ({start_date.isoformat()} "
        f"to {end_date.isoformat()}). Transactions in closed periods cannot be "
        "created or modified."
    )


def status_conflict_message(transaction_id: int, expected: str, actual: str) -> str:
    return (
        f"Transaction {transaction_id} status changed concurrently "
        f"(expected '{expected}', found '{actual}'). Reload and retry."
    )


def account_delete_blocked(account_id: int, transaction_count: int) -> str:
    """Return message when account has dependent transactions."""
    return (
        f"Cannot delete account {account_id}: it has {transaction_count} "
        f"transaction{'s' if transaction_count != 1 else ''}. "
        "Please reassign or delete them first."
    )
