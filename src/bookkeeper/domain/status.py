"""Transaction status state machine and status service.

Statuses move strictly forward one step at a time:
draft -> pending -> completed -> reconciled. The only way back is
unreconcile (reconciled -> completed), which needs a reason.
"""

import logging
from datetime import datetime, UTC
from typing import Optional

from bookkeeper.database.base import Database
from bookkeeper.domain.documents import DocumentService
from bookkeeper.domain.entities import (
    ReconciliationCheck,
    ReconciliationCondition,
    Settings,
    SplitType,
    StatusHistoryEntry,
    Transaction,
    TransactionStatus,
    TransitionResult,
)
from bookkeeper.domain.errors import (
    ConcurrentModificationError,
    NotFoundError,
    StateConflictError,
    ValidationError,
    status_conflict_message,
    transaction_not_found,
)
from bookkeeper.domain.settings import (
    CONDITION_HAS_RECEIPT,
    CONDITION_IS_APPROVED,
    CONDITION_IS_REVIEWED,
    CONDITION_REQUIRED_DOCUMENTS,
    DEFAULT_OWNER,
    SettingsService,
)

logger = logging.getLogger(__name__)

STATUS_ORDER = (
    TransactionStatus.DRAFT,
    TransactionStatus.PENDING,
    TransactionStatus.COMPLETED,
    TransactionStatus.RECONCILED,
)

MAX_REASON_LENGTH = 500

AUTO_STATUS_NOTE = "Automatic status change"
PAYEE_REQUIRED_MESSAGE = "Please select a payee or customer to complete the transaction."


def next_status(current: TransactionStatus) -> Optional[TransactionStatus]:
    """Return the status after ``current``, or None at the end of the line."""
    index = STATUS_ORDER.index(current)
    if index + 1 >= len(STATUS_ORDER):
        return None
    return STATUS_ORDER[index + 1]


def can_advance(current: TransactionStatus) -> bool:
    return next_status(current) is not None


def advance(current: TransactionStatus) -> TransactionStatus:
    """Return the next status.

    Raises:
        StateConflictError: If ``current`` is reconciled
    """
    following = next_status(current)
    if following is None:
        raise StateConflictError(
            "Transaction is already reconciled. Unreconcile it to make changes.",
            current_state=current.value,
        )
    return following


def require_unreconcile(current: TransactionStatus, reason: Optional[str]) -> str:
    """Validate an unreconcile request and return the cleaned reason.

    Raises:
        StateConflictError: If ``current`` is not reconciled
        ValidationError: If the reason is empty or longer than 500 characters
    """
    if current != TransactionStatus.RECONCILED:
        raise StateConflictError(
            f"Only reconciled transactions can be unreconciled (status is {current.value}).",
            current_state=current.value,
        )
    cleaned = (reason or "").strip()
    if not cleaned:
        raise ValidationError("A reason is required to unreconcile a transaction.")
    if len(cleaned) > MAX_REASON_LENGTH:
        raise ValidationError(f"Reason must be at most {MAX_REASON_LENGTH} characters.")
    return cleaned


def has_required_payee(txn: Transaction) -> bool:
    return bool((txn.payee or "").strip()) or bool(txn.payee_customer_id)


def ready_for_pending(txn: Transaction, settings: Settings) -> bool:
    """Whether a draft has every field needed to leave draft."""
    if not has_required_payee(txn):
        return False
    if settings.double_entry_mode and txn.split_type != SplitType.PARENT:
        return txn.is_double_entry
    return True


class StatusService:
    """Service applying status transitions with history and guards."""

    def __init__(self, db: Database, owner_id: str = DEFAULT_OWNER):
        """Initialize status service.

        Args:
            db: Database instance
            owner_id: Owning identity every query is scoped to
        """
        self.db = db
        self.owner_id = owner_id

    def _get(self, transaction_id: int) -> Transaction:
        txn = self.db.get_transaction(self.owner_id, transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def get_history(self, transaction_id: int) -> list[StatusHistoryEntry]:
        """Status history of a transaction, newest first."""
        self._get(transaction_id)
        history = self.db.list_status_history(self.owner_id, transaction_id)
        return list(reversed(history))

    def check_reconciliation(self, transaction_id: int) -> ReconciliationCheck:
        """Evaluate every configured reconciliation condition for a transaction.

        Unknown or unsupported conditions (review and approval tracking) are
        reported as unmet rather than skipped.
        """
        txn = self._get(transaction_id)
        settings = SettingsService(self.db, self.owner_id).get_settings()
        documents = DocumentService(self.db, self.owner_id)

        conditions = []
        for name in settings.reconciliation_conditions:
            if name == CONDITION_HAS_RECEIPT:
                met = bool(documents.list_documents(txn.id))
                conditions.append(
                    ReconciliationCondition(
                        name=name,
                        met=met,
                        message="" if met else "At least one document must be attached.",
                    )
                )
            elif name == CONDITION_REQUIRED_DOCUMENTS:
                completeness = documents.check_completeness(txn.id)
                message = ""
                if not completeness.is_complete:
                    message = (
                        f"{completeness.missing} more required document type(s) must be "
                        f"attached ({completeness.attached_count} of {completeness.threshold})."
                    )
                conditions.append(
                    ReconciliationCondition(
                        name=name, met=completeness.is_complete, message=message
                    )
                )
            elif name == CONDITION_IS_REVIEWED:
                conditions.append(
                    ReconciliationCondition(
                        name=name, met=False, message="Review tracking is not available."
                    )
                )
            elif name == CONDITION_IS_APPROVED:
                conditions.append(
                    ReconciliationCondition(
                        name=name, met=False, message="Approval tracking is not available."
                    )
                )
            else:
                conditions.append(
                    ReconciliationCondition(
                        name=name, met=False, message=f"Unknown condition '{name}'."
                    )
                )

        if txn.split_type == SplitType.PARENT and txn.split_group_id:
            children = [
                t
                for t in self.db.list_transactions(
                    self.owner_id, split_group_id=txn.split_group_id
                )
                if t.split_type == SplitType.CHILD
            ]
            met = all(c.status == TransactionStatus.RECONCILED for c in children)
            conditions.append(
                ReconciliationCondition(
                    name="splitChildren",
                    met=met,
                    message="" if met else "All parts of the split must be reconciled first.",
                )
            )

        return ReconciliationCheck(
            allowed=all(c.met for c in conditions), conditions=tuple(conditions)
        )

    def advance(
        self,
        transaction_id: int,
        expected_status: Optional[TransactionStatus] = None,
        changed_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> TransitionResult:
        """Move a transaction one step forward.

        Args:
            transaction_id: Transaction to advance
            expected_status: Status the caller last saw; defaults to the stored one
            changed_by: Actor recorded in history; defaults to the owner
            notes: Optional history note

        Returns:
            TransitionResult, with ``blocked=True`` and the unmet conditions when
            reconciliation is not allowed yet

        Raises:
            NotFoundError: If the transaction does not exist
            StateConflictError: If the transaction is already reconciled
            ConcurrentModificationError: If the stored status is not ``expected_status``
            ValidationError: If a draft lacks the fields required to leave draft
            ClosedPeriodError: If the transaction is dated inside a closed period
        """
        txn = self._get(transaction_id)
        current = expected_status or txn.status
        if txn.status != current:
            raise ConcurrentModificationError(
                status_conflict_message(transaction_id, current.value, txn.status.value),
                current_state=txn.status.value,
            )
        target = advance(current)

        if current == TransactionStatus.DRAFT:
            settings = SettingsService(self.db, self.owner_id).get_settings()
            if not has_required_payee(txn):
                raise ValidationError(PAYEE_REQUIRED_MESSAGE)
            if not ready_for_pending(txn, settings):
                raise ValidationError(
                    "Both a debit and a credit account are required in double-entry mode."
                )

        if target == TransactionStatus.RECONCILED:
            check = self.check_reconciliation(transaction_id)
            if not check.allowed:
                logger.info(
                    "Reconciliation of transaction %s blocked: %s",
                    transaction_id,
                    "; ".join(check.unmet),
                )
                return TransitionResult(
                    transaction=txn,
                    from_status=current,
                    to_status=target,
                    blocked=True,
                    reasons=tuple(check.unmet),
                )

        updated = self.db.transition_status(
            self.owner_id,
            transaction_id,
            expected_status=current,
            new_status=target,
            changed_by=changed_by or self.owner_id,
            changed_at=datetime.now(UTC),
            notes=notes,
        )
        logger.info(
            "Transaction %s status %s -> %s", transaction_id, current.value, target.value
        )
        return TransitionResult(transaction=updated, from_status=current, to_status=target)

    def unreconcile(
        self, transaction_id: int, reason: str, changed_by: Optional[str] = None
    ) -> TransitionResult:
        """Move a reconciled transaction back to completed, recording the reason."""
        txn = self._get(transaction_id)
        cleaned = require_unreconcile(txn.status, reason)
        updated = self.db.transition_status(
            self.owner_id,
            transaction_id,
            expected_status=TransactionStatus.RECONCILED,
            new_status=TransactionStatus.COMPLETED,
            changed_by=changed_by or self.owner_id,
            changed_at=datetime.now(UTC),
            notes=f"Unreconciled: {cleaned}",
        )
        logger.info("Transaction %s unreconciled", transaction_id)
        return TransitionResult(
            transaction=updated,
            from_status=TransactionStatus.RECONCILED,
            to_status=TransactionStatus.COMPLETED,
        )

    def auto_promote(
        self, transaction_id: int, changed_by: Optional[str] = None
    ) -> Optional[Transaction]:
        """Promote a draft to pending when automatic promotion is on and it is ready.

        Returns:
            The promoted transaction, or None when nothing changed
        """
        settings = SettingsService(self.db, self.owner_id).get_settings()
        if not settings.auto_draft_to_pending:
            return None
        txn = self._get(transaction_id)
        if txn.status != TransactionStatus.DRAFT or not ready_for_pending(txn, settings):
            return None
        try:
            updated = self.db.transition_status(
                self.owner_id,
                transaction_id,
                expected_status=TransactionStatus.DRAFT,
                new_status=TransactionStatus.PENDING,
                changed_by=changed_by or self.owner_id,
                changed_at=datetime.now(UTC),
                notes=AUTO_STATUS_NOTE,
            )
        except ConcurrentModificationError:
            # Someone else moved it out of draft already.
            logger.debug("Transaction %s left draft concurrently", transaction_id)
            return None
        logger.info("Transaction %s automatically moved to pending", transaction_id)
        return updated
