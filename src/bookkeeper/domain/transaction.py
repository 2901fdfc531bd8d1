"""Transaction domain service."""

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Iterable, Optional

from bookkeeper.database.base import Database
from bookkeeper.domain.account import AccountService
from bookkeeper.domain.entities import (
    Account,
    AccountType,
    NewTransaction,
    NormalBalance,
    Settings,
    SplitType,
    Transaction as TransactionEntity,
    TransactionStatus,
)
from bookkeeper.domain.errors import (
    NotFoundError,
    StateConflictError,
    ValidationError,
    account_not_found,
    transaction_not_found,
)
from bookkeeper.domain.settings import DEFAULT_OWNER, SettingsService
from bookkeeper.domain.status import PAYEE_REQUIRED_MESSAGE, StatusService
from bookkeeper.domain.validation import (
    SEVERITY_ERROR,
    PostingEntry,
    ValidationIssue,
    has_blocking_issues,
    validate_transaction_entries,
    validation_summary,
)

logger = logging.getLogger(__name__)

# Fields a completed transaction may no longer change.
COMPLETED_LOCKED_FIELDS = frozenset(
    {"date", "amount", "account_id", "credit_account_id", "debit_account_id", "payee_customer_id"}
)

EDITABLE_FIELDS = (
    "date",
    "amount",
    "payee",
    "payee_customer_id",
    "notes",
    "account_id",
    "credit_account_id",
    "debit_account_id",
)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class SplitLine:
    """One part of a split transaction."""

    amount: int
    account_id: Optional[int] = None
    credit_account_id: Optional[int] = None
    debit_account_id: Optional[int] = None
    notes: Optional[str] = None


def posting_entries(
    accounts: dict[int, Account],
    amount: int,
    account_id: Optional[int],
    credit_account_id: Optional[int],
    debit_account_id: Optional[int],
) -> list[PostingEntry]:
    """Describe each side of a transaction for the double-entry validator."""
    entries = []
    if debit_account_id is not None and debit_account_id in accounts:
        acc = accounts[debit_account_id]
        entries.append(
            PostingEntry(acc.id, acc.account_class, NormalBalance.DEBIT, amount, acc.name)
        )
    if credit_account_id is not None and credit_account_id in accounts:
        acc = accounts[credit_account_id]
        entries.append(
            PostingEntry(acc.id, acc.account_class, NormalBalance.CREDIT, amount, acc.name)
        )
    if account_id is not None and account_id in accounts and not entries:
        acc = accounts[account_id]
        operation = NormalBalance.DEBIT if amount >= 0 else NormalBalance.CREDIT
        entries.append(PostingEntry(acc.id, acc.account_class, operation, abs(amount), acc.name))
    return entries


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db: Database, owner_id: str = DEFAULT_OWNER):
        """Initialize transaction service.

        Args:
            db: Database instance
            owner_id: Owning identity every query is scoped to
        """
        self.db = db
        self.owner_id = owner_id

    def _settings(self) -> Settings:
        return SettingsService(self.db, self.owner_id).get_settings()

    def _load_accounts(self, account_ids: Iterable[Optional[int]]) -> dict[int, Account]:
        accounts = {}
        for account_id in account_ids:
            if account_id is None or account_id in accounts:
                continue
            account = self.db.get_account(self.owner_id, account_id)
            if account is None:
                raise NotFoundError(account_not_found(account_id))
            accounts[account_id] = account
        return accounts

    def _validate_postings(
        self,
        settings: Settings,
        status: TransactionStatus,
        amount: int,
        payee: Optional[str],
        payee_customer_id: Optional[str],
        account_id: Optional[int],
        credit_account_id: Optional[int],
        debit_account_id: Optional[int],
        allow_warnings: bool = False,
        require_payee: bool = True,
    ) -> list[ValidationIssue]:
        """Check a transaction's fields against the posting rules.

        Returns:
            Non-blocking validation issues (warnings)

        Raises:
            ValidationError: On the first rule violated
            NotFoundError: If a referenced account does not exist
        """
        is_draft = status == TransactionStatus.DRAFT
        uses_double_entry = credit_account_id is not None or debit_account_id is not None

        if require_payee and not is_draft:
            if not (payee or "").strip() and not payee_customer_id:
                raise ValidationError(PAYEE_REQUIRED_MESSAGE)

        if settings.double_entry_mode and not is_draft:
            if account_id is not None:
                raise ValidationError(
                    "Use credit and debit accounts instead of a single account in double-entry mode."
                )
            if credit_account_id is None or debit_account_id is None:
                raise ValidationError(
                    "Both a debit and a credit account are required in double-entry mode."
                )

        if uses_double_entry and amount < 0:
            raise ValidationError(
                "Amount must not be negative when using credit and debit accounts; "
                "swap the accounts instead."
            )
        if (
            credit_account_id is not None
            and credit_account_id == debit_account_id
        ):
            raise ValidationError("Credit and debit accounts must be different accounts.")

        accounts = self._load_accounts((account_id, credit_account_id, debit_account_id))
        for account in accounts.values():
            if account.is_read_only:
                raise ValidationError(
                    f"Account '{account.name}' is read-only and cannot be posted to."
                )
        if credit_account_id is not None:
            credit = accounts[credit_account_id]
            if credit.account_type == AccountType.DEBIT:
                raise ValidationError(
                    f"Account '{credit.name}' accepts debits only and cannot be the credit account."
                )
        if debit_account_id is not None:
            debit = accounts[debit_account_id]
            if debit.account_type == AccountType.CREDIT:
                raise ValidationError(
                    f"Account '{debit.name}' accepts credits only and cannot be the debit account."
                )

        issues = validate_transaction_entries(
            posting_entries(accounts, amount, account_id, credit_account_id, debit_account_id),
            is_draft=is_draft,
        )
        if has_blocking_issues(issues) and not allow_warnings:
            details = " ".join(i.message for i in issues if i.severity == SEVERITY_ERROR)
            raise ValidationError(f"{validation_summary(issues)}: {details}")
        for issue in issues:
            logger.warning("Posting check: %s", issue.message)
        return issues

    def _after_write(self, transaction_ids: Iterable[int], account_ids: Iterable[Optional[int]]) -> None:
        AccountService(self.db, self.owner_id).open_account_and_parents(account_ids)
        status = StatusService(self.db, self.owner_id)
        for transaction_id in transaction_ids:
            status.auto_promote(transaction_id)

    def create_transaction(
        self,
        date: date,
        amount: int,
        payee: Optional[str] = None,
        payee_customer_id: Optional[str] = None,
        notes: Optional[str] = None,
        account_id: Optional[int] = None,
        credit_account_id: Optional[int] = None,
        debit_account_id: Optional[int] = None,
        status: TransactionStatus = TransactionStatus.DRAFT,
        changed_by: Optional[str] = None,
        allow_warnings: bool = False,
    ) -> int:
        """Create a transaction.

        Args:
            date: Transaction date
            amount: Amount in miliunits; negative only for legacy single-entry postings
            payee: Payee name
            payee_customer_id: Customer used as payee
            notes: Optional notes
            account_id: Legacy single-entry account
            credit_account_id: Account credited
            debit_account_id: Account debited
            status: Initial status
            changed_by: Actor recorded in status history
            allow_warnings: Store even when the posting checks report errors

        Returns:
            Transaction ID

        Raises:
            ValidationError: If a posting rule is violated
            ClosedPeriodError: If the date is inside a closed period
            NotFoundError: If a referenced account does not exist
        """
        self._validate_postings(
            self._settings(),
            status,
            amount,
            payee,
            payee_customer_id,
            account_id,
            credit_account_id,
            debit_account_id,
            allow_warnings=allow_warnings,
        )
        [transaction_id] = self.db.create_transactions(
            self.owner_id,
            [
                NewTransaction(
                    date=date,
                    amount=amount,
                    status=status,
                    payee=payee,
                    payee_customer_id=payee_customer_id,
                    notes=notes,
                    account_id=account_id,
                    credit_account_id=credit_account_id,
                    debit_account_id=debit_account_id,
                )
            ],
            changed_by=changed_by or self.owner_id,
        )
        logger.info("Created transaction %s dated %s (%s)", transaction_id, date, status.value)
        self._after_write([transaction_id], (account_id, credit_account_id, debit_account_id))
        return transaction_id

    def create_split_transaction(
        self,
        date: date,
        splits: list[SplitLine],
        payee: Optional[str] = None,
        payee_customer_id: Optional[str] = None,
        notes: Optional[str] = None,
        status: TransactionStatus = TransactionStatus.DRAFT,
        changed_by: Optional[str] = None,
        allow_warnings: bool = False,
    ) -> tuple[int, list[int]]:
        """Create a parent transaction and its split parts in one step.

        The parent carries the total amount for display only and never posts.

        Returns:
            Tuple of the parent ID and the child IDs in input order

        Raises:
            ValidationError: If fewer than two parts are given or any part is invalid
        """
        if len(splits) < 2:
            raise ValidationError("A split transaction needs at least two parts.")

        settings = self._settings()
        if status != TransactionStatus.DRAFT and not (payee or "").strip() and not payee_customer_id:
            raise ValidationError(PAYEE_REQUIRED_MESSAGE)
        for index, line in enumerate(splits, start=1):
            if line.account_id is None and (
                line.credit_account_id is None or line.debit_account_id is None
            ):
                raise ValidationError(
                    f"Split {index} needs an account, or both a credit and a debit account."
                )
            self._validate_postings(
                settings,
                status,
                line.amount,
                payee,
                payee_customer_id,
                line.account_id,
                line.credit_account_id,
                line.debit_account_id,
                allow_warnings=allow_warnings,
                require_payee=False,
            )

        group_id = uuid.uuid4().hex
        parent = NewTransaction(
            date=date,
            amount=sum(line.amount for line in splits),
            status=status,
            payee=payee,
            payee_customer_id=payee_customer_id,
            notes=notes,
            split_group_id=group_id,
            split_type=SplitType.PARENT,
        )
        children = [
            NewTransaction(
                date=date,
                amount=line.amount,
                status=status,
                payee=payee,
                payee_customer_id=payee_customer_id,
                notes=line.notes or notes,
                account_id=line.account_id,
                credit_account_id=line.credit_account_id,
                debit_account_id=line.debit_account_id,
                split_group_id=group_id,
                split_type=SplitType.CHILD,
            )
            for line in splits
        ]
        ids = self.db.create_transactions(
            self.owner_id, [parent, *children], changed_by=changed_by or self.owner_id
        )
        logger.info("Created split transaction %s with %d parts", ids[0], len(children))

        account_ids = [
            acc_id
            for line in splits
            for acc_id in (line.account_id, line.credit_account_id, line.debit_account_id)
        ]
        self._after_write(ids, account_ids)
        return ids[0], ids[1:]

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(self.owner_id, transaction_id)

    def require_transaction(self, transaction_id: int) -> TransactionEntity:
        txn = self.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def update_transaction(
        self,
        transaction_id: int,
        date: Any = UNSET,
        amount: Any = UNSET,
        payee: Any = UNSET,
        payee_customer_id: Any = UNSET,
        notes: Any = UNSET,
        account_id: Any = UNSET,
        credit_account_id: Any = UNSET,
        debit_account_id: Any = UNSET,
        allow_warnings: bool = False,
    ) -> TransactionEntity:
        """Update transaction fields; pass None to clear a field.

        Reconciled transactions cannot be edited. Completed transactions keep
        their date, amount, accounts and customer.

        Raises:
            NotFoundError: If the transaction does not exist
            StateConflictError: If the status locks the fields being changed
            ClosedPeriodError: If the old or new date is inside a closed period
            ConcurrentModificationError: If the status changed while editing
        """
        txn = self.require_transaction(transaction_id)
        given = {
            "date": date,
            "amount": amount,
            "payee": payee,
            "payee_customer_id": payee_customer_id,
            "notes": notes,
            "account_id": account_id,
            "credit_account_id": credit_account_id,
            "debit_account_id": debit_account_id,
        }
        changes = {
            key: value
            for key, value in given.items()
            if value is not UNSET and value != getattr(txn, key)
        }
        if not changes:
            return txn

        if txn.status == TransactionStatus.RECONCILED:
            raise StateConflictError(
                "Reconciled transactions cannot be edited. Unreconcile the transaction first.",
                current_state=txn.status.value,
            )
        if txn.status == TransactionStatus.COMPLETED:
            locked = sorted(COMPLETED_LOCKED_FIELDS & set(changes))
            if locked:
                raise StateConflictError(
                    f"Completed transactions cannot change {', '.join(locked)}.",
                    current_state=txn.status.value,
                )
        if "amount" in changes and changes["amount"] is None:
            raise ValidationError("Amount cannot be cleared")
        if "date" in changes and changes["date"] is None:
            raise ValidationError("Date cannot be cleared")

        merged = replace(txn, **changes)
        if not merged.is_split_parent:
            self._validate_postings(
                self._settings(),
                merged.status,
                merged.amount,
                merged.payee,
                merged.payee_customer_id,
                merged.account_id,
                merged.credit_account_id,
                merged.debit_account_id,
                allow_warnings=allow_warnings,
            )
        elif {"account_id", "credit_account_id", "debit_account_id"} & set(changes):
            raise ValidationError("The parent of a split transaction cannot post to accounts.")

        updated = self.db.update_transaction(
            self.owner_id, transaction_id, changes, expected_status=txn.status
        )
        logger.info("Updated transaction %s: %s", transaction_id, sorted(changes))
        self._after_write(
            [transaction_id],
            (updated.account_id, updated.credit_account_id, updated.debit_account_id),
        )
        return self.require_transaction(transaction_id)

    def delete_transaction(self, transaction_id: int) -> list[int]:
        """Delete a transaction; any member of a split deletes the whole split.

        Returns:
            IDs of the deleted transactions

        Raises:
            NotFoundError: If the transaction does not exist
            StateConflictError: If any affected transaction is reconciled
            ClosedPeriodError: If the date is inside a closed period
        """
        txn = self.require_transaction(transaction_id)
        group = [txn]
        if txn.split_group_id and txn.closing_period_id is None:
            group = self.list_split_group(txn.split_group_id)

        for member in group:
            if member.status == TransactionStatus.RECONCILED:
                raise StateConflictError(
                    f"Transaction {member.id} is reconciled and cannot be deleted.",
                    current_state=member.status.value,
                )

        ids = [member.id for member in group]
        self.db.delete_transactions(self.owner_id, ids)
        logger.info("Deleted transaction(s) %s", ids)
        return ids

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        status: Optional[TransactionStatus] = None,
        include_drafts: bool = True,
    ) -> list[TransactionEntity]:
        """List transactions newest first."""
        return self.db.list_transactions(
            self.owner_id,
            start_date=start_date,
            end_date=end_date,
            account_ids=[account_id] if account_id is not None else None,
            statuses=[status] if status is not None else None,
            exclude_drafts=not include_drafts,
        )

    def list_split_group(self, split_group_id: str) -> list[TransactionEntity]:
        """Parent first, then the parts in creation order."""
        members = self.db.list_transactions(self.owner_id, split_group_id=split_group_id)
        return sorted(members, key=lambda t: (t.split_type != SplitType.PARENT, t.id))

    def validate_transaction(self, transaction_id: int) -> list[ValidationIssue]:
        """Posting check issues of a stored transaction, for display."""
        txn = self.require_transaction(transaction_id)
        accounts = {}
        for acc_id in (txn.account_id, txn.credit_account_id, txn.debit_account_id):
            if acc_id is not None:
                account = self.db.get_account(self.owner_id, acc_id)
                if account is not None:
                    accounts[acc_id] = account
        return validate_transaction_entries(
            posting_entries(
                accounts, txn.amount, txn.account_id, txn.credit_account_id, txn.debit_account_id
            ),
            is_draft=txn.status == TransactionStatus.DRAFT,
            is_closing_or_adjustment=txn.closing_period_id is not None,
        )
