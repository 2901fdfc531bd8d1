"""Domain model entities for bookkeeper.

These are pure data classes representing business concepts, independent of
database schema. Monetary values are integers in miliunits (1000 = 1.00).
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from enum import Enum
from typing import Optional, Union


class AccountClass(str, Enum):
    """Accounting class of an account."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    INCOME = "income"
    EXPENSE = "expense"


class AccountType(str, Enum):
    """Legacy restriction on which side of an entry an account may take."""

    DEBIT = "debit"
    CREDIT = "credit"
    NEUTRAL = "neutral"


class NormalBalance(str, Enum):
    """Side on which an account's balance is conventionally positive."""

    DEBIT = "debit"
    CREDIT = "credit"


class TransactionStatus(str, Enum):
    """Transaction lifecycle status, in strict linear order."""

    DRAFT = "draft"
    PENDING = "pending"
    COMPLETED = "completed"
    RECONCILED = "reconciled"


class SplitType(str, Enum):
    PARENT = "parent"
    CHILD = "child"


class PeriodStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class Classified:
    """Account that carries an accounting class."""

    account_class: AccountClass


@dataclass(frozen=True)
class Legacy:
    """Pre-classification account known only by its legacy account type."""

    account_type: AccountType


Classification = Union[Classified, Legacy]


@dataclass(frozen=True)
class Account:
    """Ledger account domain entity."""

    id: int
    owner_id: str
    name: str
    code: Optional[str]
    account_class: Optional[AccountClass]
    account_type: AccountType
    is_open: bool
    is_read_only: bool
    opening_balance: int
    created_at: datetime

    @property
    def classification(self) -> Classification:
        """Classification as a tagged union, preferring the account class."""
        if self.account_class is not None:
            return Classified(self.account_class)
        return Legacy(self.account_type)

    @property
    def level(self) -> int:
        """Depth in the code hierarchy (root accounts are level 0)."""
        if not self.code:
            return 0
        return len(self.code) - 1


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity.

    Double-entry transactions set both ``credit_account_id`` and
    ``debit_account_id``. Legacy single-entry transactions set only
    ``account_id`` and carry direction in the sign of ``amount``.
    """

    id: int
    owner_id: str
    date: date
    amount: int
    payee: Optional[str]
    payee_customer_id: Optional[str]
    notes: Optional[str]
    account_id: Optional[int]
    credit_account_id: Optional[int]
    debit_account_id: Optional[int]
    status: TransactionStatus
    status_changed_at: datetime
    status_changed_by: Optional[str]
    split_group_id: Optional[str] = None
    split_type: Optional[SplitType] = None
    closing_period_id: Optional[int] = None

    @property
    def is_double_entry(self) -> bool:
        return self.credit_account_id is not None and self.debit_account_id is not None

    @property
    def is_split_parent(self) -> bool:
        return self.split_type == SplitType.PARENT

    def touches(self, account_id: int) -> bool:
        """Return True if this transaction posts to the given account."""
        return account_id in (self.account_id, self.credit_account_id, self.debit_account_id)


@dataclass(frozen=True)
class StatusHistoryEntry:
    """Immutable record of one status transition."""

    id: int
    transaction_id: int
    from_status: Optional[TransactionStatus]
    to_status: TransactionStatus
    changed_at: datetime
    changed_by: str
    notes: Optional[str]


@dataclass(frozen=True)
class AccountingPeriod:
    """Accounting period domain entity."""

    id: int
    owner_id: str
    start_date: date
    end_date: date
    status: PeriodStatus
    closed_at: Optional[datetime]
    closed_by: Optional[str]
    notes: Optional[str]
    created_at: datetime

    @property
    def is_closed(self) -> bool:
        return self.status == PeriodStatus.CLOSED

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def overlaps(self, start_date: date, end_date: date) -> bool:
        """Inclusive range intersection test."""
        return (
            (self.start_date <= start_date <= self.end_date)
            or (self.start_date <= end_date <= self.end_date)
            or (start_date <= self.start_date and self.end_date <= end_date)
        )


@dataclass(frozen=True)
class DocumentType:
    """Document type domain entity."""

    id: int
    owner_id: str
    name: str
    description: Optional[str]
    is_required: bool
    created_at: datetime


@dataclass(frozen=True)
class Document:
    """Metadata of a document attached to a transaction."""

    id: int
    owner_id: str
    transaction_id: int
    document_type_id: int
    file_name: str
    uploaded_by: str
    uploaded_at: datetime
    is_deleted: bool = False


@dataclass(frozen=True)
class Settings:
    """Per-owner configuration record."""

    owner_id: str
    double_entry_mode: bool = False
    auto_draft_to_pending: bool = False
    min_required_documents: int = 0
    reconciliation_conditions: tuple[str, ...] = ("hasReceipt", "requiredDocuments")


# Engine results


@dataclass(frozen=True)
class AccountTotals:
    """Debit and credit totals of one account over a date range."""

    debit_total: int = 0
    credit_total: int = 0


@dataclass(frozen=True)
class AccountBalanceSummary:
    """Signed balance of an account, as consumed by the trial balance."""

    account_id: int
    account_name: str
    account_class: Optional[AccountClass]
    balance: int
    normal_balance: NormalBalance
    is_normal: bool
    code: Optional[str] = None
    debit_total: int = 0
    credit_total: int = 0


@dataclass(frozen=True)
class TrialBalance:
    total_debits: int
    total_credits: int
    is_balanced: bool
    difference: int


@dataclass
class AccountNode:
    """Account placed in the code hierarchy."""

    account: Account
    level: int
    children: list["AccountNode"] = field(default_factory=list)
    balance: int = 0

    @property
    def code(self) -> Optional[str]:
        return self.account.code


@dataclass(frozen=True)
class StatementLine:
    """One account row on a financial statement."""

    id: int
    name: str
    code: Optional[str]
    balance: int
    is_read_only: bool
    level: int


@dataclass(frozen=True)
class IncomeStatement:
    start_date: date
    end_date: date
    income_accounts: tuple[StatementLine, ...]
    expense_accounts: tuple[StatementLine, ...]
    total_income: int
    total_expenses: int
    net_income: int


@dataclass(frozen=True)
class BalanceSheetTotals:
    total_assets: int
    total_liabilities: int
    total_equity: int
    liabilities_and_equity: int


@dataclass(frozen=True)
class BalanceSheet:
    as_of_date: date
    asset_accounts: tuple[StatementLine, ...]
    liability_accounts: tuple[StatementLine, ...]
    equity_accounts: tuple[StatementLine, ...]
    totals: BalanceSheetTotals
    is_balanced: bool
    difference: int


@dataclass(frozen=True)
class LedgerEntry:
    """Register row annotated with the running balance as of that row."""

    transaction: Transaction
    debit_amount: int
    credit_amount: int
    balance: int


@dataclass(frozen=True)
class MonthEndBalance:
    year: int
    month: int
    end_balance: int


@dataclass(frozen=True)
class AccountLedger:
    account: Account
    entries: tuple[LedgerEntry, ...]
    month_end_balances: tuple[MonthEndBalance, ...] = ()

    @property
    def closing_balance(self) -> int:
        if not self.entries:
            return self.account.opening_balance
        return self.entries[0].balance


@dataclass(frozen=True)
class ClosingAccountActivity:
    """Net period activity of an income or expense account."""

    account_id: int
    account_name: str
    account_code: Optional[str]
    account_class: AccountClass
    account_type: AccountType
    balance: int


@dataclass(frozen=True)
class ClosingPreview:
    start_date: date
    end_date: date
    income_accounts: tuple[ClosingAccountActivity, ...]
    expense_accounts: tuple[ClosingAccountActivity, ...]
    total_income: int
    total_expenses: int
    net_result: int
    profit_and_loss_account: Account
    retained_earnings_account: Optional[Account] = None


@dataclass(frozen=True)
class ReconciliationCondition:
    name: str
    met: bool
    message: str = ""


@dataclass(frozen=True)
class ReconciliationCheck:
    """Outcome of the reconciliation guard; not an error when blocked."""

    allowed: bool
    conditions: tuple[ReconciliationCondition, ...] = ()

    @property
    def unmet(self) -> list[str]:
        return [c.message or c.name for c in self.conditions if not c.met]


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a status transition request."""

    transaction: Transaction
    from_status: Optional[TransactionStatus]
    to_status: TransactionStatus
    blocked: bool = False
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class NewTransaction:
    """Values of a transaction about to be inserted."""

    date: date
    amount: int
    status: TransactionStatus = TransactionStatus.DRAFT
    payee: Optional[str] = None
    payee_customer_id: Optional[str] = None
    notes: Optional[str] = None
    account_id: Optional[int] = None
    credit_account_id: Optional[int] = None
    debit_account_id: Optional[int] = None
    split_group_id: Optional[str] = None
    split_type: Optional[SplitType] = None
    closing_period_id: Optional[int] = None
