"""Double-entry posting checks against account normal balances.

Posting to the side opposite an account's normal balance is not always
wrong (paying off debt debits a liability), so most such postings are
warnings. Debiting income or crediting expense is an error unless the
transaction is a draft or a closing/adjustment entry.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from bookkeeper.domain.accounting import NORMAL_BALANCES
from bookkeeper.domain.entities import AccountClass, NormalBalance

SEVERITY_WARNING = "warning"
SEVERITY_ERROR = "error"

ISSUE_DEBIT_CREDIT_MISMATCH = "debit-credit-mismatch"
ISSUE_CONTRA_BALANCE = "contra-balance-operation"


@dataclass(frozen=True)
class PostingEntry:
    """One side of a transaction as seen by the validator."""

    account_id: int
    account_class: Optional[AccountClass]
    operation: NormalBalance
    amount: int
    account_name: Optional[str] = None


@dataclass(frozen=True)
class ValidationIssue:
    type: str
    account_id: int
    account_class: AccountClass
    operation: NormalBalance
    severity: str
    message: str
    explanation: str
    account_name: Optional[str] = None


_INCREASES = {
    AccountClass.ASSET: "This debit increases the asset account (normal operation).",
    AccountClass.EXPENSE: "This debit increases the expense account (normal operation).",
    AccountClass.LIABILITY: "This credit increases the liability account (normal operation).",
    AccountClass.EQUITY: "This credit increases the equity account (normal operation).",
    AccountClass.INCOME: "This credit increases the income account (normal operation).",
}

_DECREASES = {
    AccountClass.ASSET: "This credit decreases the asset account. This is normal for payments, sales, or depreciation.",
    AccountClass.EXPENSE: "This credit decreases the expense account. This might be for expense reversals or refunds.",
    AccountClass.LIABILITY: "This debit decreases the liability account. This is normal for debt payments.",
    AccountClass.EQUITY: "This debit decreases the equity account. This might be for owner withdrawals or losses.",
    AccountClass.INCOME: "This debit decreases the income account. This might be for sales returns, discounts, or closing entries.",
}


def operation_explanation(account_class: AccountClass, operation: NormalBalance) -> str:
    """Short explanation of what an operation does to an account class."""
    if NORMAL_BALANCES[account_class] == operation:
        return _INCREASES[account_class]
    return _DECREASES[account_class]


def validate_account_operation(
    account_class: Optional[AccountClass],
    operation: NormalBalance,
    account_id: int,
    account_name: Optional[str] = None,
    is_draft: bool = False,
    is_closing_or_adjustment: bool = False,
) -> Optional[ValidationIssue]:
    """Validate a debit or credit operation against an account class.

    Returns:
        The issue found, or None when the operation is normal or the account
        has no class
    """
    if account_class is None:
        return None

    normal = NORMAL_BALANCES[account_class]
    if normal == operation:
        return None

    label = f'"{account_name}"' if account_name else "Account"
    operation_text = "debited" if operation == NormalBalance.DEBIT else "credited"

    if (account_class == AccountClass.INCOME and operation == NormalBalance.DEBIT) or (
        account_class == AccountClass.EXPENSE and operation == NormalBalance.CREDIT
    ):
        severity = SEVERITY_WARNING if (is_closing_or_adjustment or is_draft) else SEVERITY_ERROR
        if account_class == AccountClass.INCOME:
            message = (
                f"{label} is an income account being {operation_text}. "
                "Income accounts should normally be credited."
            )
        else:
            message = (
                f"{label} is an expense account being {operation_text}. "
                "Expense accounts should normally be debited."
            )
        return ValidationIssue(
            type=ISSUE_DEBIT_CREDIT_MISMATCH,
            account_id=account_id,
            account_name=account_name,
            account_class=account_class,
            operation=operation,
            severity=severity,
            message=message,
            explanation=operation_explanation(account_class, operation),
        )

    expected = "typically debited" if normal == NormalBalance.DEBIT else "typically credited"
    return ValidationIssue(
        type=ISSUE_CONTRA_BALANCE,
        account_id=account_id,
        account_name=account_name,
        account_class=account_class,
        operation=operation,
        severity=SEVERITY_WARNING,
        message=f"{label} is {operation_text}. This account is {expected} ({account_class.value} account).",
        explanation=operation_explanation(account_class, operation),
    )


def validate_transaction_entries(
    entries: Iterable[PostingEntry],
    is_draft: bool = False,
    is_closing_or_adjustment: bool = False,
) -> list[ValidationIssue]:
    """Validate every side of a transaction."""
    issues = []
    for entry in entries:
        issue = validate_account_operation(
            entry.account_class,
            entry.operation,
            entry.account_id,
            entry.account_name,
            is_draft,
            is_closing_or_adjustment,
        )
        if issue is not None:
            issues.append(issue)
    return issues


def has_blocking_issues(issues: Iterable[ValidationIssue]) -> bool:
    return any(issue.severity == SEVERITY_ERROR for issue in issues)


def validation_summary(issues: list[ValidationIssue]) -> str:
    """Return e.g. '1 validation error, 2 warnings'."""
    if not issues:
        return ""
    errors = [i for i in issues if i.severity == SEVERITY_ERROR]
    warnings = [i for i in issues if i.severity == SEVERITY_WARNING]
    parts = []
    if errors:
        parts.append(f"{len(errors)} validation error{'s' if len(errors) > 1 else ''}")
    if warnings:
        parts.append(f"{len(warnings)} warning{'s' if len(warnings) > 1 else ''}")
    return ", ".join(parts)
