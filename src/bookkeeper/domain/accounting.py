"""Double-entry bookkeeping core: account classes, normal balances and balances.

All amounts are integers in miliunits (1000 = 1.00 of the major currency
unit). Nothing in this module uses floating point.
"""

import logging
from typing import Iterable, Optional, Sequence, Union

from bookkeeper.domain.entities import (
    Account,
    AccountBalanceSummary,
    AccountClass,
    AccountTotals,
    AccountType,
    Classification,
    Classified,
    Legacy,
    NormalBalance,
    Transaction,
    TrialBalance,
)

logger = logging.getLogger(__name__)

NORMAL_BALANCES: dict[AccountClass, NormalBalance] = {
    AccountClass.ASSET: NormalBalance.DEBIT,
    AccountClass.EXPENSE: NormalBalance.DEBIT,
    AccountClass.LIABILITY: NormalBalance.CREDIT,
    AccountClass.EQUITY: NormalBalance.CREDIT,
    AccountClass.INCOME: NormalBalance.CREDIT,
}

ACCOUNT_CLASS_LABELS: dict[AccountClass, str] = {
    AccountClass.ASSET: "Asset",
    AccountClass.LIABILITY: "Liability",
    AccountClass.EQUITY: "Equity",
    AccountClass.INCOME: "Income",
    AccountClass.EXPENSE: "Expense",
}

# Under one cent, in miliunits.
BALANCE_TOLERANCE = 10


def normal_balance(
    classification: Union[Classification, AccountClass, None],
) -> NormalBalance:
    """Return the normal balance side for a classification.

    Legacy (unclassified) accounts present as debit-normal.

    Args:
        classification: ``Classified``/``Legacy`` value, a bare AccountClass, or None

    Returns:
        NormalBalance of the classification
    """
    if isinstance(classification, AccountClass):
        return NORMAL_BALANCES[classification]
    if isinstance(classification, Classified):
        return NORMAL_BALANCES[classification.account_class]
    if isinstance(classification, Legacy) or classification is None:
        return NormalBalance.DEBIT
    raise TypeError(f"Unsupported classification: {classification!r}")


def calculate_account_balance(
    classification: Union[Classification, AccountClass, None],
    debit_total: int,
    credit_total: int,
    opening_balance: int = 0,
) -> int:
    """Calculate a signed account balance from its debit and credit totals.

    Examples:
        >>> calculate_account_balance(AccountClass.ASSET, 10000, 3000)
        7000
        >>> calculate_account_balance(AccountClass.LIABILITY, 2000, 5000)
        3000
    """
    if normal_balance(classification) == NormalBalance.DEBIT:
        return opening_balance + debit_total - credit_total
    return opening_balance + credit_total - debit_total


def is_normal_balance(balance: int) -> bool:
    """Return True when a balance sits on its normal side."""
    return balance >= 0


def has_inconsistent_posting(transaction: Transaction) -> bool:
    """Return True when legacy and double-entry fields are both populated."""
    return transaction.account_id is not None and (
        transaction.credit_account_id is not None or transaction.debit_account_id is not None
    )


def split_posting(transaction: Transaction, account_id: int) -> tuple[int, int]:
    """Return the (debit, credit) contribution of a transaction to an account.

    Double-entry fields take precedence over the legacy ``account_id``. A
    legacy posting counts a non-negative amount as a debit and a negative
    amount as a credit of its absolute value. Split parents never post.
    """
    if transaction.is_split_parent:
        return 0, 0

    debit = 0
    credit = 0
    matched = False
    if transaction.debit_account_id == account_id:
        debit += transaction.amount
        matched = True
    if transaction.credit_account_id == account_id:
        credit += transaction.amount
        matched = True
    if matched:
        return debit, credit

    if transaction.account_id == account_id and not transaction.is_double_entry:
        if transaction.amount >= 0:
            return transaction.amount, 0
        return 0, abs(transaction.amount)

    return 0, 0


def accumulate_totals(
    transactions: Iterable[Transaction], account_ids: Optional[Iterable[int]] = None
) -> dict[int, AccountTotals]:
    """Sum debit and credit contributions per account.

    Args:
        transactions: Non-draft transactions of the queried range
        account_ids: Restrict results to these accounts; None means every
            account any transaction touches

    Returns:
        Mapping of account ID to its totals
    """
    wanted = set(account_ids) if account_ids is not None else None
    debits: dict[int, int] = {}
    credits: dict[int, int] = {}

    for txn in transactions:
        if has_inconsistent_posting(txn):
            logger.warning(
                "Transaction %s has both legacy and double-entry accounts; "
                "double-entry fields take precedence",
                txn.id,
            )
        touched = {
            acc_id
            for acc_id in (txn.account_id, txn.credit_account_id, txn.debit_account_id)
            if acc_id is not None
        }
        for acc_id in touched:
            if wanted is not None and acc_id not in wanted:
                continue
            debit, credit = split_posting(txn, acc_id)
            debits[acc_id] = debits.get(acc_id, 0) + debit
            credits[acc_id] = credits.get(acc_id, 0) + credit

    return {
        acc_id: AccountTotals(debit_total=debits.get(acc_id, 0), credit_total=credits.get(acc_id, 0))
        for acc_id in set(debits) | set(credits)
    }


def summarize_account(account: Account, totals: AccountTotals, opening_balance: Optional[int] = None) -> AccountBalanceSummary:
    """Build the balance summary of one account."""
    opening = account.opening_balance if opening_balance is None else opening_balance
    classification = account.classification
    balance = calculate_account_balance(
        classification, totals.debit_total, totals.credit_total, opening
    )
    return AccountBalanceSummary(
        account_id=account.id,
        account_name=account.name,
        account_class=account.account_class,
        balance=balance,
        normal_balance=normal_balance(classification),
        is_normal=is_normal_balance(balance),
        code=account.code,
        debit_total=totals.debit_total,
        credit_total=totals.credit_total,
    )


def calculate_trial_balance(accounts: Sequence[AccountBalanceSummary]) -> TrialBalance:
    """Check that total debit-side balances equal total credit-side balances.

    A negative balance is counted, as its absolute value, on the side
    opposite the account's normal balance.
    """
    total_debits = 0
    total_credits = 0

    for account in accounts:
        if account.normal_balance == NormalBalance.DEBIT:
            if account.balance >= 0:
                total_debits += account.balance
            else:
                total_credits += abs(account.balance)
        else:
            if account.balance >= 0:
                total_credits += account.balance
            else:
                total_debits += abs(account.balance)

    difference = total_debits - total_credits
    return TrialBalance(
        total_debits=total_debits,
        total_credits=total_credits,
        is_balanced=abs(difference) < BALANCE_TOLERANCE,
        difference=difference,
    )


def suggest_account_class(account_type: AccountType) -> Optional[AccountClass]:
    """Suggest an account class for a legacy account type.

    Debit accounts are typically assets, credit accounts liabilities; there
    is no suggestion for neutral accounts.
    """
    if account_type == AccountType.DEBIT:
        return AccountClass.ASSET
    if account_type == AccountType.CREDIT:
        return AccountClass.LIABILITY
    return None
