"""Account register with running balances."""

from typing import Iterable

from bookkeeper.domain.accounting import normal_balance, split_posting
from bookkeeper.domain.entities import (
    Account,
    AccountLedger,
    LedgerEntry,
    MonthEndBalance,
    NormalBalance,
    Transaction,
    TransactionStatus,
)


def _chronological_key(txn: Transaction) -> tuple:
    return (txn.date, txn.id)


def build_running_ledger(account: Account, transactions: Iterable[Transaction]) -> list[LedgerEntry]:
    """Compute running balances for an account register.

    Transactions are processed oldest to newest (by date, then ID) starting
    from the account's opening balance. Draft rows are listed but do not
    move the balance. Split parents are skipped entirely.

    Args:
        account: Account whose register is built
        transactions: Transactions touching the account, in any order

    Returns:
        Ledger entries newest first, each carrying the balance as of that row
    """
    side = normal_balance(account.classification)
    running = account.opening_balance
    rows: list[LedgerEntry] = []

    for txn in sorted(transactions, key=_chronological_key):
        if txn.is_split_parent or not txn.touches(account.id):
            continue
        debit, credit = split_posting(txn, account.id)
        if txn.status != TransactionStatus.DRAFT:
            if side == NormalBalance.DEBIT:
                running = running + debit - credit
            else:
                running = running + credit - debit
        rows.append(
            LedgerEntry(transaction=txn, debit_amount=debit, credit_amount=credit, balance=running)
        )

    rows.reverse()
    return rows


def month_end_balances(entries: list[LedgerEntry]) -> list[MonthEndBalance]:
    """Return the balance at the last entry of each calendar month.

    Args:
        entries: Ledger entries, newest first

    Returns:
        One marker per month, newest month first
    """
    markers: list[MonthEndBalance] = []
    seen: set[tuple[int, int]] = set()
    for entry in entries:
        key = (entry.transaction.date.year, entry.transaction.date.month)
        if key in seen:
            continue
        seen.add(key)
        markers.append(MonthEndBalance(year=key[0], month=key[1], end_balance=entry.balance))
    return markers


def build_account_ledger(account: Account, transactions: Iterable[Transaction]) -> AccountLedger:
    entries = build_running_ledger(account, transactions)
    return AccountLedger(
        account=account,
        entries=tuple(entries),
        month_end_balances=tuple(month_end_balances(entries)),
    )
