"""Account hierarchy built from prefix codes.

An account's parent is the account whose code equals its own code with the
last character removed ("11" is a child of "1"). Nodes live in a flat list
indexed by code, so parents are found by lookup rather than by walking
pointers.
"""

from typing import Iterable, Mapping, Optional, Sequence

from bookkeeper.domain.entities import Account, AccountNode


def parent_code(code: str) -> Optional[str]:
    """Return the parent code, or None for a root code."""
    if len(code) <= 1:
        return None
    return code[:-1]


def is_direct_child(parent: str, child: str) -> bool:
    return len(child) == len(parent) + 1 and child.startswith(parent)


def build_forest(
    accounts: Iterable[Account], balances: Optional[Mapping[int, int]] = None
) -> list[AccountNode]:
    """Arrange accounts into a forest by code.

    Accounts without a code are left out. An account whose parent code has
    no account becomes a root instead of being dropped.

    Args:
        accounts: Accounts to arrange
        balances: Optional balances to annotate nodes with, keyed by account ID

    Returns:
        Root nodes sorted by code, each with children sorted by code
    """
    nodes = [
        AccountNode(
            account=acc,
            level=len(acc.code) - 1,
            balance=(balances or {}).get(acc.id, 0),
        )
        for acc in sorted(
            (a for a in accounts if a.code), key=lambda a: (a.code, a.id)
        )
    ]
    index: dict[str, AccountNode] = {}
    for node in nodes:
        index.setdefault(node.code, node)

    roots: list[AccountNode] = []
    for node in nodes:
        parent = parent_code(node.code)
        parent_node = index.get(parent) if parent is not None else None
        if parent_node is None or parent_node is node:
            roots.append(node)
        else:
            parent_node.children.append(node)
    return roots


def flatten_forest(roots: Sequence[AccountNode]) -> list[AccountNode]:
    """Return nodes depth-first, parents before their children."""
    result: list[AccountNode] = []

    def visit(node: AccountNode) -> None:
        result.append(node)
        for child in node.children:
            visit(child)

    for root in roots:
        visit(root)
    return result


def rollup_read_only_balances(
    accounts: Sequence[Account], balances: Mapping[int, int]
) -> dict[int, int]:
    """Compute read-only account balances as the sum of their direct children.

    Read-only accounts are resolved longest code first so nested read-only
    children are summed before their parents. A read-only account's own
    derived balance (including its opening balance) is replaced.

    Args:
        accounts: Accounts taking part in the rollup
        balances: Balances of postable accounts keyed by account ID

    Returns:
        New mapping containing the given balances plus every read-only account
    """
    result = dict(balances)
    read_only = sorted(
        (a for a in accounts if a.is_read_only and a.code),
        key=lambda a: len(a.code),
        reverse=True,
    )

    for account in read_only:
        result.pop(account.id, None)

    for account in read_only:
        children_sum = 0
        for other in accounts:
            if (
                other.code
                and is_direct_child(account.code, other.code)
                and other.id in result
            ):
                children_sum += result[other.id]
        result[account.id] = children_sum
    return result


def top_level_total(accounts: Iterable[Account], balances: Mapping[int, int]) -> int:
    """Sum balances of top-level accounts (single-character codes) only.

    Read-only parents already embed their subtree sums, so summing deeper
    accounts as well would count them twice.
    """
    return sum(
        balances.get(acc.id, 0) for acc in accounts if acc.code and len(acc.code) == 1
    )
