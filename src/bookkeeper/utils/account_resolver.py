"""Utility for resolving account references to IDs."""

from bookkeeper.domain.account import AccountService
from bookkeeper.domain.errors import NotFoundError


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve an account reference to an account ID.

    A reference is an ID (``5`` or ``"5"``), a code prefixed with ``#``
    (``"#111"``), or an exact account name.

    Raises:
        NotFoundError: If no account matches
    """
    if isinstance(account, int):
        if account_service.get_account(account) is None:
            raise NotFoundError(f"Account ID {account} not found")
        return account

    reference = account.strip()
    if reference.startswith("#"):
        code = reference[1:]
        for acc in account_service.list_accounts():
            if acc.code == code:
                return acc.id
        raise NotFoundError(f"Account with code '{code}' not found")

    if reference.isdigit():
        account_id = int(reference)
        if account_service.get_account(account_id) is None:
            raise NotFoundError(f"Account ID {account_id} not found")
        return account_id

    for acc in account_service.list_accounts():
        if acc.name == reference:
            return acc.id

    raise NotFoundError(f"Account '{reference}' not found")
