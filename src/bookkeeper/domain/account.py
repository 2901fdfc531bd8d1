"""Account domain service."""

import logging
from typing import Any, Iterable, Optional

from bookkeeper.database.base import Database
from bookkeeper.domain.accounting import suggest_account_class
from bookkeeper.domain.entities import (
    Account as AccountEntity,
    AccountClass,
    AccountNode,
    AccountType,
)
from bookkeeper.domain.errors import (
    DependencyError,
    NotFoundError,
    ValidationError,
    account_not_found,
)
from bookkeeper.domain.hierarchy import build_forest, parent_code
from bookkeeper.domain.settings import DEFAULT_OWNER

logger = logging.getLogger(__name__)


def _clean_code(code: Optional[str]) -> Optional[str]:
    if code is None:
        return None
    code = code.strip()
    if not code:
        return None
    if not code.isdigit():
        raise ValidationError(f"Account code '{code}' must contain digits only")
    return code


def ancestor_codes(code: str) -> list[str]:
    """Codes of every ancestor of ``code``, nearest first."""
    result = []
    current = parent_code(code)
    while current is not None:
        result.append(current)
        current = parent_code(current)
    return result


class AccountService:
    """Service for managing the chart of accounts."""

    def __init__(self, db: Database, owner_id: str = DEFAULT_OWNER):
        """Initialize account service.

        Args:
            db: Database instance
            owner_id: Owning identity every query is scoped to
        """
        self.db = db
        self.owner_id = owner_id

    def _check_unique(
        self, name: Optional[str], code: Optional[str], exclude_id: Optional[int] = None
    ) -> None:
        for acc in self.db.list_accounts(self.owner_id):
            if acc.id == exclude_id:
                continue
            if name is not None and acc.name == name:
                raise ValidationError(f"Account with name '{name}' already exists")
            if code is not None and acc.code == code:
                raise ValidationError(f"Account with code '{code}' already exists")

    def create_account(
        self,
        name: str,
        code: Optional[str] = None,
        account_class: Optional[AccountClass] = None,
        account_type: AccountType = AccountType.NEUTRAL,
        is_open: bool = True,
        is_read_only: bool = False,
        opening_balance: int = 0,
    ) -> int:
        """Create a new account.

        Args:
            name: Account name
            code: Optional hierarchical code; its length is the depth
            account_class: Accounting class, None for a legacy account
            account_type: Legacy side restriction
            is_open: Whether the account accepts new postings
            is_read_only: Aggregation-only account, never posted to
            opening_balance: Signed opening balance in miliunits

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is empty, or the name or code is taken
        """
        name = name.strip()
        if not name:
            raise ValidationError("Account name is required")
        code = _clean_code(code)
        self._check_unique(name, code)

        account_id = self.db.create_account(
            self.owner_id,
            name=name,
            code=code,
            account_class=account_class,
            account_type=account_type,
            is_open=is_open,
            is_read_only=is_read_only,
            opening_balance=opening_balance,
        )
        logger.info("Created account %s '%s' (code %s)", account_id, name, code)
        return account_id

    def create_accounts(self, rows: Iterable[dict[str, Any]]) -> list[int]:
        """Create several accounts, e.g. a chart of accounts template.

        Rows are created in code order so parents exist before children.
        """
        ordered = sorted(rows, key=lambda r: (len(r.get("code") or ""), r.get("code") or ""))
        return [self.create_account(**row) for row in ordered]

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(self.owner_id, account_id)

    def require_account(self, account_id: int) -> AccountEntity:
        account = self.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(
        self, account_class: Optional[AccountClass] = None, include_closed: bool = True
    ) -> list[AccountEntity]:
        """List accounts ordered by code."""
        classes = [account_class] if account_class is not None else None
        return self.db.list_accounts(
            self.owner_id, account_classes=classes, include_closed=include_closed
        )

    def update_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        code: Optional[str] = None,
        account_class: Optional[AccountClass] = None,
        account_type: Optional[AccountType] = None,
        is_open: Optional[bool] = None,
        is_read_only: Optional[bool] = None,
        opening_balance: Optional[int] = None,
        clear_code: bool = False,
        clear_class: bool = False,
    ) -> AccountEntity:
        """Update account fields.

        Args:
            clear_code: If True, remove the code even though ``code`` is None
            clear_class: If True, turn the account back into a legacy account

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the new name or code is taken
            DependencyError: If a posted-to account is made read-only
        """
        account = self.require_account(account_id)
        changes: dict[str, Any] = {}

        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Account name is required")
            self._check_unique(name, None, exclude_id=account_id)
            changes["name"] = name
        if clear_code:
            changes["code"] = None
        elif code is not None:
            code = _clean_code(code)
            self._check_unique(None, code, exclude_id=account_id)
            changes["code"] = code
        if clear_class:
            changes["account_class"] = None
        elif account_class is not None:
            changes["account_class"] = account_class
        if account_type is not None:
            changes["account_type"] = account_type
        if is_open is not None:
            changes["is_open"] = is_open
        if opening_balance is not None:
            changes["opening_balance"] = opening_balance
        if is_read_only is not None:
            if is_read_only and not account.is_read_only:
                count = self.db.get_account_transaction_count(self.owner_id, account_id)
                if count:
                    raise DependencyError(
                        f"Account {account_id} has {count} posting(s) and cannot be made read-only"
                    )
            changes["is_read_only"] = is_read_only

        if changes:
            self.db.update_account(self.owner_id, account_id, changes)
            logger.info("Updated account %s: %s", account_id, sorted(changes))
        return self.require_account(account_id)

    def delete_account(self, account_id: int) -> None:
        """Delete an account.

        Raises:
            NotFoundError: If the account does not exist
            DependencyError: If the account has transactions
        """
        self.require_account(account_id)
        self.db.delete_account(self.owner_id, account_id)
        logger.info("Deleted account %s", account_id)

    def open_account_and_parents(self, account_ids: Iterable[int]) -> list[int]:
        """Open the given accounts and every ancestor by code if closed.

        Returns:
            IDs of the accounts that were opened
        """
        wanted = {i for i in account_ids if i is not None}
        if not wanted:
            return []
        accounts = self.db.list_accounts(self.owner_id)
        by_code = {acc.code: acc for acc in accounts if acc.code}

        to_open: set[int] = set()
        for acc in accounts:
            if acc.id not in wanted:
                continue
            if not acc.is_open:
                to_open.add(acc.id)
            for code in ancestor_codes(acc.code or ""):
                parent = by_code.get(code)
                if parent is not None and not parent.is_open:
                    to_open.add(parent.id)

        if to_open:
            self.db.set_accounts_open(self.owner_id, to_open)
            logger.info("Opened accounts %s", sorted(to_open))
        return sorted(to_open)

    def invalid_config_account_ids(self) -> set[int]:
        """Open accounts that sit under a closed ancestor."""
        accounts = self.db.list_accounts(self.owner_id)
        closed_codes = {acc.code for acc in accounts if acc.code and not acc.is_open}
        return {
            acc.id
            for acc in accounts
            if acc.is_open
            and acc.code
            and any(code in closed_codes for code in ancestor_codes(acc.code))
        }

    def get_tree(self, include_closed: bool = True) -> list[AccountNode]:
        """Chart of accounts as a forest by code."""
        return build_forest(self.list_accounts(include_closed=include_closed))

    def suggest_class(self, account_id: int) -> Optional[AccountClass]:
        account = self.require_account(account_id)
        if account.account_class is not None:
            return account.account_class
        return suggest_account_class(account.account_type)
