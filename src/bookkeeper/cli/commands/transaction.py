"""Transaction management commands."""

import click
from bookkeeper.cli.account_resolution import resolve_optional_account
from bookkeeper.cli.date_filters import (
    parse_date_or_exit,
    period_flags_from,
    period_options,
    resolve_cli_date_range,
)
from bookkeeper.cli.error_handling import handle_domain_error
from bookkeeper.domain.account import AccountService
from bookkeeper.domain.documents import DocumentService
from bookkeeper.domain.entities import Transaction, TransactionStatus
from bookkeeper.domain.transaction import UNSET, SplitLine, TransactionService
from bookkeeper.utils.amount_parser import format_amount, parse_amount

STATUS_CHOICES = click.Choice([s.value for s in TransactionStatus], case_sensitive=False)


def _amount_or_exit(ctx, value: str) -> int:
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)


def _account_label(names: dict[int, str], account_id: int | None) -> str:
    if account_id is None:
        return "-"
    return names.get(account_id, f"#{account_id}")


def _posting_text(txn: Transaction, names: dict[int, str]) -> str:
    if txn.is_split_parent:
        return "(split)"
    if txn.is_double_entry:
        return f"Dr {_account_label(names, txn.debit_account_id)} / Cr {_account_label(names, txn.credit_account_id)}"
    return _account_label(names, txn.account_id)


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("add")
@click.option("--date", "txn_date", default="today", show_default=True, help="Transaction date")
@click.option("--amount", required=True, help="Amount (e.g., 123.45)")
@click.option("--payee", help="Payee name")
@click.option("--customer", help="Customer ID used as payee")
@click.option("--notes", help="Notes")
@click.option("--account", help="Single account (legacy single-entry posting)")
@click.option("--debit", help="Account debited")
@click.option("--credit", help="Account credited")
@click.option(
    "--status",
    type=STATUS_CHOICES,
    default=TransactionStatus.DRAFT.value,
    show_default=True,
    help="Initial status",
)
@click.option("--allow-warnings", is_flag=True, help="Save even when posting checks report errors")
@click.pass_context
def add_transaction(
    ctx,
    txn_date: str,
    amount: str,
    payee: str | None,
    customer: str | None,
    notes: str | None,
    account: str | None,
    debit: str | None,
    credit: str | None,
    status: str,
    allow_warnings: bool,
):
    """Add a transaction.

    Accounts can be given by ID, #code or name.

    Examples:
        bookkeeper transaction add --amount 45.00 --payee "Grocer" --debit "#61" --credit "#11"
        bookkeeper transaction add --amount -12.50 --account "Wallet" --payee "Cafe"
    """
    db = ctx.obj["db"]
    owner = ctx.obj["owner"]
    account_service = AccountService(db, owner)

    parsed_date = parse_date_or_exit(ctx, txn_date)
    parsed_amount = _amount_or_exit(ctx, amount)
    account_id = resolve_optional_account(ctx, account_service, account)
    debit_id = resolve_optional_account(ctx, account_service, debit)
    credit_id = resolve_optional_account(ctx, account_service, credit)

    try:
        transaction_id = TransactionService(db, owner).create_transaction(
            date=parsed_date,
            amount=parsed_amount,
            payee=payee,
            payee_customer_id=customer,
            notes=notes,
            account_id=account_id,
            credit_account_id=credit_id,
            debit_account_id=debit_id,
            status=TransactionStatus(status.lower()),
            allow_warnings=allow_warnings,
        )
        click.echo(f"Created transaction {transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("split")
@click.option("--date", "txn_date", default="today", show_default=True, help="Transaction date")
@click.option("--payee", help="Payee name")
@click.option("--customer", help="Customer ID used as payee")
@click.option("--notes", help="Notes")
@click.option(
    "--part",
    "parts",
    nargs=2,
    multiple=True,
    metavar="AMOUNT ACCOUNT",
    help="Single-account part (repeatable)",
)
@click.option(
    "--entry",
    "entries",
    nargs=3,
    multiple=True,
    metavar="AMOUNT DEBIT CREDIT",
    help="Double-entry part (repeatable)",
)
@click.option(
    "--status",
    type=STATUS_CHOICES,
    default=TransactionStatus.DRAFT.value,
    show_default=True,
    help="Initial status",
)
@click.option("--allow-warnings", is_flag=True, help="Save even when posting checks report errors")
@click.pass_context
def split_transaction(
    ctx,
    txn_date: str,
    payee: str | None,
    customer: str | None,
    notes: str | None,
    parts: tuple[tuple[str, str], ...],
    entries: tuple[tuple[str, str, str], ...],
    status: str,
    allow_warnings: bool,
):
    """Add a transaction split across several accounts.

    Examples:
        bookkeeper transaction split --payee "Market" --entry 30 "#61" "#11" --entry 20 "#62" "#11"
        bookkeeper transaction split --part 10 "Food" --part 5 "Household"
    """
    db = ctx.obj["db"]
    owner = ctx.obj["owner"]
    account_service = AccountService(db, owner)
    parsed_date = parse_date_or_exit(ctx, txn_date)

    splits = [
        SplitLine(
            amount=_amount_or_exit(ctx, amount),
            account_id=resolve_optional_account(ctx, account_service, account),
        )
        for amount, account in parts
    ]
    splits.extend(
        SplitLine(
            amount=_amount_or_exit(ctx, amount),
            debit_account_id=resolve_optional_account(ctx, account_service, debit),
            credit_account_id=resolve_optional_account(ctx, account_service, credit),
        )
        for amount, debit, credit in entries
    )

    try:
        parent_id, child_ids = TransactionService(db, owner).create_split_transaction(
            date=parsed_date,
            splits=splits,
            payee=payee,
            payee_customer_id=customer,
            notes=notes,
            status=TransactionStatus(status.lower()),
            allow_warnings=allow_warnings,
        )
        click.echo(
            f"Created split transaction {parent_id} with parts {', '.join(map(str, child_ids))}"
        )
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--date", "txn_date", help="Transaction date")
@click.option("--amount", help="Transaction amount")
@click.option("--payee", help="Payee name, or empty string to clear")
@click.option("--customer", help="Customer ID, or empty string to clear")
@click.option("--notes", help="Notes, or empty string to clear")
@click.option("--account", help="Single account, or empty string to clear")
@click.option("--debit", help="Account debited, or empty string to clear")
@click.option("--credit", help="Account credited, or empty string to clear")
@click.option("--allow-warnings", is_flag=True, help="Save even when posting checks report errors")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: int,
    txn_date: str | None,
    amount: str | None,
    payee: str | None,
    customer: str | None,
    notes: str | None,
    account: str | None,
    debit: str | None,
    credit: str | None,
    allow_warnings: bool,
) -> None:
    """Update a transaction.

    Updates only the fields that are provided. Completed transactions keep
    their date, amount, accounts and customer; reconciled ones cannot be
    edited at all.

    Examples:
        bookkeeper transaction update 12 --amount 80.00
        bookkeeper transaction update 12 --notes ""  # Clear notes
    """
    db = ctx.obj["db"]
    owner = ctx.obj["owner"]
    account_service = AccountService(db, owner)

    def text(value):
        if value is None:
            return UNSET
        return value or None

    def account_ref(value):
        if value is None:
            return UNSET
        if value == "":
            return None
        return resolve_optional_account(ctx, account_service, value)

    try:
        TransactionService(db, owner).update_transaction(
            transaction_id,
            date=parse_date_or_exit(ctx, txn_date) if txn_date is not None else UNSET,
            amount=_amount_or_exit(ctx, amount) if amount is not None else UNSET,
            payee=text(payee),
            payee_customer_id=text(customer),
            notes=text(notes),
            account_id=account_ref(account),
            debit_account_id=account_ref(debit),
            credit_account_id=account_ref(credit),
            allow_warnings=allow_warnings,
        )
        click.echo(f"Updated transaction {transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool) -> None:
    """Delete a transaction.

    Deleting any part of a split transaction deletes the whole split.
    """
    service = TransactionService(ctx.obj["db"], ctx.obj["owner"])
    try:
        txn = service.require_transaction(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if txn.split_group_id and txn.closing_period_id is None:
        prompt = f"Transaction {transaction_id} is part of a split; delete the whole split?"
    else:
        prompt = f"Are you sure you want to delete transaction {transaction_id}?"
    if not yes and not click.confirm(prompt):
        click.echo("Deletion cancelled.")
        return

    try:
        deleted = service.delete_transaction(transaction_id)
        click.echo(f"Deleted transaction(s) {', '.join(map(str, deleted))}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'start of month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@period_options
@click.option("--account", help="Account ID, #code or name")
@click.option("--status", type=STATUS_CHOICES, help="Only transactions with this status")
@click.option("--no-drafts", is_flag=True, help="Hide draft transactions")
@click.option("--verbose", "-v", is_flag=True, help="Show notes and split information")
@click.pass_context
def list_transactions(
    ctx,
    start_date: str | None,
    end_date: str | None,
    account: str | None,
    status: str | None,
    no_drafts: bool,
    verbose: bool,
    **kwargs,
):
    """View transactions with optional filters, newest first."""
    db = ctx.obj["db"]
    owner = ctx.obj["owner"]
    account_service = AccountService(db, owner)

    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags_from(kwargs)
    )
    account_id = resolve_optional_account(ctx, account_service, account)

    transactions = TransactionService(db, owner).list_transactions(
        start_date=start,
        end_date=end,
        account_id=account_id,
        status=TransactionStatus(status.lower()) if status else None,
        include_drafts=not no_drafts,
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    names = {acc.id: acc.name for acc in account_service.list_accounts()}
    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 100)
    for txn in transactions:
        click.echo(
            f"{txn.id:5d} | {txn.date} | {format_amount(txn.amount):>12s} | "
            f"{txn.status.value:10s} | {(txn.payee or '')[:20]:20s} | {_posting_text(txn, names)}"
        )
        if verbose:
            if txn.split_group_id:
                click.echo(f"        split {txn.split_group_id} ({txn.split_type.value})")
            if txn.notes:
                click.echo(f"        notes: {txn.notes}")


@transaction_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int):
    """Show a transaction with its split parts, documents and posting checks."""
    db = ctx.obj["db"]
    owner = ctx.obj["owner"]
    service = TransactionService(db, owner)
    try:
        txn = service.require_transaction(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    names = {acc.id: acc.name for acc in AccountService(db, owner).list_accounts()}
    click.echo(f"\nTransaction ID: {txn.id}")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Amount: {format_amount(txn.amount)}")
    click.echo(f"  Status: {txn.status.value} (since {txn.status_changed_at:%Y-%m-%d %H:%M})")
    click.echo(f"  Payee: {txn.payee or txn.payee_customer_id or '-'}")
    click.echo(f"  Posting: {_posting_text(txn, names)}")
    if txn.notes:
        click.echo(f"  Notes: {txn.notes}")
    if txn.closing_period_id is not None:
        click.echo(f"  Closing entry of period {txn.closing_period_id}")

    if txn.is_split_parent:
        click.echo("  Parts:")
        for part in service.list_split_group(txn.split_group_id)[1:]:
            click.echo(
                f"    {part.id:5d} | {format_amount(part.amount):>12s} | {_posting_text(part, names)}"
            )

    documents = DocumentService(db, owner).list_documents(txn.id)
    click.echo(f"  Documents: {len(documents)}")
    for issue in service.validate_transaction(txn.id):
        click.echo(f"  {issue.severity}: {issue.message}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
