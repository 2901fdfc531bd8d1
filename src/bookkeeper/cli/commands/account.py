"""Account management commands."""

import click
from bookkeeper.cli.account_resolution import resolve_account_or_exit
from bookkeeper.cli.date_filters import period_flags_from, period_options, resolve_cli_date_range
from bookkeeper.cli.error_handling import handle_domain_error
from bookkeeper.domain.account import AccountService
from bookkeeper.domain.accounting import normal_balance
from bookkeeper.domain.entities import AccountClass, AccountNode, AccountType
from bookkeeper.domain.reports import ReportService
from bookkeeper.utils.amount_parser import format_amount, parse_amount

CLASS_CHOICES = click.Choice([c.value for c in AccountClass], case_sensitive=False)
TYPE_CHOICES = click.Choice([t.value for t in AccountType], case_sensitive=False)


def _parse_amount_or_exit(ctx, value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--code", help="Hierarchical account code, e.g. 111 (child of 11)")
@click.option("--class", "account_class", type=CLASS_CHOICES, help="Accounting class")
@click.option(
    "--type",
    "account_type",
    type=TYPE_CHOICES,
    default=AccountType.NEUTRAL.value,
    show_default=True,
    help="Side restriction (debit-only, credit-only or neutral)",
)
@click.option("--read-only", is_flag=True, help="Aggregation account that sums its children")
@click.option("--closed", is_flag=True, help="Create the account closed")
@click.option("--opening-balance", help="Opening balance, e.g. 1500.00")
@click.pass_context
def create_account(
    ctx,
    name: str,
    code: str | None,
    account_class: str | None,
    account_type: str,
    read_only: bool,
    closed: bool,
    opening_balance: str | None,
):
    """Create a new account.

    Examples:
        bookkeeper account create "Assets" --code 1 --class asset --read-only
        bookkeeper account create "Cash" --code 11 --class asset --opening-balance 500
        bookkeeper account create "Old Wallet" --type debit
    """
    service = AccountService(ctx.obj["db"], ctx.obj["owner"])
    balance = _parse_amount_or_exit(ctx, opening_balance)

    try:
        account_id = service.create_account(
            name=name,
            code=code,
            account_class=AccountClass(account_class.lower()) if account_class else None,
            account_type=AccountType(account_type.lower()),
            is_open=not closed,
            is_read_only=read_only,
            opening_balance=balance or 0,
        )
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--class", "account_class", type=CLASS_CHOICES, help="Only accounts of this class")
@click.option("--open-only", is_flag=True, help="Hide closed accounts")
@click.pass_context
def list_accounts(ctx, account_class: str | None, open_only: bool):
    """List accounts ordered by code."""
    service = AccountService(ctx.obj["db"], ctx.obj["owner"])

    accounts = service.list_accounts(
        account_class=AccountClass(account_class.lower()) if account_class else None,
        include_closed=not open_only,
    )
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    for acc in accounts:
        class_label = acc.account_class.value if acc.account_class else f"legacy:{acc.account_type.value}"
        flags = []
        if acc.is_read_only:
            flags.append("read-only")
        if not acc.is_open:
            flags.append("closed")
        flag_text = f" [{', '.join(flags)}]" if flags else ""
        click.echo(
            f"ID: {acc.id:3d} | {acc.code or '':8s} | {acc.name:30s} | {class_label}{flag_text}"
        )


@account_group.command("show")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def show_account(ctx, account: str):
    """Show account details.

    ACCOUNT can be an ID, a code prefixed with # (e.g. #111) or a name.
    """
    service = AccountService(ctx.obj["db"], ctx.obj["owner"])
    account_id = resolve_account_or_exit(ctx, service, account)
    acc = service.require_account(account_id)

    click.echo(f"\nAccount {acc.id}: {acc.name}")
    click.echo(f"  Code: {acc.code or '-'}")
    if acc.account_class is not None:
        click.echo(f"  Class: {acc.account_class.value}")
    else:
        suggested = service.suggest_class(acc.id)
        hint = f" (suggested: {suggested.value})" if suggested else ""
        click.echo(f"  Class: none, legacy type {acc.account_type.value}{hint}")
    click.echo(f"  Type: {acc.account_type.value}")
    click.echo(f"  Normal balance: {normal_balance(acc.classification).value}")
    click.echo(f"  Open: {'yes' if acc.is_open else 'no'}")
    click.echo(f"  Read-only: {'yes' if acc.is_read_only else 'no'}")
    click.echo(f"  Opening balance: {format_amount(acc.opening_balance)}")


@account_group.command("update")
@click.argument("account", metavar="ACCOUNT")
@click.option("--name", help="New account name")
@click.option("--code", help="New account code, or empty string to clear")
@click.option("--class", "account_class", type=CLASS_CHOICES, help="New accounting class")
@click.option("--clear-class", is_flag=True, help="Remove the class (legacy account)")
@click.option("--type", "account_type", type=TYPE_CHOICES, help="New side restriction")
@click.option("--open/--close", "is_open", default=None, help="Open or close the account")
@click.option("--read-only/--postable", "is_read_only", default=None, help="Aggregation flag")
@click.option("--opening-balance", help="New opening balance")
@click.pass_context
def update_account(
    ctx,
    account: str,
    name: str | None,
    code: str | None,
    account_class: str | None,
    clear_class: bool,
    account_type: str | None,
    is_open: bool | None,
    is_read_only: bool | None,
    opening_balance: str | None,
) -> None:
    """Update an account.

    Updates only the fields that are provided.

    Examples:
        bookkeeper account update "Cash" --code 111
        bookkeeper account update 4 --close
        bookkeeper account update "#12" --code ""  # Clear code
    """
    service = AccountService(ctx.obj["db"], ctx.obj["owner"])
    account_id = resolve_account_or_exit(ctx, service, account)
    balance = _parse_amount_or_exit(ctx, opening_balance)

    try:
        updated = service.update_account(
            account_id,
            name=name,
            code=code or None,
            account_class=AccountClass(account_class.lower()) if account_class else None,
            account_type=AccountType(account_type.lower()) if account_type else None,
            is_open=is_open,
            is_read_only=is_read_only,
            opening_balance=balance,
            clear_code=code == "",
            clear_class=clear_class,
        )
        click.echo(f"Updated account '{updated.name}' (ID: {updated.id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def delete_account(ctx, account: str) -> None:
    """Delete an account.

    The account can only be deleted if no transaction posts to it.

    Examples:
        bookkeeper account delete "Old Wallet"
        bookkeeper account delete 7
    """
    service = AccountService(ctx.obj["db"], ctx.obj["owner"])
    account_id = resolve_account_or_exit(ctx, service, account)
    account_obj = service.require_account(account_id)

    # Confirm deletion
    if not click.confirm(f"Are you sure you want to delete account '{account_obj.name}' (ID: {account_id})?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(account_id)
        click.echo(f"Deleted account '{account_obj.name}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


def _echo_tree(nodes: list[AccountNode], invalid_ids: set[int]) -> None:
    for node in nodes:
        acc = node.account
        marker = ""
        if not acc.is_open:
            marker = " (closed)"
        elif acc.id in invalid_ids:
            marker = " (open under a closed parent)"
        click.echo(f"{'    ' * node.level}{acc.code or '-'} {acc.name}{marker}")
        _echo_tree(node.children, invalid_ids)


@account_group.command("tree")
@click.option("--open-only", is_flag=True, help="Hide closed accounts")
@click.pass_context
def account_tree(ctx, open_only: bool):
    """Show the chart of accounts as a tree by code."""
    service = AccountService(ctx.obj["db"], ctx.obj["owner"])
    roots = service.get_tree(include_closed=not open_only)
    if not roots:
        click.echo("No accounts found.")
        return
    _echo_tree(roots, service.invalid_config_account_ids())


@account_group.command("balances")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'start of year')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@period_options
@click.pass_context
def account_balances(ctx, start_date: str | None, end_date: str | None, **kwargs):
    """Show debit total, credit total and balance of every account.

    Opening balances are included only when no start date is given.
    """
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags_from(kwargs)
    )
    summaries = ReportService(ctx.obj["db"], ctx.obj["owner"]).account_balances(start, end)
    if not summaries:
        click.echo("No accounts found.")
        return

    click.echo(f"\n{'Code':8s} {'Account':30s} {'Debits':>14s} {'Credits':>14s} {'Balance':>14s}")
    click.echo("-" * 84)
    for s in summaries:
        flag = "" if s.is_normal else " !"
        click.echo(
            f"{s.code or '':8s} {s.account_name[:30]:30s} {format_amount(s.debit_total):>14s} "
            f"{format_amount(s.credit_total):>14s} {format_amount(s.balance):>14s}{flag}"
        )


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
