"""Financial report commands."""

import click
from bookkeeper.cli.account_resolution import resolve_account_or_exit
from bookkeeper.cli.date_filters import (
    parse_date_or_exit,
    period_flags_from,
    period_options,
    resolve_cli_date_range,
)
from bookkeeper.cli.error_handling import handle_domain_error
from bookkeeper.domain.account import AccountService
from bookkeeper.domain.entities import StatementLine, TransactionStatus
from bookkeeper.domain.reports import ReportService
from bookkeeper.utils.amount_parser import format_amount


def _echo_section(title: str, lines: tuple[StatementLine, ...], total: int) -> None:
    click.echo(f"\n{title}")
    click.echo("-" * 60)
    for line in lines:
        indent = "  " * line.level
        label = f"{indent}{line.code or ''} {line.name}"
        click.echo(f"{label[:44]:44s} {format_amount(line.balance):>15s}")
    click.echo(f"{'Total ' + title.lower():44s} {format_amount(total):>15s}")


@click.group()
def report_group():
    """Financial statements and account reports."""
    pass


@report_group.command("income-statement")
@click.option("--start-date", help="First day (defaults to January 1 of the end year)")
@click.option("--end-date", help="Last day (defaults to today)")
@period_options
@click.option("--summary", is_flag=True, help="Only show aggregate (read-only) accounts")
@click.pass_context
def income_statement(ctx, start_date: str | None, end_date: str | None, summary: bool, **kwargs):
    """Income, expenses and net income over a date range."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags_from(kwargs)
    )
    try:
        statement = ReportService(ctx.obj["db"], ctx.obj["owner"]).income_statement(
            start, end, summary_only=summary
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Income statement {statement.start_date} to {statement.end_date}")
    _echo_section("Income", statement.income_accounts, statement.total_income)
    _echo_section("Expenses", statement.expense_accounts, statement.total_expenses)
    click.echo(f"\n{'Net income':44s} {format_amount(statement.net_income):>15s}")


@report_group.command("balance-sheet")
@click.option("--as-of", help="Balance sheet date (defaults to today)")
@click.option("--summary", is_flag=True, help="Only show aggregate (read-only) accounts")
@click.pass_context
def balance_sheet(ctx, as_of: str | None, summary: bool):
    """Assets, liabilities and equity as of a date."""
    as_of_date = parse_date_or_exit(ctx, as_of, "as-of date")
    sheet = ReportService(ctx.obj["db"], ctx.obj["owner"]).balance_sheet(
        as_of_date, summary_only=summary
    )

    click.echo(f"Balance sheet as of {sheet.as_of_date}")
    _echo_section("Assets", sheet.asset_accounts, sheet.totals.total_assets)
    _echo_section("Liabilities", sheet.liability_accounts, sheet.totals.total_liabilities)
    _echo_section("Equity", sheet.equity_accounts, sheet.totals.total_equity)
    click.echo(
        f"\n{'Liabilities and equity':44s} {format_amount(sheet.totals.liabilities_and_equity):>15s}"
    )
    if sheet.is_balanced:
        click.echo("Balanced.")
    else:
        click.echo(f"Not balanced: difference {format_amount(sheet.difference)}")


@report_group.command("trial-balance")
@click.option("--start-date", help="Start date")
@click.option("--end-date", help="End date")
@period_options
@click.pass_context
def trial_balance(ctx, start_date: str | None, end_date: str | None, **kwargs):
    """Check that debit balances equal credit balances."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags_from(kwargs)
    )
    result = ReportService(ctx.obj["db"], ctx.obj["owner"]).trial_balance(start, end)
    click.echo(f"Total debits:  {format_amount(result.total_debits):>15s}")
    click.echo(f"Total credits: {format_amount(result.total_credits):>15s}")
    if result.is_balanced:
        click.echo("Balanced.")
    else:
        click.echo(f"Not balanced: difference {format_amount(result.difference)}")


@report_group.command("ledger")
@click.argument("account", metavar="ACCOUNT")
@click.option("--start-date", help="First day shown; earlier activity still counts")
@click.option("--end-date", help="Last day shown")
@click.option("--month-ends", is_flag=True, help="Also show month-end balances")
@click.pass_context
def account_ledger(ctx, account: str, start_date: str | None, end_date: str | None, month_ends: bool):
    """Register of one account with running balances, newest first.

    Drafts are listed but do not move the balance.
    """
    db = ctx.obj["db"]
    owner = ctx.obj["owner"]
    account_id = resolve_account_or_exit(ctx, AccountService(db, owner), account)
    try:
        ledger = ReportService(db, owner).account_ledger(
            account_id,
            parse_date_or_exit(ctx, start_date, "start date"),
            parse_date_or_exit(ctx, end_date, "end date"),
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Ledger of {ledger.account.name} (opening {format_amount(ledger.account.opening_balance)})")
    if not ledger.entries:
        click.echo("No transactions found.")
    for entry in ledger.entries:
        txn = entry.transaction
        draft = " (draft)" if txn.status == TransactionStatus.DRAFT else ""
        click.echo(
            f"{txn.date} | {(txn.payee or '')[:24]:24s} | {format_amount(entry.debit_amount):>12s} | "
            f"{format_amount(entry.credit_amount):>12s} | {format_amount(entry.balance):>12s}{draft}"
        )
    if month_ends and ledger.month_end_balances:
        click.echo("\nMonth-end balances:")
        for marker in ledger.month_end_balances:
            click.echo(f"  {marker.year}-{marker.month:02d} {format_amount(marker.end_balance):>12s}")
    click.echo(f"Closing balance: {format_amount(ledger.closing_balance)}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
