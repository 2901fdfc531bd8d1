"""Period closing commands."""

import click
from bookkeeper.cli.account_resolution import resolve_account_or_exit, resolve_optional_account
from bookkeeper.cli.date_filters import parse_date_or_exit
from bookkeeper.cli.error_handling import handle_domain_error
from bookkeeper.domain.account import AccountService
from bookkeeper.domain.closing import ClosingService, ClosingStep, ClosingWorkflow
from bookkeeper.domain.entities import ClosingPreview, TransactionStatus
from bookkeeper.utils.amount_parser import format_amount

pnl_option = click.option(
    "--pnl-account", required=True, help="Profit and loss account (ID, #code or name)"
)
retained_option = click.option(
    "--retained-earnings", help="Retained earnings account to sweep the net result into"
)


def _echo_preview(preview: ClosingPreview) -> None:
    click.echo(f"\nClosing preview {preview.start_date} to {preview.end_date}")
    click.echo("Income:")
    for activity in preview.income_accounts:
        click.echo(f"  {activity.account_code or '':8s} {activity.account_name:30s} {format_amount(activity.balance):>14s}")
    click.echo(f"  {'Total income':39s} {format_amount(preview.total_income):>14s}")
    click.echo("Expenses:")
    for activity in preview.expense_accounts:
        click.echo(f"  {activity.account_code or '':8s} {activity.account_name:30s} {format_amount(activity.balance):>14s}")
    click.echo(f"  {'Total expenses':39s} {format_amount(preview.total_expenses):>14s}")
    click.echo(f"Net result: {format_amount(preview.net_result)}")
    click.echo(f"Closes into: {preview.profit_and_loss_account.name}")
    if preview.retained_earnings_account is not None:
        click.echo(f"Retained earnings: {preview.retained_earnings_account.name}")


@click.group()
def closing_group():
    """Close accounting periods."""
    pass


@closing_group.command("preview")
@click.argument("start_date")
@click.argument("end_date")
@pnl_option
@retained_option
@click.pass_context
def preview_closing(ctx, start_date: str, end_date: str, pnl_account: str, retained_earnings: str | None):
    """Show the income and expense activity a closing would move."""
    db = ctx.obj["db"]
    owner = ctx.obj["owner"]
    accounts = AccountService(db, owner)
    start = parse_date_or_exit(ctx, start_date, "start date")
    end = parse_date_or_exit(ctx, end_date, "end date")
    pnl_id = resolve_account_or_exit(ctx, accounts, pnl_account)
    retained_id = resolve_optional_account(ctx, accounts, retained_earnings)

    try:
        preview = ClosingService(db, owner).preview_closing(start, end, pnl_id, retained_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    _echo_preview(preview)


@closing_group.command("entries")
@click.argument("period_id", type=int)
@pnl_option
@retained_option
@click.option("--date", "closing_date", help="Closing entry date (defaults to the period end)")
@click.pass_context
def create_entries(
    ctx, period_id: int, pnl_account: str, retained_earnings: str | None, closing_date: str | None
):
    """Create closing entries for a period without locking it."""
    db = ctx.obj["db"]
    owner = ctx.obj["owner"]
    accounts = AccountService(db, owner)
    pnl_id = resolve_account_or_exit(ctx, accounts, pnl_account)
    retained_id = resolve_optional_account(ctx, accounts, retained_earnings)

    try:
        ids = ClosingService(db, owner).create_closing_entries(
            period_id,
            pnl_id,
            retained_id,
            closing_date=parse_date_or_exit(ctx, closing_date, "closing date"),
        )
        click.echo(f"Created {len(ids)} closing entries: {', '.join(map(str, ids))}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@closing_group.command("run")
@click.option("--start-date", help="First day of a new period to close")
@click.option("--end-date", help="Last day of a new period to close")
@click.option("--period-id", type=int, help="Resume closing an existing period")
@pnl_option
@retained_option
@click.option("--date", "closing_date", help="Closing entry date (defaults to the period end)")
@click.option(
    "--entry-status",
    type=click.Choice(
        [s.value for s in TransactionStatus if s != TransactionStatus.DRAFT],
        case_sensitive=False,
    ),
    default=TransactionStatus.COMPLETED.value,
    show_default=True,
    help="Status of the closing entries",
)
@click.option("--skip-empty", is_flag=True, help="Lock a period without activity instead of failing")
@click.option("--notes", help="Notes stored on the period")
@click.pass_context
def run_closing(
    ctx,
    start_date: str | None,
    end_date: str | None,
    period_id: int | None,
    pnl_account: str,
    retained_earnings: str | None,
    closing_date: str | None,
    entry_status: str,
    skip_empty: bool,
    notes: str | None,
):
    """Open, preview, create entries for and lock a period in one go.

    An interrupted run resumes where it stopped when given --period-id.

    Examples:
        bookkeeper closing run --start-date 2024-01-01 --end-date 2024-12-31 --pnl-account "#39"
        bookkeeper closing run --period-id 3 --pnl-account "#39" --retained-earnings "#32"
    """
    db = ctx.obj["db"]
    owner = ctx.obj["owner"]
    if period_id is not None and (start_date or end_date):
        click.echo("Error: --period-id cannot be combined with --start-date or --end-date.", err=True)
        ctx.exit(1)

    accounts = AccountService(db, owner)
    workflow = ClosingWorkflow(
        db,
        resolve_account_or_exit(ctx, accounts, pnl_account),
        resolve_optional_account(ctx, accounts, retained_earnings),
        owner_id=owner,
        entry_status=TransactionStatus(entry_status.lower()),
    )

    try:
        if period_id is not None and workflow.state(period_id).step == ClosingStep.LOCKED:
            click.echo(f"Period {period_id} is already closed.")
            return
        state = workflow.run(
            start_date=parse_date_or_exit(ctx, start_date, "start date"),
            end_date=parse_date_or_exit(ctx, end_date, "end date"),
            period_id=period_id,
            closing_date=parse_date_or_exit(ctx, closing_date, "closing date"),
            notes=notes,
            skip_empty=skip_empty,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if state.preview is not None:
        _echo_preview(state.preview)
    click.echo(
        f"\nClosed period {state.period.id} ({state.period.start_date} to "
        f"{state.period.end_date}) with {len(state.entry_ids)} closing entries"
    )


def register_commands(cli):
    """Register closing commands with main CLI."""
    cli.add_command(closing_group, name="closing")
