"""Accounting period commands."""

import click
from bookkeeper.cli.date_filters import parse_date_or_exit
from bookkeeper.cli.error_handling import handle_domain_error
from bookkeeper.domain.entities import PeriodStatus
from bookkeeper.domain.period import PeriodService, describe_period


@click.group()
def period_group():
    """Manage accounting periods."""
    pass


@period_group.command("create")
@click.argument("start_date")
@click.argument("end_date")
@click.option("--notes", help="Notes")
@click.pass_context
def create_period(ctx, start_date: str, end_date: str, notes: str | None):
    """Create an open accounting period.

    Periods may not overlap.

    Examples:
        bookkeeper period create 2024-01-01 2024-12-31
    """
    service = PeriodService(ctx.obj["db"], ctx.obj["owner"])
    start = parse_date_or_exit(ctx, start_date, "start date")
    end = parse_date_or_exit(ctx, end_date, "end date")
    try:
        period_id = service.create_period(start, end, notes=notes)
        click.echo(f"Created period {start} to {end} (ID: {period_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@period_group.command("list")
@click.option(
    "--status",
    type=click.Choice([s.value for s in PeriodStatus], case_sensitive=False),
    help="Only periods with this status",
)
@click.pass_context
def list_periods(ctx, status: str | None):
    """List accounting periods, newest first."""
    service = PeriodService(ctx.obj["db"], ctx.obj["owner"])
    periods = service.list_periods(PeriodStatus(status.lower()) if status else None)
    if not periods:
        click.echo("No periods found.")
        return

    for period in periods:
        line = f"ID: {period.id:3d} | {describe_period(period)} | {period.status.value}"
        if period.closed_at is not None:
            line += f" | closed {period.closed_at:%Y-%m-%d} by {period.closed_by}"
        if period.notes:
            line += f" | {period.notes}"
        click.echo(line)


@period_group.command("close")
@click.argument("period_id", type=int)
@click.option("--notes", help="Closing notes")
@click.pass_context
def close_period(ctx, period_id: int, notes: str | None):
    """Close a period; its transactions can no longer change.

    This only locks the period. Use 'closing run' to create closing
    entries first.
    """
    service = PeriodService(ctx.obj["db"], ctx.obj["owner"])
    try:
        period = service.close_period(period_id, notes=notes)
        click.echo(f"Closed period {describe_period(period)}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@period_group.command("reopen")
@click.argument("period_id", type=int)
@click.option("--force", is_flag=True, help="Confirm reopening a closed period")
@click.pass_context
def reopen_period(ctx, period_id: int, force: bool):
    """Reopen a closed period for corrections."""
    if not force:
        click.echo("Error: Reopening a closed period requires --force.", err=True)
        ctx.exit(1)
    service = PeriodService(ctx.obj["db"], ctx.obj["owner"])
    try:
        period = service.reopen_period(period_id)
        click.echo(f"Reopened period {describe_period(period)}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@period_group.command("delete")
@click.argument("period_id", type=int)
@click.pass_context
def delete_period(ctx, period_id: int):
    """Delete an open period and the closing entries created for it."""
    service = PeriodService(ctx.obj["db"], ctx.obj["owner"])
    try:
        removed = service.delete_period(period_id)
        click.echo(f"Deleted period {period_id}")
        if removed:
            click.echo(f"Removed {removed} closing entries")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register period commands with main CLI."""
    cli.add_command(period_group, name="period")
