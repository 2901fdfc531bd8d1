"""Transaction status workflow commands."""

import click
from bookkeeper.cli.error_handling import handle_domain_error
from bookkeeper.domain.entities import TransactionStatus
from bookkeeper.domain.status import StatusService

STATUS_CHOICES = click.Choice([s.value for s in TransactionStatus], case_sensitive=False)


@click.group()
def status_group():
    """Move transactions through draft, pending, completed and reconciled."""
    pass


@status_group.command("advance")
@click.argument("transaction_id", type=int)
@click.option(
    "--expected",
    type=STATUS_CHOICES,
    help="Status you last saw; the change fails if it has moved on since",
)
@click.option("--notes", help="Note recorded in the status history")
@click.pass_context
def advance_status(ctx, transaction_id: int, expected: str | None, notes: str | None):
    """Advance a transaction to its next status.

    Reconciling is refused, with the reasons listed, until every configured
    reconciliation condition is met.

    Examples:
        bookkeeper status advance 12
        bookkeeper status advance 12 --expected completed --notes "Matched bank statement"
    """
    service = StatusService(ctx.obj["db"], ctx.obj["owner"])
    try:
        result = service.advance(
            transaction_id,
            expected_status=TransactionStatus(expected.lower()) if expected else None,
            notes=notes,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if result.blocked:
        click.echo(f"Error: Transaction {transaction_id} cannot be reconciled yet:", err=True)
        for reason in result.reasons:
            click.echo(f"  - {reason}", err=True)
        ctx.exit(1)

    click.echo(
        f"Transaction {transaction_id}: {result.from_status.value} -> {result.to_status.value}"
    )


@status_group.command("unreconcile")
@click.argument("transaction_id", type=int)
@click.option("--reason", required=True, help="Why the transaction is reopened (max 500 characters)")
@click.pass_context
def unreconcile(ctx, transaction_id: int, reason: str):
    """Move a reconciled transaction back to completed."""
    service = StatusService(ctx.obj["db"], ctx.obj["owner"])
    try:
        service.unreconcile(transaction_id, reason)
        click.echo(f"Transaction {transaction_id}: reconciled -> completed")
    except ValueError as e:
        handle_domain_error(ctx, e)


@status_group.command("history")
@click.argument("transaction_id", type=int)
@click.pass_context
def status_history(ctx, transaction_id: int):
    """Show the status history of a transaction, newest first."""
    service = StatusService(ctx.obj["db"], ctx.obj["owner"])
    try:
        history = service.get_history(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not history:
        click.echo("No status history found.")
        return

    for entry in history:
        source = entry.from_status.value if entry.from_status else "(new)"
        line = f"{entry.changed_at:%Y-%m-%d %H:%M} | {source} -> {entry.to_status.value} | {entry.changed_by}"
        if entry.notes:
            line += f" | {entry.notes}"
        click.echo(line)


@status_group.command("check")
@click.argument("transaction_id", type=int)
@click.pass_context
def check_reconciliation(ctx, transaction_id: int):
    """Show which reconciliation conditions a transaction meets."""
    service = StatusService(ctx.obj["db"], ctx.obj["owner"])
    try:
        check = service.check_reconciliation(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    for condition in check.conditions:
        mark = "ok" if condition.met else "missing"
        text = f"  [{mark}] {condition.name}"
        if condition.message:
            text += f": {condition.message}"
        click.echo(text)
    click.echo("Ready to reconcile." if check.allowed else "Not ready to reconcile.")


def register_commands(cli):
    """Register status commands with main CLI."""
    cli.add_command(status_group, name="status")
