"""Owner settings commands."""

import click
from bookkeeper.cli.error_handling import handle_domain_error
from bookkeeper.domain.settings import RECONCILIATION_CONDITIONS, SettingsService


@click.group()
def settings_group():
    """Show and change the owner's settings."""
    pass


@settings_group.command("show")
@click.pass_context
def show_settings(ctx):
    """Show the current settings."""
    settings = SettingsService(ctx.obj["db"], ctx.obj["owner"]).get_settings()
    click.echo(f"Owner: {settings.owner_id}")
    click.echo(f"Double-entry mode: {'on' if settings.double_entry_mode else 'off'}")
    click.echo(f"Automatic draft to pending: {'on' if settings.auto_draft_to_pending else 'off'}")
    click.echo(f"Minimum required documents: {settings.min_required_documents or 'all'}")
    click.echo(
        f"Reconciliation conditions: {', '.join(settings.reconciliation_conditions) or 'none'}"
    )


@settings_group.command("set")
@click.option("--double-entry/--single-entry", "double_entry", default=None, help="Posting mode")
@click.option("--auto-pending/--no-auto-pending", "auto_pending", default=None, help="Promote complete drafts to pending")
@click.option("--min-documents", type=int, help="Required document types needed to reconcile (0 = all)")
@click.option(
    "--condition",
    "conditions",
    multiple=True,
    type=click.Choice(RECONCILIATION_CONDITIONS),
    help="Reconciliation condition (repeatable; replaces the current list)",
)
@click.option("--no-conditions", is_flag=True, help="Reconcile without any condition")
@click.pass_context
def set_settings(
    ctx,
    double_entry: bool | None,
    auto_pending: bool | None,
    min_documents: int | None,
    conditions: tuple[str, ...],
    no_conditions: bool,
):
    """Change settings.

    Examples:
        bookkeeper settings set --double-entry
        bookkeeper settings set --condition hasReceipt --min-documents 2
    """
    if conditions and no_conditions:
        click.echo("Error: --condition cannot be combined with --no-conditions.", err=True)
        ctx.exit(1)

    reconciliation_conditions = None
    if no_conditions:
        reconciliation_conditions = []
    elif conditions:
        reconciliation_conditions = list(conditions)

    try:
        SettingsService(ctx.obj["db"], ctx.obj["owner"]).update_settings(
            double_entry_mode=double_entry,
            auto_draft_to_pending=auto_pending,
            min_required_documents=min_documents,
            reconciliation_conditions=reconciliation_conditions,
        )
        click.echo("Settings updated.")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register settings commands with main CLI."""
    cli.add_command(settings_group, name="settings")
