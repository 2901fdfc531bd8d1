"""Main CLI entry point."""

import logging

import click
from bookkeeper.database.factories import create_sqlite_database
from bookkeeper.domain.settings import DEFAULT_OWNER

# Import and register all commands at module level
from bookkeeper.cli.commands import (
    account,
    transaction,
    status,
    period,
    closing,
    report,
    settings,
    document,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides BOOKKEEPER_DB_PATH environment variable)",
    envvar="BOOKKEEPER_DB_PATH",
)
@click.option(
    "--owner",
    default=DEFAULT_OWNER,
    show_default=True,
    envvar="BOOKKEEPER_OWNER",
    help="Owner whose books are used (overrides BOOKKEEPER_OWNER)",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="BOOKKEEPER_LOG_LEVEL",
    help="Logging verbosity",
)
@click.pass_context
def cli(ctx, db_path: str | None, owner: str, log_level: str):
    """Bookkeeper - double-entry bookkeeping ledger.

    Keep a chart of accounts, record transactions through their status
    workflow, produce financial statements, and close accounting periods.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["owner"] = owner


# Register all commands
account.register_commands(cli)
transaction.register_commands(cli)
status.register_commands(cli)
period.register_commands(cli)
closing.register_commands(cli)
report.register_commands(cli)
settings.register_commands(cli)
document.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
