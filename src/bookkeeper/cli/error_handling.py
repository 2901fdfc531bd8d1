"""CLI error handling helpers."""

import click

from bookkeeper.domain.errors import DomainError, PeriodOverlapError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, PeriodOverlapError):
        for period in error.conflicts:
            click.echo(
                f"  Conflicts with period {period.id}: {period.start_date} to "
                f"{period.end_date} ({period.status.value})",
                err=True,
            )
    ctx.exit(1)
