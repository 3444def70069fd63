"""ABOUTME: Main CLI entry point using Click for accountdesk administration
ABOUTME: Provides subcommands for user management and database operations"""

import click

import accountdesk.logging
from accountdesk import __version__
from accountdesk.adapters.database import start_mappers
from accountdesk.config import get_log_level


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """accountdesk administration CLI."""
    # tests pass a session_factory in obj, otherwise the configured database is used
    ctx.ensure_object(dict)
    ctx.obj.setdefault("session_factory", None)

    accountdesk.logging.logging_setup(get_log_level())
    start_mappers()


@cli.command()
def version() -> None:
    """Show accountdesk version."""
    click.echo(f"accountdesk {__version__}")


# Import subcommands to register them
from .database import database  # noqa: E402
from .users import users  # noqa: E402

cli.add_command(database)
cli.add_command(users)


if __name__ == "__main__":
    cli()
