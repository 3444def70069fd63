"""ABOUTME: CLI commands for database management operations
ABOUTME: Provides commands to create the tables and to reset the database"""

import os

import click
from sqlalchemy import Engine

from accountdesk.adapters.orm import metadata
from accountdesk.service_layer.unit_of_work import get_default_session_factory


@click.group()
def database() -> None:
    """Database management commands."""
    pass


def _engine(ctx: click.Context) -> Engine:
    session_factory = ctx.obj["session_factory"] or get_default_session_factory()
    with session_factory() as session:
        bind = session.get_bind()
    assert isinstance(bind, Engine)
    return bind


@database.command("init")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create any missing tables."""
    try:
        metadata.create_all(_engine(ctx))
        click.echo(click.style("✓ Database tables created.", "green"))
    except Exception as e:
        click.echo(click.style(f"✗ Error creating tables: {e}", "red"))
        raise click.Abort() from e


@database.command("reset")
@click.pass_context
def reset_db(ctx: click.Context) -> None:
    """Reset the database (drop all tables and recreate)."""
    if os.environ.get("ALLOW_RESET_DB", "") != "DANGEROUS":
        click.echo("Resetting the database is a dangerous operation. In order to enable it set the")
        click.echo("environment variable ALLOW_RESET_DB to DANGEROUS.")
        return

    click.echo(click.style("⚠️  WARNING: This will destroy ALL data in the database!", "red"))
    delete_confirm = click.prompt("Type 'delete everything' if you want to continue.")
    if delete_confirm != "delete everything":
        click.echo("Operation cancelled.")
        return

    try:
        bind = _engine(ctx)
        metadata.drop_all(bind)
        metadata.create_all(bind)
    except Exception as e:
        click.echo(click.style(f"✗ Error resetting database: {e}", "red"))
        raise click.Abort() from e

    click.echo(click.style("✓ Database reset successfully.", "green"))
