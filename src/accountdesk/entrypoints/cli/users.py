"""ABOUTME: CLI commands for user management operations
ABOUTME: Provides commands to add, confirm and list users"""

import click

from accountdesk import bootstrap
from accountdesk.service_layer.email_confirmation_service import confirm_user
from accountdesk.service_layer.exceptions import ValidationError
from accountdesk.service_layer.user_service import create_user, get_user_by_email, list_users


@click.group()
def users() -> None:
    """User management commands."""
    pass


@users.command("add")
@click.option("--email", required=True, help="User email address")
@click.option("--password", help="Password (will prompt if not provided)")
@click.option("--confirmed", is_flag=True, help="Mark the email as confirmed straight away")
@click.pass_context
def add_user(ctx: click.Context, email: str, password: str | None, confirmed: bool) -> None:
    """Add a new user. No confirmation email is sent."""
    if not password:
        password = click.prompt("Password", hide_input=True, confirmation_prompt=True)
    assert isinstance(password, str)

    session_factory = ctx.obj["session_factory"]
    try:
        user = create_user(bootstrap.bootstrap(session_factory=session_factory), email=email, password=password)
        if confirmed:
            user = confirm_user(bootstrap.bootstrap(session_factory=session_factory), user.id)
    except ValidationError as e:
        for message in e.full_messages():
            click.echo(click.style(f"✗ Error: {message}", "red"))
        raise click.Abort() from e

    click.echo(click.style("✓ User created successfully:", "green"))
    click.echo(f"  ID: {user.id}")
    click.echo(f"  Email: {user.email}")
    click.echo(f"  Confirmed: {'Yes' if user.is_confirmed() else 'No'}")


@users.command("confirm")
@click.argument("email")
@click.pass_context
def confirm(ctx: click.Context, email: str) -> None:
    """Confirm a user's email without sending a link."""
    session_factory = ctx.obj["session_factory"]
    user = get_user_by_email(bootstrap.bootstrap(session_factory=session_factory), email)
    if not user:
        click.echo(click.style(f"✗ User with email '{email}' not found.", "red"))
        raise click.Abort()

    if not user.is_unconfirmed_or_reconfirming():
        click.echo(click.style(f"User '{email}' is already confirmed.", "yellow"))
        return

    try:
        user = confirm_user(bootstrap.bootstrap(session_factory=session_factory), user.id)
    except ValidationError as e:
        click.echo(click.style(f"✗ Error: {e}", "red"))
        raise click.Abort() from e

    click.echo(click.style(f"✓ Confirmed '{user.email}'.", "green"))


@users.command("list")
@click.option("--unconfirmed", is_flag=True, help="Only show users who have not confirmed their email")
@click.pass_context
def list_all(ctx: click.Context, unconfirmed: bool) -> None:
    """List users in the system."""
    users_list = list_users(bootstrap.bootstrap(session_factory=ctx.obj["session_factory"]))
    if unconfirmed:
        users_list = [u for u in users_list if u.is_unconfirmed()]

    if not users_list:
        click.echo("No users found matching criteria.")
        return

    click.echo(f"{'ID':<36} {'Email':<30} {'Confirmed':<9} {'Pending email':<30} {'Created':<10}")
    click.echo("-" * 119)

    for user in users_list:
        confirmed_str = "Yes" if user.is_confirmed() else "No"
        click.echo(
            f"{user.id!s:<36} {user.email:<30} {confirmed_str:<9} "
            f"{user.unconfirmed_email or '':<30} {user.created_at.strftime('%Y-%m-%d'):<10}"
        )
