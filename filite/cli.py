#!/usr/bin/env python3
"""CLI commands for provisioning users, inspecting entries and running the server."""

import asyncio

import click

from filite.config import get_settings
from filite.database import Database
from filite.main import configure_logging
from filite.models.enums import EntryKind
from filite.services.entries import EntryStore
from filite.services.hasher import CredentialHasher
from filite.services.users import UserStore, validate_username


def _open_database() -> Database:
    settings = get_settings()
    configure_logging(settings.log_level)
    database = Database.from_settings(settings)
    database.create_all()
    return database


def _username(ctx, param, value):
    try:
        return validate_username(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


@click.group()
def cli():
    """filite management commands."""
    pass


@cli.command("init-db")
def init_db():
    """Create the entries and users tables."""
    database = _open_database()
    database.dispose()
    click.echo(f"Database ready at {get_settings().database_url}")


@cli.command("create-user")
@click.argument("username", callback=_username)
@click.option("--admin", is_flag=True, help="Allow deleting any entry")
@click.password_option(help="Password for the new user")
def create_user(username, admin, password):
    """Create a user allowed to upload entries."""
    settings = get_settings()
    database = _open_database()
    hasher = CredentialHasher(max_workers=1)
    try:
        with database.session() as db:
            created = asyncio.run(
                UserStore(db, hasher).create(username, password, admin, settings.hash_params)
            )
    finally:
        hasher.shutdown()
        database.dispose()

    if not created:
        raise click.ClickException(f"User {username} already exists")
    click.echo(f"Created {'admin ' if admin else ''}user {username}")


@cli.command("delete-user")
@click.argument("username")
def delete_user(username):
    """Delete a user. Their entries are kept."""
    database = _open_database()
    try:
        with database.session() as db:
            user = UserStore(db).delete(username)
    finally:
        database.dispose()

    if user is None:
        raise click.ClickException(f"User {username} not found")
    click.echo(f"Deleted user {username}")


@cli.command("list-users")
def list_users():
    """List users and their roles."""
    database = _open_database()
    try:
        with database.session() as db:
            users = UserStore(db).list_users()
    finally:
        database.dispose()

    if not users:
        click.echo("No users")
        return
    for user in users:
        click.echo(f"{user.id}\t{'admin' if user.admin else 'user'}")


@cli.command("list-entries")
@click.option(
    "--kind", type=click.Choice([kind.value for kind in EntryKind]), help="Only this kind"
)
@click.option("--owner", help="Only entries owned by this user")
@click.option("--limit", default=100, type=click.IntRange(min=1), help="Maximum rows")
@click.option("--offset", default=0, type=click.IntRange(min=0), help="Rows to skip")
def list_entries(kind, owner, limit, offset):
    """List entries oldest first without counting views."""
    database = _open_database()
    try:
        with database.session() as db:
            entries = EntryStore(db).list_entries(
                limit, offset, EntryKind(kind) if kind else None, owner
            )
    finally:
        database.dispose()

    if not entries:
        click.echo("No entries")
        return
    for entry in entries:
        created = entry.created.isoformat(timespec="seconds")
        click.echo(f"{entry.id}\t{entry.kind.value}\t{entry.owner}\t{entry.views}\t{created}")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8080, type=int, help="Port to bind to")
def serve(host, port):
    """Run the HTTP server."""
    import uvicorn

    uvicorn.run("filite.main:app", host=host, port=port)


if __name__ == "__main__":
    cli()
