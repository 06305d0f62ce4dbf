# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/kasir/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--password "secret123"]
#   Idempotent bootstrap: creates tables and the admin user at KASIR_ACTING_USER_ID.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with roles and active status.
# - python -m flask users create --username kasir1 --full-name "Kasir Satu" --password "secret123" --role cashier
#   Create a user (prompts if options are omitted).
#
# Cash drawer:
# - python -m flask drawer balance
#   Print the current drawer balance.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User, UserRole
from .services import cash_drawer_service, users_service
from .validation import ConflictError, ValidationError, enforce_rules_user


def format_cents(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(cents), 100)
    return f"{sign}{whole}.{frac:02d}"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--username', default='admin', help='Username of the default admin')
@click.option('--password', default='admin123', help='Password of the default admin')
@with_appcontext
def init_system(username, password):
    """
    Create tables and the default admin user.

    The admin is created with the id configured as KASIR_ACTING_USER_ID so
    that API writes are attributed to an existing user. Safe to re-run.
    """
    click.echo("START Initializing kasir...")
    db.create_all()
    click.echo("PASS Tables created")

    acting_user_id = current_app.config["ACTING_USER_ID"]
    existing = db.session.get(User, acting_user_id)
    if existing:
        click.echo(f"WARN  User ID {acting_user_id} already exists ({existing.username}), skipping...")
        return

    patch = {
        "username": username,
        "full_name": "Administrator",
        "password": password,
        "role": UserRole.ADMIN,
    }
    try:
        enforce_rules_user(patch, creating=True)
        user = users_service.create_user(patch=patch, user_id=acting_user_id)
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created admin user: {user.username} (ID: {user.id})")
    click.echo("\nDefault credentials (CHANGE IN PRODUCTION!):")
    click.echo(f"   {username} / {password}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--full-name', prompt=True, help='Full name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice([r.value for r in UserRole]), prompt=True, help='Role')
@with_appcontext
def create_user_cli(username, full_name, password, role):
    """Create a new user."""
    patch = {
        "username": username.strip(),
        "full_name": full_name.strip(),
        "password": password,
        "role": UserRole(role),
    }
    try:
        enforce_rules_user(patch, creating=True)
        user = users_service.create_user(patch=patch)
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL Failed to create user: {e}")
        return

    click.echo(f"PASS Created user: {user.username} (ID: {user.id}) with role '{role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = users_service.list_users()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<5} {'Username':<20} {'Full name':<25} {'Role':<10} {'Active'}")
    click.echo("="*70)
    for user in users:
        active_str = "yes" if user.is_active else "no"
        click.echo(f"{user.id:<5} {user.username:<20} {user.full_name:<25} {user.role.value:<10} {active_str}")
    click.echo("="*70 + "\n")


@click.group('drawer')
def drawer_group():
    """Cash drawer inspection commands."""


@drawer_group.command('balance')
@with_appcontext
def drawer_balance():
    """Print the current cash drawer balance."""
    cents = cash_drawer_service.get_balance()
    click.echo(f"Cash drawer balance: {format_cents(cents)} ({cents} cents)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(drawer_group)
