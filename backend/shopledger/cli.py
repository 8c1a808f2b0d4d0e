# Overview: Flask CLI command groups for bootstrap and account inspection.

# backend/shopledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables that do not exist yet (use `flask db upgrade` for migrations).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users create-owner --email owner@shop.local --password "Password123!"
#   Create an OWNER account (prompts if options are omitted).
# - python -m flask users create-cashier --email cashier@shop.local --password "Password123!"
#   Create a CASHIER account.
# - python -m flask users list
#   List all accounts with their roles.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services.auth_service import create_cashier, create_owner
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create missing tables. Existing tables and data are left alone."""
    click.echo("BUILD  Creating tables...")
    db.create_all()
    click.echo("PASS Schema ready")


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

    click.echo("PASS Database reset complete")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


def _create_account(factory, email, password, name):
    try:
        user = factory(email, password, name)
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created {user.role} account: {user.email} (ID: {user.id})")


@users_group.command('create-owner')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--name', default=None, help='Display name')
@with_appcontext
def create_owner_cli(email, password, name):
    """Create an OWNER account. Password must be at least 8 characters."""
    _create_account(create_owner, email, password, name)


@users_group.command('create-cashier')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--name', default=None, help='Display name')
@with_appcontext
def create_cashier_cli(email, password, name):
    """Create a CASHIER account."""
    _create_account(create_cashier, email, password, name)


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Role':<9} {'Email':<35} {'Name'}")
    click.echo("="*80)

    for user in users:
        click.echo(f"{user.id:<5} {user.role:<9} {user.email:<35} {user.display_name}")

    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
