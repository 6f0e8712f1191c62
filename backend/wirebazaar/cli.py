# Overview: Flask CLI command groups for bootstrap, owner provisioning, and maintenance.

# backend/wirebazaar/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Owner provisioning (there is no public owner signup):
# - python -m flask owners create --email owner@wirebazaar.local --password "Password123" --full-name "Store Owner"
#   Create an owner identity with a password and its owner account row.
# - python -m flask owners list
#   List owner accounts.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30
#   Delete expired/revoked sessions older than the retention window.
# - python -m flask maintenance cleanup-otp --retention-days 1
#   Delete consumed/expired one-time codes.
# - python -m flask maintenance cleanup-security-events --retention-days 90
#   Delete security events older than the retention window.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import OwnerAccount
from .services.identity_service import PasswordValidationError
from .services.owner_auth_service import create_owner_account
from .services.session_service import cleanup_expired_sessions
from .services import maintenance_service
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask owners create' to add an owner.")


@click.group('owners')
def owners_group():
    """Owner account provisioning."""


@owners_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--full-name', default='', help='Display name')
@click.option('--role', default='admin', show_default=True, help='Owner role label')
@with_appcontext
def create_owner_cli(email, password, full_name, role):
    """
    Create an owner account.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit
    """
    try:
        owner = create_owner_account(email, password, full_name=full_name, role=role)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, a letter, a digit")
        return
    except (ConflictError, ValidationError) as e:
        click.echo(f"FAIL {str(e)}")
        return

    click.echo(f"PASS Created owner: {owner.email} (ID: {owner.id})")
    click.echo("SECURITY Password securely hashed with bcrypt")


@owners_group.command('list')
@with_appcontext
def list_owners_cli():
    """List all owner accounts."""
    owners = db.session.query(OwnerAccount).order_by(OwnerAccount.created_at.asc()).all()

    if not owners:
        click.echo("No owner accounts found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<38} {'Email':<30} {'Role':<10} {'Name'}")
    click.echo("="*90)

    for owner in owners:
        click.echo(f"{owner.id:<38} {owner.email:<30} {owner.role:<10} {owner.full_name}")

    click.echo("="*90 + "\n")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(retention_days):
    """Delete expired and revoked sessions older than the retention window."""
    deleted = cleanup_expired_sessions(retention_days=retention_days)
    click.echo(f"Deleted {deleted} sessions older than {retention_days} days.")


@maintenance_group.command('cleanup-otp')
@click.option('--retention-days', type=int, default=1, show_default=True)
@with_appcontext
def cleanup_otp_cli(retention_days):
    """Delete one-time codes that were consumed or have expired."""
    deleted = maintenance_service.cleanup_otp_challenges(retention_days=retention_days)
    click.echo(f"Deleted {deleted} one-time codes older than {retention_days} days.")


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_security_events_cli(retention_days):
    """
    Cleanup old security events.

    Default retention: 90 days.
    """
    deleted = maintenance_service.cleanup_security_events(retention_days=retention_days)
    click.echo(f"Deleted {deleted} security events older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(owners_group)
    app.cli.add_command(maintenance_group)
