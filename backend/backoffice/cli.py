# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/backoffice/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP (PowerShell: $env:FLASK_APP="backoffice:create_app").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system purge-sessions
#   Delete expired and revoked admin sessions.
#
# Admin credentials:
# - python -m flask auth hash-password
#   Prompt for a password and print the bcrypt hash for ADMIN_PASSWORD_HASH.
#
# Inspection:
# - python -m flask cash balance
#   Print the current cash drawer balance.
# - python -m flask catalog low-stock [--threshold 5]
#   List products at or below the low-stock threshold.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import SessionToken
from .services import ledger_service, report_service
from .services.auth_service import hash_password, PasswordValidationError
from .time_utils import utcnow


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create any missing tables."""
    db.create_all()
    click.echo("PASS Schema ready.")


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

    click.echo("PASS Database reset complete.")


@system_group.command('purge-sessions')
@with_appcontext
def purge_sessions():
    """Delete expired and revoked admin sessions."""
    now = utcnow()
    deleted = (
        db.session.query(SessionToken)
        .filter((SessionToken.expires_at <= now) | (SessionToken.revoked_at.isnot(None)))
        .delete(synchronize_session=False)
    )
    db.session.commit()
    click.echo(f"PASS Removed {deleted} session(s).")


@click.group('auth')
def auth_group():
    """Admin credential helpers."""


@auth_group.command('hash-password')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Admin password')
def hash_password_cli(password):
    """Print a bcrypt hash suitable for ADMIN_PASSWORD_HASH."""
    try:
        click.echo(hash_password(password))
    except PasswordValidationError as e:
        raise click.ClickException(str(e))


@click.group('cash')
def cash_group():
    """Cash drawer inspection."""


@cash_group.command('balance')
@with_appcontext
def cash_balance():
    """Print the current drawer balance."""
    label = current_app.config["CURRENCY_LABEL"]
    click.echo(f"{label} {ledger_service.current_balance()}")


@click.group('catalog')
def catalog_group():
    """Catalog inspection."""


@catalog_group.command('low-stock')
@click.option('--threshold', type=int, default=None, help='Override LOW_STOCK_THRESHOLD')
@with_appcontext
def low_stock_cli(threshold):
    """List products at or below the low-stock threshold."""
    products = report_service.low_stock(threshold)
    if not products:
        click.echo("No products below threshold.")
        return

    click.echo(f"{'ID':<6} {'Code':<16} {'Name':<32} {'Stock':>6}")
    click.echo("-" * 63)
    for p in products:
        click.echo(f"{p.id:<6} {(p.code or '-'):<16} {p.name[:32]:<32} {p.stock:>6}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(auth_group)
    app.cli.add_command(cash_group)
    app.cli.add_command(catalog_group)
