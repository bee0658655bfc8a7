# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/recap/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create-super-admin --email admin@recap.local --password "Password123!"
#   Create a super admin account.
#
# Franchises (MULTI-TENANT):
# - python -m flask franchises list [--active-only]
# - python -m flask franchises create --name "Cabang A" --email a@recap.local --password "Password123!" [--profit-sharing 10]
#
# Revenue share:
# - python -m flask profit-sharing recalculate --month 1 --year 2026
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
# - python -m flask maintenance cleanup-security-events --retention-days 90

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import ROLE_SUPER_ADMIN
from .services.auth_service import create_user, PasswordValidationError
from .services import franchise_service, maintenance_service, profit_sharing_service, session_service
from .services.franchise_service import FranchiseError
from .services.profit_sharing_service import ProfitSharingError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create every table that does not exist yet.

    Use migrations (flask db upgrade) for managed deployments.
    """
    click.echo("START Initializing schema...")
    db.create_all()
    click.echo("PASS Schema ready. Create a super admin with 'python -m flask users create-super-admin'.")


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


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User bootstrap commands."""


@users_group.command('create-super-admin')
@click.option('--email', prompt=True, help='Login email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_super_admin_cli(email, password):
    """Create a super admin (sees and manages every franchise)."""
    try:
        user = create_user(email, password, ROLE_SUPER_ADMIN)
    except PasswordValidationError as e:
        click.echo(f"FAIL {e}")
        return
    except ValueError as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created super admin: {user.email} (ID: {user.id})")


# =============================================================================
# FRANCHISE MANAGEMENT COMMANDS
# =============================================================================

@click.group('franchises')
def franchises_group():
    """Franchise (tenant) management commands."""


@franchises_group.command('list')
@click.option('--active-only', is_flag=True, help='Hide inactive franchises')
@with_appcontext
def list_franchises_cli(active_only):
    """List all franchises."""
    franchises = franchise_service.list_franchises(active_only=active_only)

    if not franchises:
        click.echo("No franchises found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<30} {'Owner':<30} {'Share %':<8} {'Active'}")
    click.echo("="*80)

    for franchise in franchises:
        email = franchise.owner.email if franchise.owner else '-'
        active_str = "Yes" if franchise.is_active else "No"
        click.echo(
            f"{franchise.id:<5} {franchise.name:<30} {email:<30} "
            f"{str(franchise.profit_sharing_percent):<8} {active_str}"
        )

    click.echo("="*80 + "\n")


@franchises_group.command('create')
@click.option('--name', required=True, help='Franchise name')
@click.option('--email', required=True, help='Owner login email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Owner password')
@click.option('--profit-sharing', 'profit_sharing', default=None, help='Revenue share percent (default from config)')
@with_appcontext
def create_franchise_cli(name, email, password, profit_sharing):
    """Provision a franchise with its owner account and default fee settings."""
    try:
        franchise = franchise_service.create_franchise_account(
            email=email,
            password=password,
            name=name,
            profit_sharing_percent=profit_sharing,
        )
    except (FranchiseError, PasswordValidationError) as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created franchise: {franchise.name} (ID: {franchise.id}, owner: {email})")


# =============================================================================
# REVENUE SHARE COMMANDS
# =============================================================================

@click.group('profit-sharing')
def profit_sharing_group():
    """Revenue-share payment commands."""


@profit_sharing_group.command('recalculate')
@click.option('--month', type=int, required=True, help='Month (1-12)')
@click.option('--year', type=int, required=True, help='Year')
@with_appcontext
def recalculate_cli(month, year):
    """Recompute the payment rows of every active franchise for one month."""
    try:
        payments = profit_sharing_service.recalculate_period(month, year)
    except ProfitSharingError as e:
        click.echo(f"FAIL {e}")
        return

    for payment in payments:
        click.echo(
            f"{payment.franchise_id:<5} revenue={payment.total_revenue} "
            f"share={payment.profit_sharing_amount} status={payment.payment_status}"
        )
    click.echo(f"PASS Recalculated {len(payments)} payments for {year:04d}-{month:02d}")


# =============================================================================
# MAINTENANCE COMMANDS
# =============================================================================

@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired and revoked session tokens older than 30 days."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} expired or revoked sessions.")


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_security_events_cli(retention_days):
    """
    Cleanup old security events.

    Default retention: 90 days.
    """
    try:
        deleted = maintenance_service.cleanup_security_events(retention_days=retention_days)
    except ValueError as e:
        click.echo(f"FAIL {e}")
        return
    click.echo(f"Deleted {deleted} security events older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(franchises_group)  # Multi-tenant franchise management
    app.cli.add_command(profit_sharing_group)
    app.cli.add_command(maintenance_group)
