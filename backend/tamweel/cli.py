# Overview: Flask CLI command groups for bootstrap, recalculation, and data maintenance.

# backend/tamweel/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, the default admin and the settings row.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Derived balances:
# - python -m flask stats recalc-users [--user-id ID]
#   Recompute debt/orderCount for one user or for every user.
# - python -m flask stats recalc-creditors
#   Recompute totalDebt for every creditor.
#
# Data maintenance:
# - python -m flask data import users ./users.json
#   Upsert a JSON array of exported documents into a collection.
# - python -m flask data reset-financials --yes
#   Delete every ledger entry and expense, then recalculate users.

import json

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import import_service, ledger_service
from .services.manager_service import ensure_default_admin
from .services.recalculation_service import (
    recalculate_all_creditors,
    recalculate_all_users,
    recalculate_user_stats,
)
from .services.settings_service import load_app_settings


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the back office: tables, default admin, settings.

    Creates:
    - Every collection table (if missing)
    - The default admin keyed by DEFAULT_ADMIN_USERNAME
    - The settings row with default exchange rate and per-kilo prices

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing back office...")

    db.create_all()
    click.echo("PASS Tables ready")

    if ensure_default_admin():
        click.echo("PASS Created default admin")
    else:
        click.echo("PASS Default admin already exists")

    settings = load_app_settings()
    click.echo(f"PASS Settings ready (exchangeRate={settings['exchangeRate']})")


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


@click.group('stats')
def stats_group():
    """Recalculation of derived balances."""


@stats_group.command('recalc-users')
@click.option('--user-id', default=None, help='Recalculate a single user')
@with_appcontext
def recalc_users(user_id):
    """Recompute debt and orderCount from orders and temporary orders."""
    if user_id:
        stats = recalculate_user_stats(user_id)
        click.echo(f"PASS {user_id}: debt={stats['debt']} orderCount={stats['orderCount']}")
        return

    count = recalculate_all_users()
    click.echo(f"PASS Recalculated {count} users")


@stats_group.command('recalc-creditors')
@with_appcontext
def recalc_creditors():
    """Recompute totalDebt for every creditor."""
    count = recalculate_all_creditors()
    click.echo(f"PASS Recalculated {count} creditors")


@click.group('data')
def data_group():
    """Import and maintenance of stored documents."""


@data_group.command('import')
@click.argument('collection')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_collection(collection, path):
    """Upsert a JSON array of documents into COLLECTION."""
    with open(path, encoding='utf-8') as handle:
        rows = json.load(handle)

    outcome = import_service.bulk_import(collection, rows)
    if not outcome["success"]:
        raise click.ClickException(outcome.get("error") or "Import failed")
    click.echo(f"PASS Imported {outcome['count']} documents into {collection}")


@data_group.command('reset-financials')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_financials(yes):
    """DANGER: Delete all ledger entries and expenses."""
    if not yes:
        click.confirm("WARN This will DELETE all transactions and expenses. Are you sure?", abort=True)

    if not ledger_service.reset_financial_reports():
        raise click.ClickException("Financial reset failed; see the log for details")
    click.echo("PASS Financial reports reset")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(stats_group)
    app.cli.add_command(data_group)
