# Overview: Flask CLI command groups for bootstrap, catalog setup, and alert maintenance.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, a default location, and admin/manager/staff users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --username alice --password "Password123" --role staff
# - python -m flask users list
#
# Catalog reference data:
# - python -m flask catalog add-location --name "Aisle 3" --address "Back wall"
# - python -m flask catalog add-supplier --name "Acme Wholesale" --email orders@acme.test
#
# Alerts:
# - python -m flask alerts sweep
#   Scan every product at or below its minimum and alert where the cooldown allows.

import click
from flask.cli import with_appcontext

from .errors import StockroomError
from .extensions import db
from .models import Location, Supplier, User
from .permissions import ROLES
from .services import alert_service
from .services.auth_service import create_user


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--location', 'location_name', default='Main Stockroom', help='Default location name')
@with_appcontext
def init_system(location_name):
    """
    Create tables, a default location, and one user per role.

    All default passwords are "Password123".
    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing stockroom...")
    db.create_all()

    location = db.session.query(Location).filter_by(name=location_name).first()
    if not location:
        location = Location(name=location_name)
        db.session.add(location)
        db.session.commit()
        click.echo(f"PASS Created location: {location.name} (ID: {location.id})")
    else:
        click.echo(f"PASS Using existing location: {location.name} (ID: {location.id})")

    for role in ROLES:
        if db.session.query(User.id).filter_by(username=role).first():
            click.echo(f"SKIP User exists: {role}")
            continue
        create_user(role, "Password123", role=role, email=f"{role}@stockroom.local")
        click.echo(f"PASS Created user: {role}")

    click.echo("DONE Stockroom initialized.")


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
@click.option('--email', default=None, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), default='staff', show_default=True, help='Role')
@with_appcontext
def create_user_cli(username, email, password, role):
    """Create a user."""
    try:
        user = create_user(username, password, role=role, email=email)
    except StockroomError as exc:
        raise click.ClickException(exc.message)
    click.echo(f"PASS Created user {user.username} (ID: {user.id}, role: {user.role})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with role and active status."""
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found.")
        return
    for u in users:
        status = "active" if u.is_active else "inactive"
        click.echo(f"{u.id:>4}  {u.username:<20} {u.role:<8} {status}")


@click.group('catalog')
def catalog_group():
    """Locations and suppliers."""


@catalog_group.command('add-location')
@click.option('--name', required=True, help='Location name (unique)')
@click.option('--address', default=None, help='Address or shelf description')
@with_appcontext
def add_location(name, address):
    if db.session.query(Location.id).filter_by(name=name).first():
        raise click.ClickException(f"Location already exists: {name}")
    location = Location(name=name, address=address)
    db.session.add(location)
    db.session.commit()
    click.echo(f"PASS Created location {location.name} (ID: {location.id})")


@catalog_group.command('add-supplier')
@click.option('--name', required=True, help='Supplier name')
@click.option('--email', default=None, help='Ordering email')
@with_appcontext
def add_supplier(name, email):
    supplier = Supplier(name=name, email=email)
    db.session.add(supplier)
    db.session.commit()
    click.echo(f"PASS Created supplier {supplier.name} (ID: {supplier.id})")


@click.group('alerts')
def alerts_group():
    """Low-stock alert maintenance."""


@alerts_group.command('sweep')
@with_appcontext
def sweep_alerts():
    """Alert on every product at or below its minimum stock level."""
    alerts = alert_service.sweep_low_stock()
    click.echo(f"PASS Raised {len(alerts)} low-stock alert(s)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(alerts_group)
