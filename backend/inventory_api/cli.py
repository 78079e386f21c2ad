# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/inventory_api/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with their role.
# - python -m flask users create --username admin --email admin@example.com --password "Password123" --role admin
#   Create a user (prompts if options are omitted).
#
# Catalog inspection:
# - python -m flask products list [--sku WIDGET-1] [--name widget]
#   List ACTIVE products with on-hand quantity.
#
# Schema migrations (Flask-Migrate):
# - python -m flask db upgrade

import click
from flask.cli import with_appcontext

from .errors import InventoryError
from .extensions import db
from .models.auth import VALID_ROLES
from .repositories.products import ProductFilter
from .services import auth_service, products_service
from .validation import MAX_PAGE_LIMIT


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (existing tables are left untouched)."""
    db.create_all()
    click.echo("PASS Database schema ready.")


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


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--phone', default=None, help='Phone number')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(VALID_ROLES)), default='user', show_default=True, help='Role')
@with_appcontext
def create_user_cli(username, email, phone, password, role):
    """
    Create a new user.

    Password must be at least 8 characters.
    """
    try:
        user = auth_service.register_user(
            username=username,
            password=password,
            email=email,
            phone=phone,
            role=role,
        )
    except InventoryError as e:
        raise click.ClickException(f"{e.code}: {e.message}")

    click.echo(f"PASS Created user '{user.username}' (id={user.id}, role={user.role})")


@users_group.command('list')
@click.option('--limit', type=int, default=MAX_PAGE_LIMIT, show_default=True)
@click.option('--offset', type=int, default=0, show_default=True)
@with_appcontext
def list_users(limit, offset):
    """List users with their role."""
    users = auth_service.list_users(limit=limit, offset=offset)

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<35} {'Role'}")
    click.echo("="*80)

    for user in users:
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<35} {user.role}")

    click.echo("="*80 + "\n")


@click.group('products')
def products_group():
    """Catalog inspection commands."""


@products_group.command('list')
@click.option('--sku', default=None, help='Exact SKU')
@click.option('--name', default=None, help='Case-insensitive name substring')
@click.option('--limit', type=int, default=MAX_PAGE_LIMIT, show_default=True)
@click.option('--offset', type=int, default=0, show_default=True)
@with_appcontext
def list_products(sku, name, limit, offset):
    """List ACTIVE products with on-hand quantity."""
    products = products_service.list_products(ProductFilter(sku=sku, name=name), limit, offset)

    if not products:
        click.echo("No products found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'SKU':<20} {'Name':<30} {'Price':>10} {'Qty':>8}")
    click.echo("="*80)

    for p in products:
        click.echo(f"{p.id:<5} {p.sku:<20} {p.name[:30]:<30} {str(p.price):>10} {p.quantity:>8}")

    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
