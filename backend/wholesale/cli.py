# Overview: Flask CLI command groups for schema bootstrap, price inspection, and vendor credit.

# backend/wholesale/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Schema:
# - python -m flask system init-db
#   Create any missing tables (no-op for existing ones).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Pricing inspection:
# - python -m flask pricing resolve --distributor-id 1 --vendor-id 7 --product-id 42 --unit case
#   Show the effective price, its source layer, and the display label.
# - python -m flask pricing catalog --distributor-id 1 --vendor-id 7
#   Print piece/case prices for every active product as the vendor sees them.
#
# Vendor credit:
# - python -m flask credits balance --distributor-id 1 --vendor-id 7
#   Show the balance derived from the ledger.
# - python -m flask credits add --distributor-id 1 --vendor-id 7 --amount 50 --note "Damaged goods"
#   Append a credit_add ledger row.
# - python -m flask credits ledger --distributor-id 1 --vendor-id 7 --limit 20
#   List recent ledger rows, newest first.

import click
from flask.cli import with_appcontext

from .extensions import db
from .config import is_production
from .services import catalog_pricing_service, credit_service
from .services.catalog_pricing_service import PricingLookupError
from .services.credit_service import CreditError
from .services.price_display import format_money
from .services.price_resolver import coerce_unit_type


@click.group('system')
def system_group():
    """Schema bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm dropping every table')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if is_production():
        click.echo("FAIL reset-db is disabled in production")
        return
    if not yes:
        click.echo("FAIL Pass --yes to drop and recreate all tables")
        return

    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('pricing')
def pricing_group():
    """Effective price inspection commands."""


@pricing_group.command('resolve')
@click.option('--distributor-id', type=int, required=True)
@click.option('--vendor-id', type=int, default=None, help='Omit to skip vendor overrides')
@click.option('--product-id', type=int, required=True)
@click.option('--unit', default='piece', help='piece or case')
@with_appcontext
def resolve_price_cli(distributor_id, vendor_id, product_id, unit):
    """Show the effective price for one product and unit."""
    unit_type = coerce_unit_type(unit)
    if unit_type is None:
        click.echo('FAIL --unit must be "piece" or "case"')
        return

    try:
        result = catalog_pricing_service.get_effective_price(
            distributor_id=distributor_id,
            vendor_id=vendor_id,
            product_id=product_id,
            unit_type=unit_type,
        )
    except PricingLookupError as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"Product {product_id} ({unit_type.value}): {result['label']}")
    click.echo(f"Source: {result['source'] or '-'}")


@pricing_group.command('catalog')
@click.option('--distributor-id', type=int, required=True)
@click.option('--vendor-id', type=int, default=None)
@with_appcontext
def catalog_cli(distributor_id, vendor_id):
    """Print piece and case prices for every active product."""
    items = catalog_pricing_service.catalog_prices(distributor_id=distributor_id, vendor_id=vendor_id)

    if not items:
        click.echo("No products found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<6} {'Name':<36} {'Piece':<22} {'Case':<22} {'Orderable'}")
    click.echo("="*100)

    for item in items:
        labels = item["labels"]
        orderable = ", ".join(item["orderable_units"]) or "-"
        click.echo(f"{item['product_id']:<6} {item['name'][:36]:<36} {labels['piece']:<22} {labels['case']:<22} {orderable}")

    click.echo("="*100 + "\n")


@click.group('credits')
def credits_group():
    """Vendor credit ledger commands."""


@credits_group.command('balance')
@click.option('--distributor-id', type=int, required=True)
@click.option('--vendor-id', type=int, required=True)
@with_appcontext
def credit_balance_cli(distributor_id, vendor_id):
    """Show a vendor's credit balance."""
    balance = credit_service.get_vendor_credit_balance(distributor_id, vendor_id)
    click.echo(f"Vendor {vendor_id} credit balance: {format_money(balance)}")


@credits_group.command('add')
@click.option('--distributor-id', type=int, required=True)
@click.option('--vendor-id', type=int, required=True)
@click.option('--amount', required=True, help='Dollar amount, e.g. 25.00')
@click.option('--note', default=None)
@with_appcontext
def credit_add_cli(distributor_id, vendor_id, amount, note):
    """Append a credit_add entry for a vendor."""
    try:
        entry = credit_service.add_vendor_credit(distributor_id, vendor_id, amount, note=note)
    except CreditError as e:
        click.echo(f"FAIL {e}")
        return

    balance = credit_service.get_vendor_credit_balance(distributor_id, vendor_id)
    click.echo(f"PASS Added {format_money(entry.amount)} (entry {entry.id}); balance {format_money(balance)}")


@credits_group.command('ledger')
@click.option('--distributor-id', type=int, required=True)
@click.option('--vendor-id', type=int, required=True)
@click.option('--limit', type=int, default=20)
@with_appcontext
def credit_ledger_cli(distributor_id, vendor_id, limit):
    """List recent ledger entries, newest first."""
    entries = credit_service.list_ledger(distributor_id, vendor_id, limit=limit)

    if not entries:
        click.echo("No ledger entries found.")
        return

    for entry in entries:
        click.echo(
            f"{entry.id:<6} {entry.type:<16} {format_money(entry.amount):>12} "
            f"order={entry.order_id or '-'} {entry.note or ''}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(pricing_group)
    app.cli.add_command(credits_group)
