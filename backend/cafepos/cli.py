# Overview: Flask CLI command groups for bootstrap, seeding and inspection.

# backend/cafepos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog:
# - python -m flask catalog seed
#   Idempotently insert the sample café menu and supplies.
# - python -m flask catalog list
#   List products with price, stock and status.
#
# Sales:
# - python -m flask sales summary [--today 2026-10-19]
#   Print the dashboard metrics.

import click
from flask.cli import with_appcontext

from .extensions import db
from .formatting import format_money
from .models import Category, Product, InventoryProduct
from .models.inventory import supply_status
from .services import analytics_service, catalog_service
from .time_utils import parse_iso_date


SAMPLE_MENU = {
    "Coffee": [
        ("Americano", 9000, 40),
        ("Cafe Latte", 12000, 40),
        ("Cappuccino", 12000, 30),
        ("Spanish Latte", 14000, 25),
    ],
    "Non-Coffee": [
        ("Matcha Latte", 13000, 20),
        ("Chocolate", 11000, 20),
    ],
    "Pastries": [
        ("Butter Croissant", 8500, 12),
        ("Ensaymada", 6500, 15),
    ],
}

SAMPLE_SUPPLIES = [
    ("Espresso Beans", "Coffee", 95000, 8, 3, "kg"),
    ("Fresh Milk", "Dairy", 9500, 10, 12, "L"),
    ("12oz Cups", "Packaging", 350, 400, 100, "pcs"),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables."""
    db.create_all()
    click.echo("PASS Tables created")


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
    click.echo("BUILD  Creating tables...")
    db.create_all()
    click.echo("PASS Database reset")


@click.group('catalog')
def catalog_group():
    """Menu and supply data."""


@catalog_group.command('seed')
@with_appcontext
def seed_catalog():
    """Insert the sample menu and supplies (skips rows that already exist)."""
    created = 0
    for category_name, items in SAMPLE_MENU.items():
        category = db.session.query(Category).filter_by(name=category_name).first()
        if not category:
            category = Category(name=category_name)
            db.session.add(category)
            db.session.flush()

        for name, price_cents, stock in items:
            if db.session.query(Product).filter_by(name=name).first():
                click.echo(f"WARN  Product '{name}' already exists, skipping...")
                continue
            db.session.add(Product(
                name=name,
                category_id=category.id,
                price_cents=price_cents,
                stock=stock,
                status="available",
            ))
            created += 1

    for name, category, price_cents, stock, min_stock, unit in SAMPLE_SUPPLIES:
        if db.session.query(InventoryProduct).filter_by(name=name).first():
            continue
        db.session.add(InventoryProduct(
            name=name,
            category=category,
            price_cents=price_cents,
            stock=stock,
            min_stock=min_stock,
            unit=unit,
            status=supply_status(stock, min_stock),
        ))
        created += 1

    db.session.commit()
    click.echo(f"PASS Seeded {created} rows")


@catalog_group.command('list')
@with_appcontext
def list_catalog():
    products = catalog_service.list_products()
    if not products:
        click.echo("No products found.")
        return
    for p in products:
        category = p.category.name if p.category else "Unknown"
        click.echo(f"{p.id:>4}  {p.name:<24} {category:<12} {format_money(p.price_cents):>12}  stock={p.stock:<5} {p.status}")


@click.group('sales')
def sales_group():
    """Sales inspection commands."""


@sales_group.command('summary')
@click.option('--today', default=None, help='Reference date (YYYY-MM-DD)')
@with_appcontext
def sales_summary(today):
    try:
        reference = parse_iso_date(today)
    except ValueError:
        raise click.BadParameter("expected an ISO-8601 date (YYYY-MM-DD)", param_hint="--today")

    metrics = analytics_service.build_dashboard(today=reference)
    click.echo(f"Total sales:        {format_money(metrics.total_sales_cents)}")
    click.echo(f"Total items sold:   {metrics.total_items_sold}")
    click.echo(f"Top seller (month): {metrics.top_seller_this_month}")
    click.echo("\nMonthly:")
    for point in metrics.monthly_sales:
        click.echo(f"  {point.label:<10} {format_money(point.total_cents):>14}")
    click.echo("\nWeekly (current month):")
    for point in metrics.weekly_sales:
        click.echo(f"  {point.label:<10} {format_money(point.total_cents):>14}")
    if metrics.degraded_sources:
        click.echo(f"\nWARN  Unavailable sources: {', '.join(metrics.degraded_sources)}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(sales_group)
