# Overview: Flask CLI command groups for bootstrap, inspection, and reporting.

# backend/stockbook/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to stockbook (PowerShell: $env:FLASK_APP="stockbook").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog:
# - python -m flask items list [--search shirt]
#   List items with stock levels.
# - python -m flask items add --name Shirt --category Tops --price 29.90 --quantity 10
#   Add an item (pass --id to replace an existing one).
# - python -m flask items delete 3
#   Delete an item; past sales keep their snapshot.
#
# Sales:
# - python -m flask sales list [--start 2024-01-01 --end 2024-01-31]
#   List sales with totals.
# - python -m flask sales delete 7
#   Delete a sale and put its quantities back into stock.
#
# Reports:
# - python -m flask reports summary --mode monthly --date 2024-05-01
# - python -m flask reports revenue --mode yearly --date 2024-05-01
# - python -m flask reports top-products --n 5
# - python -m flask reports top-stock --n 5

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db, get_tracker
from .services import analytics_service
from .services.analytics_service import MODES
from .time_utils import parse_calendar_date, today_iso
from .validation import TrackerError


def _fail(exc: TrackerError):
    raise click.ClickException(str(exc))


def _warn_unsaved(saved: bool) -> None:
    if not saved:
        click.echo("WARN Change kept in memory but could not be saved", err=True)


def _parse_date_option(ctx, param, value):
    if value is None:
        return None
    parsed = parse_calendar_date(value)
    if parsed is None:
        raise click.BadParameter("must be YYYY-MM-DD")
    return parsed


# ── system ───────────────────────────────────────────────────

@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Database tables ready")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.confirm("This deletes ALL items and sales. Continue?", abort=True)
    db.drop_all()
    db.create_all()
    current_app.extensions["tracker"].loaded = False
    click.echo("PASS Database reset")


# ── items ────────────────────────────────────────────────────

@click.group('items')
def items_group():
    """Catalog inspection and maintenance."""


@items_group.command('list')
@click.option('--search', default=None, help='Filter on name or category')
@with_appcontext
def list_items(search):
    """List catalog items."""
    try:
        items = get_tracker().list_items(search)
    except TrackerError as exc:
        _fail(exc)
    if not items:
        click.echo("No items found")
        return
    for item in items:
        click.echo(f"{item.id:>4}  {item.name:<30} {item.category:<15} {item.price:>10}  qty={item.quantity}")


@items_group.command('add')
@click.option('--id', 'item_id', type=int, default=None, help='Replace the item with this id')
@click.option('--name', required=True, help='Item name')
@click.option('--category', required=True, help='Category')
@click.option('--price', required=True, help='Unit price, e.g. 29.90')
@click.option('--quantity', required=True, help='Stock on hand')
@click.option('--photo', 'photo_ref', default=None, help='Image URI')
@with_appcontext
def add_item(item_id, name, category, price, quantity, photo_ref):
    """Add or replace an item."""
    try:
        item, saved = get_tracker().save_item({
            "id": item_id,
            "name": name,
            "category": category,
            "price": price,
            "quantity": quantity,
            "photo_ref": photo_ref,
        })
    except TrackerError as exc:
        _fail(exc)
    click.echo(f"PASS Saved item {item.id}: {item.name} (qty={item.quantity}, price={item.price})")
    _warn_unsaved(saved)


@items_group.command('delete')
@click.argument('item_id', type=int)
@with_appcontext
def delete_item(item_id):
    """Delete an item."""
    try:
        removed, saved = get_tracker().delete_item(item_id)
    except TrackerError as exc:
        _fail(exc)
    if not removed:
        click.echo(f"SKIP Item {item_id} does not exist")
        return
    click.echo(f"PASS Deleted item {item_id}")
    _warn_unsaved(saved)


# ── sales ────────────────────────────────────────────────────

@click.group('sales')
def sales_group():
    """Sale ledger inspection and maintenance."""


@sales_group.command('list')
@click.option('--start', callback=_parse_date_option, help='First day (YYYY-MM-DD)')
@click.option('--end', callback=_parse_date_option, help='Last day (YYYY-MM-DD)')
@with_appcontext
def list_sales(start, end):
    """List sales with their totals."""
    try:
        sales = get_tracker().list_sales(start, end)
    except TrackerError as exc:
        _fail(exc)
    if not sales:
        click.echo("No sales found")
        return
    for sale in sales:
        click.echo(f"{sale.id:>4}  {sale.date:<12} lines={len(sale.items):<3} units={sale.units:<4} total={sale.total}")


@sales_group.command('delete')
@click.argument('sale_id', type=int)
@with_appcontext
def delete_sale(sale_id):
    """Delete a sale and restore its stock."""
    try:
        sale, saved = get_tracker().delete_sale(sale_id)
    except TrackerError as exc:
        _fail(exc)
    click.echo(f"PASS Deleted sale {sale.id} ({sale.units} units restored to stock)")
    _warn_unsaved(saved)


# ── reports ──────────────────────────────────────────────────

@click.group('reports')
def reports_group():
    """Sales and stock reports."""


def _period_sales(mode, date_text):
    tracker = get_tracker()
    return analytics_service.filter_by_period(tracker.ledger.list(), mode, date_text or today_iso(tracker.clock))


@reports_group.command('summary')
@click.option('--mode', type=click.Choice(MODES), default='daily', show_default=True)
@click.option('--date', 'date_text', default=None, help='Reference day (defaults to today)')
@with_appcontext
def summary_report(mode, date_text):
    """Sale count, revenue and units for a period."""
    try:
        summary = analytics_service.period_summary(_period_sales(mode, date_text))
    except TrackerError as exc:
        _fail(exc)
    click.echo(f"Sales: {summary.count}")
    click.echo(f"Revenue: {summary.total_revenue}")
    click.echo(f"Units: {summary.total_units}")


@reports_group.command('revenue')
@click.option('--mode', type=click.Choice(MODES), default='daily', show_default=True)
@click.option('--date', 'date_text', default=None, help='Reference day (defaults to today)')
@with_appcontext
def revenue_report(mode, date_text):
    """Revenue per day, month or year."""
    try:
        series = analytics_service.revenue_series(_period_sales(mode, date_text), mode)
    except TrackerError as exc:
        _fail(exc)
    for bucket, revenue in series:
        click.echo(f"{bucket:<12} {revenue}")


@reports_group.command('top-products')
@click.option('--n', type=int, default=5, show_default=True)
@with_appcontext
def top_products_report(n):
    """Best sellers by units across all sales."""
    try:
        rows = analytics_service.top_products(get_tracker().ledger.list(), n)
    except TrackerError as exc:
        _fail(exc)
    for name, qty in rows:
        click.echo(f"{name:<30} {qty}")


@reports_group.command('top-stock')
@click.option('--n', type=int, default=5, show_default=True)
@with_appcontext
def top_stock_report(n):
    """Items with the most stock on hand."""
    try:
        rows = analytics_service.top_stock_items(get_tracker().catalog.list(), n)
    except TrackerError as exc:
        _fail(exc)
    for item, qty in rows:
        click.echo(f"{item.name:<30} {qty}")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(items_group)
    app.cli.add_command(sales_group)
    app.cli.add_command(reports_group)
