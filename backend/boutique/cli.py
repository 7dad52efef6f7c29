# Overview: Flask CLI command groups for bootstrap, inspection and reporting.

# backend/boutique/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--shop "Main Shop"]
#   Idempotent bootstrap: creates tables, business settings and a default shop.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Stock inspection:
# - python -m flask stocks list [--shop "Main Shop"]
#   List stock groups with total quantities.
# - python -m flask stocks low [--threshold 5]
#   List sizes at or below the low stock threshold.
#
# Reporting/exports:
# - python -m flask reports summary --range 30d
#   Print per-currency revenue, profit, expenses and net profit.
# - python -m flask reports export transactions --output sales.csv [--range all]
#   Write a CSV export (expenses, inventory or transactions).

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Shop
from .services import (
    catalog_service,
    expense_service,
    export_service,
    reporting_service,
    settings_service,
    transaction_service,
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--shop', 'shop_name', default='Main Shop', help='Default shop name')
@with_appcontext
def init_system(shop_name):
    """Create tables, default business settings and a default shop."""
    click.echo("START Initializing boutique backend...")

    db.create_all()
    click.echo("PASS Tables ready")

    settings = settings_service.get_business_settings()
    click.echo(
        f"PASS Settings: {settings.business_name} "
        f"({settings.default_currency}, tax {settings.tax_rate}%)"
    )

    shop = db.session.query(Shop).filter_by(name=shop_name).first()
    if shop is None:
        shop = Shop(name=shop_name, status="active")
        db.session.add(shop)
        db.session.commit()
        click.echo(f"PASS Created default shop: {shop.name} (ID: {shop.id})")
    else:
        click.echo(f"PASS Using existing shop: {shop.name} (ID: {shop.id})")

    if not settings.current_branch:
        settings.current_branch = shop.name
        db.session.commit()

    click.echo("DONE Initialization complete")


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


@click.group('stocks')
def stocks_group():
    """Stock inspection commands."""


@stocks_group.command('list')
@click.option('--shop', default=None, help='Filter by shop name')
@with_appcontext
def list_stocks(shop):
    stocks = catalog_service.list_stocks(shop=shop)
    if not stocks:
        click.echo("No stock groups found")
        return
    for stock in stocks:
        click.echo(
            f"{stock.id:>5}  {stock.group_name:<30} {stock.shop or '-':<15} "
            f"price={stock.unit_price} qty={stock.total_quantity()}"
        )


@stocks_group.command('low')
@click.option('--threshold', type=int, default=None, help='Quantity at or below which a size is low')
@with_appcontext
def low_stock(threshold):
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    rows = catalog_service.low_stock(threshold)
    if not rows:
        click.echo(f"PASS No sizes at or below {threshold}")
        return
    for row in rows:
        click.echo(f"WARN {row['group_name']} {row['color']}/{row['size']}: {row['quantity']}")


@click.group('reports')
def reports_group():
    """Reporting and export commands."""


@reports_group.command('summary')
@click.option('--range', 'range_key', default='30d', type=click.Choice(reporting_service.RANGES))
@click.option('--start', default=None, help='YYYY-MM-DD (custom range)')
@click.option('--end', default=None, help='YYYY-MM-DD (custom range)')
@with_appcontext
def summary(range_key, start, end):
    try:
        report = reporting_service.sales_report(range_key=range_key, start=start, end=end)
    except reporting_service.ReportError as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Window: {report['window']['start'] or '-'} .. {report['window']['end'] or '-'}")
    for currency, bucket in report["totals"].items():
        click.echo(
            f"{currency}: revenue={bucket['revenue']:.2f} profit={bucket['profit']:.2f} "
            f"expenses={bucket['expenses']:.2f} net={bucket['net_profit']:.2f} "
            f"transactions={bucket['transactions']}"
        )
    for item in report["top_selling_items"]:
        click.echo(f"  top: {item['group_name']} x{item['quantity']}")


@reports_group.command('export')
@click.argument('kind', type=click.Choice(['expenses', 'inventory', 'transactions']))
@click.option('--output', '-o', type=click.Path(dir_okay=False, writable=True), required=True)
@click.option('--range', 'range_key', default='all', type=click.Choice(reporting_service.RANGES))
@click.option('--start', default=None)
@click.option('--end', default=None)
@with_appcontext
def export(kind, output, range_key, start, end):
    include_bom = bool(current_app.config["CSV_INCLUDE_BOM"])
    try:
        window = reporting_service.resolve_window(range_key, start, end)
    except reporting_service.ReportError as exc:
        raise click.ClickException(str(exc))

    if kind == 'expenses':
        expenses = expense_service.list_expenses(
            start=window.start.date() if window.start else None,
            end=window.end.date() if window.end else None,
        )["items"]
        content = export_service.expenses_csv([e.to_dict() for e in expenses], include_bom=include_bom)
    elif kind == 'inventory':
        content = export_service.inventory_csv(catalog_service.stock_snapshot(), include_bom=include_bom)
    else:
        txns = transaction_service.list_transactions(start=window.start, end=window.end)
        content = export_service.transactions_csv(
            [t.to_dict() for t in txns],
            include_bom=include_bom,
            base_currency=settings_service.get_business_settings().default_currency,
        )

    with open(output, "w", encoding="utf-8", newline="") as handle:
        handle.write(content)
    click.echo(f"PASS Wrote {kind} export to {output}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(stocks_group)
    app.cli.add_command(reports_group)
