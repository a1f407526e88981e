# penny/cli.py
import json
import logging
import sys
from datetime import date
from decimal import Decimal, InvalidOperation

import click
from dotenv import load_dotenv

from penny.config import configure_logging, load_config
from penny.core.models import ExpenseRequest, format_amount
from penny.exceptions import (
    ConfigError,
    ExpenseNotFoundError,
    InvalidExpenseError,
    UnsupportedFileError,
)
from penny.service import ExpenseService

logger = logging.getLogger(__name__)

EXIT_INVALID = 1
EXIT_NOT_FOUND = 3


class DecimalType(click.ParamType):
    name = 'amount'

    def convert(self, value, param, ctx):
        if isinstance(value, Decimal):
            return value
        try:
            amount = Decimal(str(value).replace(',', '').strip())
        except InvalidOperation:
            self.fail(f"'{value}' is not a valid amount", param, ctx)
        if not amount.is_finite():
            self.fail(f"'{value}' is not a valid amount", param, ctx)
        if amount <= 0:
            self.fail("amount must be greater than 0", param, ctx)
        return amount


class ISODateType(click.ParamType):
    name = 'date'

    def convert(self, value, param, ctx):
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(value)
        except ValueError:
            self.fail(f"'{value}' is not an ISO date (YYYY-MM-DD)", param, ctx)


def _service(ctx):
    return ctx.obj['service']


def _fail(message, code):
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)


def _expense_line(e):
    flag = ' !' if e.is_anomaly else ''
    return (
        f"{e.id:>5}  {e.date.isoformat()}  {format_amount(e.amount):>12}  "
        f"{e.category:<13} {e.vendor_name}{flag}"
    )


@click.group()
@click.option(
    '--config', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Path to a YAML config file'
)
@click.option(
    '--db', 'db_path',
    default=None,
    type=click.Path(dir_okay=False),
    help='SQLite database file (overrides config)'
)
@click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file with PENNY_* settings'
)
@click.option(
    '--log-level',
    default=None,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    help='Logging level (default: PENNY_LOG_LEVEL or WARNING)'
)
@click.pass_context
def main(ctx, config_path, db_path, env_file, log_level):
    """
    Record expenses, bulk-import CSV or Excel files, and report spend by
    month, category and vendor with per-category anomaly flags.
    """
    if env_file:
        load_dotenv(env_file)
    configure_logging(log_level)

    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        _fail(str(e), EXIT_INVALID)
    if db_path:
        cfg['db_path'] = db_path

    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg
    ctx.obj['service'] = ExpenseService.from_config(cfg)


@main.command('add')
@click.option('--date', 'when', type=ISODateType(), default=None,
              help='Expense date (YYYY-MM-DD, default: today)')
@click.option('--amount', required=True, type=DecimalType())
@click.option('--vendor', 'vendor_name', required=True)
@click.option('--description', default=None)
@click.pass_context
def add(ctx, when, amount, vendor_name, description):
    """Add one expense; its category is assigned from the vendor name."""
    request = ExpenseRequest(
        date=when or date.today(),
        amount=amount,
        vendor_name=vendor_name,
        description=description,
    )
    try:
        expense = _service(ctx).create_expense(request)
    except InvalidExpenseError as e:
        logger.warning("Rejected expense: %s", e)
        _fail(str(e), EXIT_INVALID)
    click.echo(_expense_line(expense))


@main.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--manual', is_flag=True, default=False,
              help='Treat PATH as a YAML list of manual expenses')
@click.pass_context
def import_file(ctx, path, manual):
    """Bulk-import expenses from a CSV, Excel or (with --manual) YAML file."""
    service = _service(ctx)
    if manual:
        try:
            created = service.import_manual(path)
        except (InvalidExpenseError, ValueError) as e:
            _fail(str(e), EXIT_INVALID)
        click.echo(f"Added {len(created)} expense(s) from {path}.")
        return

    try:
        result = service.upload_file(path)
    except UnsupportedFileError as e:
        _fail(str(e), EXIT_INVALID)
    for message in result.errors:
        click.echo(f"⚠️  {message}", err=True)
    click.echo(f"Added {result.added} expense(s), {result.failed} failed.")
    if result.added == 0 and result.failed:
        sys.exit(EXIT_INVALID)


@main.command('list')
@click.option('--month', default=None, help='Only show expenses in YYYY-MM')
@click.pass_context
def list_expenses(ctx, month):
    """List expenses, newest first. Anomalies are marked with '!'."""
    try:
        expenses = _service(ctx).list_expenses(month)
    except ValueError as e:
        _fail(str(e), EXIT_INVALID)
    for e in expenses:
        click.echo(_expense_line(e))


@main.command('show')
@click.argument('expense_id', type=int)
@click.pass_context
def show(ctx, expense_id):
    try:
        expense = _service(ctx).get_expense(expense_id)
    except ExpenseNotFoundError as e:
        logger.warning("Not found: %s", e)
        _fail(str(e), EXIT_NOT_FOUND)
    click.echo(json.dumps(expense.to_dict(), indent=2))


@main.command('delete')
@click.argument('expense_id', type=int)
@click.pass_context
def delete(ctx, expense_id):
    """Delete an expense and re-evaluate anomalies for its category."""
    try:
        _service(ctx).delete_expense(expense_id)
    except ExpenseNotFoundError as e:
        logger.warning("Not found: %s", e)
        _fail(str(e), EXIT_NOT_FOUND)
    click.echo(f"Deleted expense {expense_id}.")


@main.command('dashboard')
@click.option('--json', 'as_json', is_flag=True, default=False, help='Print JSON')
@click.pass_context
def dashboard(ctx, as_json):
    """Monthly category totals, top vendors, category totals and anomalies."""
    snapshot = _service(ctx).dashboard()
    if as_json:
        click.echo(json.dumps(snapshot.to_dict(), indent=2))
        return

    click.echo("Monthly by category:")
    for month, cats in snapshot.monthly_by_category.items():
        parts = ", ".join(f"{cat} {format_amount(total)}" for cat, total in cats.items())
        click.echo(f"  {month}: {parts}")
    click.echo("Category totals:")
    for stat in snapshot.category_totals:
        click.echo(f"  {stat.category:<13} {format_amount(stat.total):>12}  ({stat.count})")
    click.echo("Top vendors:")
    for stat in snapshot.top_vendors:
        click.echo(f"  {stat.vendor_name:<24} {format_amount(stat.total):>12}  ({stat.count})")
    click.echo(f"Anomalies ({snapshot.anomaly_count}):")
    for e in snapshot.anomalies:
        click.echo("  " + _expense_line(e))


@main.command('summary')
@click.option('--limit', default=None, type=int, help='Number of vendors to show')
@click.pass_context
def summary(ctx, limit):
    """Store-side rollups: monthly category totals and top vendors."""
    service = _service(ctx)
    limit = limit or int(ctx.obj['config']['top_vendors_limit'])
    for row in service.store.monthly_category_totals():
        click.echo(f"{row.month}  {row.category:<13} {format_amount(row.total):>12}  ({row.count})")
    click.echo("")
    for stat in service.store.vendor_totals(limit):
        click.echo(f"{stat.vendor_name:<24} {format_amount(stat.total):>12}  ({stat.count})")


@main.command('rules')
@click.pass_context
def rules(ctx):
    """Show the active keyword -> category rules."""
    for keyword, category in sorted(_service(ctx).rules().items()):
        click.echo(f"{keyword:<20} {category}")


@main.command('check')
@click.argument('vendor_name')
@click.argument('amount', type=DecimalType())
@click.pass_context
def check(ctx, vendor_name, amount):
    """Preview the category and anomaly status of a hypothetical expense."""
    res = _service(ctx).check_anomaly(vendor_name, amount)
    verdict = 'anomalous' if res['would_be_anomaly'] else 'normal'
    click.echo(f"{res['category']}: {verdict}")


if __name__ == '__main__':
    main()
