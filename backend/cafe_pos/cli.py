# Overview: Flask CLI command groups for bootstrap, staff, time logs and stock.

# backend/cafe_pos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Use: python -m flask --app cafe_pos <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask --app cafe_pos system init-db
#   Create all tables that do not exist yet (use `flask db upgrade` for migrations).
# - python -m flask --app cafe_pos system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Staff:
# - python -m flask --app cafe_pos staff list [--status Active]
# - python -m flask --app cafe_pos staff create --name "Ana" --position Barista --daily-rate-cents 61000 [--pin 1234]
# - python -m flask --app cafe_pos staff set-pin 3 1234
#
# Time logs:
# - python -m flask --app cafe_pos timelogs hours 3 --start 2025-01-01 --end 2025-01-31
#   Total / regular / overtime hours for a period.
# - python -m flask --app cafe_pos timelogs generate-test-data 3 --start 2025-01-06 --end 2025-01-31 [--seed 7]
#   Replace the staff member's logs in the range with synthetic weekday shifts.
# - python -m flask --app cafe_pos timelogs purge --yes [--staff-id 3] [--start ...] [--end ...]
#   Bulk delete time logs (test-data reset).
#
# Inventory:
# - python -m flask --app cafe_pos inventory alerts [--window-days 7]
#   Batches expiring (or expired) within the window, soonest first.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import STAFF_POSITIONS
from .services import staff_service, time_accounting, inventory_ledger
from .services.staff_service import StaffError
from .services.time_accounting import TimekeepingError
from .time_utils import parse_iso_datetime


def _parse_date_option(value, name):
    try:
        parsed = parse_iso_datetime(value) if value else None
    except ValueError:
        raise click.BadParameter(f"{name} must be an ISO-8601 date or datetime")
    return parsed


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
    click.echo("BUILD Creating all tables...")
    db.create_all()
    click.echo("PASS Database reset complete")


@click.group('staff')
def staff_group():
    """Staff inspection and bootstrap."""


@staff_group.command('list')
@click.option('--status', default=None, help='Filter by status (Active, On Leave, Inactive)')
@with_appcontext
def list_staff(status):
    staff = staff_service.list_staff(status=status)
    if not staff:
        click.echo("No staff found")
        return
    for s in staff:
        click.echo(f"{s.id:>4}  {s.name:<24} {s.position:<10} {s.status:<10} rate={s.daily_rate_cents}")


@staff_group.command('create')
@click.option('--name', prompt=True)
@click.option('--position', type=click.Choice(STAFF_POSITIONS), prompt=True)
@click.option('--daily-rate-cents', type=int, prompt=True)
@click.option('--phone', default=None)
@click.option('--pin', default=None, help='4-6 digits (defaults to 0000)')
@with_appcontext
def create_staff(name, position, daily_rate_cents, phone, pin):
    try:
        staff = staff_service.create_staff(
            name=name,
            position=position,
            daily_rate_cents=daily_rate_cents,
            phone=phone,
            pin=pin,
        )
    except StaffError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created staff {staff.id}: {staff.name} ({staff.position})")


@staff_group.command('set-pin')
@click.argument('staff_id', type=int)
@click.argument('pin')
@with_appcontext
def set_pin(staff_id, pin):
    try:
        staff_service.set_pin(staff_id, pin)
    except StaffError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS PIN updated for staff {staff_id}")


@click.group('timelogs')
def timelogs_group():
    """Time log reporting and test-data maintenance."""


@timelogs_group.command('hours')
@click.argument('staff_id', type=int)
@click.option('--start', required=True, help='Period start (ISO-8601)')
@click.option('--end', required=True, help='Period end (ISO-8601, inclusive)')
@with_appcontext
def staff_hours(staff_id, start, end):
    start_dt = _parse_date_option(start, "start")
    end_dt = _parse_date_option(end, "end")
    try:
        staff_service.get_staff(staff_id)
    except StaffError as e:
        raise click.ClickException(str(e))

    summary = time_accounting.aggregate_period(staff_id, start_dt, end_dt)
    click.echo(f"Shifts:   {summary.shift_count}")
    click.echo(f"Total:    {summary.total_hours:.2f} h")
    click.echo(f"Regular:  {summary.regular_hours:.2f} h")
    click.echo(f"Overtime: {summary.overtime_hours:.2f} h")


@timelogs_group.command('generate-test-data')
@click.argument('staff_id', type=int)
@click.option('--start', required=True)
@click.option('--end', required=True)
@click.option('--days', default=21, show_default=True, type=int)
@click.option('--hours-per-day', default=8.0, show_default=True, type=float)
@click.option('--no-overtime', is_flag=True, help='Never add overtime days')
@click.option('--seed', default=None, type=int, help='Random seed for repeatable data')
@with_appcontext
def generate_test_data(staff_id, start, end, days, hours_per_day, no_overtime, seed):
    try:
        logs = time_accounting.generate_test_logs(
            staff_id=staff_id,
            start=_parse_date_option(start, "start"),
            end=_parse_date_option(end, "end"),
            days=days,
            hours_per_day=hours_per_day,
            include_overtime=not no_overtime,
            seed=seed,
        )
    except (StaffError, TimekeepingError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Generated {len(logs)} time logs ({len(logs) // 2} shifts)")


@timelogs_group.command('purge')
@click.option('--staff-id', default=None, type=int)
@click.option('--start', default=None)
@click.option('--end', default=None)
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def purge_time_logs(staff_id, start, end, yes):
    """DANGER: delete time logs (all, or filtered by staff/range)."""
    if not yes:
        click.confirm("WARN This will DELETE time logs. Are you sure?", abort=True)
    deleted = time_accounting.purge_time_logs(
        staff_id,
        _parse_date_option(start, "start"),
        _parse_date_option(end, "end"),
    )
    click.echo(f"DELETE Removed {deleted} time logs")


@click.group('inventory')
def inventory_group():
    """Stock inspection."""


@inventory_group.command('alerts')
@click.option('--window-days', default=None, type=int, help='Defaults to EXPIRATION_WINDOW_DAYS')
@with_appcontext
def expiration_alerts(window_days):
    alerts = inventory_ledger.list_expiring_batches(window_days=window_days)
    if not alerts:
        click.echo("No batches near expiration")
        return
    for a in alerts:
        label = "EXPIRED" if a["days_left"] < 0 else f"{a['days_left']}d"
        click.echo(f"{label:>8}  {a['item_name']:<24} qty={a['quantity']} {a['unit']}  expires {a['expiration_date']}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(staff_group)
    app.cli.add_command(timelogs_group)
    app.cli.add_command(inventory_group)
