# Overview: Flask CLI command groups for bootstrap and administrative state changes.

# backend/shiftplan/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "shiftplan:create_app".
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (use `flask db upgrade` for migrated deployments).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Administrative transitions (not exposed over HTTP):
# - python -m flask schedules archive <schedule_id>
#   Move a DRAFT/PUBLISHED schedule to ARCHIVED; its shifts become frozen.
# - python -m flask work-sessions cancel <work_session_id> --by admin-1
#   Move a work session to CANCELLED.
#
# Notification pipeline:
# - python -m flask notifications pending
#   Show how many schedule notifications are waiting for a user-directory reply.
# - python -m flask notifications sweep --older-than-minutes 60
#   Drop pending notifications whose reply never arrived.

import click
from datetime import timedelta
from flask.cli import with_appcontext

from .errors import PlanningError
from .extensions import db, messaging
from .services import schedule_service, work_session_service
from .time_utils import utcnow


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


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


@click.group('schedules')
def schedules_group():
    """Administrative schedule commands."""


@schedules_group.command('archive')
@click.argument('schedule_id')
@with_appcontext
def archive_schedule(schedule_id):
    """Archive a schedule (terminal)."""
    try:
        schedule = schedule_service.archive_schedule(schedule_id)
    except PlanningError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Schedule {schedule.id} ({schedule.business_unit_id}) archived.")


@click.group('work-sessions')
def work_sessions_group():
    """Administrative work session commands."""


@work_sessions_group.command('cancel')
@click.argument('work_session_id')
@click.option('--by', 'cancelled_by', required=True, help='Id of the administrator cancelling the session')
@with_appcontext
def cancel_work_session(work_session_id, cancelled_by):
    """Cancel a work session (terminal)."""
    try:
        session = work_session_service.cancel_work_session(work_session_id, cancelled_by=cancelled_by)
    except PlanningError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Work session {session.id} cancelled.")


@click.group('notifications')
def notifications_group():
    """Schedule notification pipeline inspection."""


@notifications_group.command('pending')
@with_appcontext
def pending_notifications():
    """Show the number of notifications awaiting a user-directory reply."""
    click.echo(f"{len(messaging.pending)} pending notification(s)")


@notifications_group.command('sweep')
@click.option('--older-than-minutes', default=60, show_default=True, type=click.IntRange(min=0))
@with_appcontext
def sweep_notifications(older_than_minutes):
    """Drop pending notifications older than the given age."""
    removed = messaging.pending.sweep(utcnow() - timedelta(minutes=older_than_minutes))
    click.echo(f"PASS Removed {removed} stale pending notification(s).")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(schedules_group)
    app.cli.add_command(work_sessions_group)
    app.cli.add_command(notifications_group)
