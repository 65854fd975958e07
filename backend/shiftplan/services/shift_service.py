# Overview: Service-layer operations for shifts; owns shift/work-session consistency and exchanges.

"""
Shift Service

WHY: A shift is one employee's planned window inside a weekly schedule.
Each shift owns exactly one WorkSession and one SessionNote, created with
the shift and deleted with it in the same transaction.

DESIGN:
- Shifts of an ARCHIVED schedule are frozen (create/update/delete/exchange).
- Editing a shift whose session already has recorded times realigns the
  session to the new window and resets its confirmation.
- Employee display names are an advisory cache. Whenever the owner changes,
  the cache is cleared and a name lookup is launched after commit; a
  missing reply leaves the name empty.
- Exchanges (take/swap) run in one transaction; swap locks both rows.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from ..errors import NotFoundError, ValidationError
from ..extensions import messaging, stores
from ..models import Schedule, SessionNote, Shift
from . import lifecycle_service, work_session_service
from shiftplan.time_utils import day_bounds, to_utc_naive, to_utc_z, utcnow, week_bounds

logger = logging.getLogger(__name__)


def _require_shift(shift_id: str, *, for_update: bool = False) -> Shift:
    shift = stores.shifts.get_for_update(shift_id) if for_update else stores.shifts.get(shift_id)
    if not shift:
        raise NotFoundError(f"Shift not found with id: {shift_id}")
    return shift


def _require_schedule(schedule_id: str) -> Schedule:
    schedule = stores.schedules.get(schedule_id)
    if not schedule:
        raise NotFoundError(f"Schedule not found with id: {schedule_id}")
    return schedule


def _validate_window(start_time: datetime | None, end_time: datetime | None) -> tuple[datetime, datetime]:
    if start_time is None or end_time is None:
        raise ValidationError("start_time and end_time are required")
    start_time = to_utc_naive(start_time)
    end_time = to_utc_naive(end_time)
    if end_time <= start_time:
        raise ValidationError("end_time must be after start_time")
    return start_time, end_time


def _resolve_names_later(pairs: list[tuple[str, str]]) -> None:
    """Launch one detached name lookup per (employee_id, shift_id)."""
    for employee_id, shift_id in pairs:
        messaging.tasks.launch(
            messaging.name_resolver.request,
            employee_id,
            shift_id,
            description=f"name resolution for shift {shift_id}",
        )


def _assign_owner(shift: Shift, employee_id: str) -> None:
    """Point the shift and its work session at a new owner."""
    shift.employee_id = employee_id
    shift.clear_display_name()
    shift.updated_at = utcnow()
    stores.shifts.save(shift)

    session = stores.work_sessions.find_by_shift(shift.id)
    if session is not None:
        session.user_id = employee_id
        session.updated_at = utcnow()
        stores.work_sessions.save(session)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def create_shift(
    *,
    schedule_id: str,
    employee_id: str,
    start_time: datetime,
    end_time: datetime,
    position: str | None = None,
) -> Shift:
    if not schedule_id:
        raise ValidationError("schedule_id is required")
    if not employee_id:
        raise ValidationError("employee_id is required")

    with stores.atomic():
        schedule = _require_schedule(schedule_id)
        lifecycle_service.require_shifts_mutable(schedule, action="create shifts in")
        start_time, end_time = _validate_window(start_time, end_time)

        shift = stores.shifts.save(
            Shift(
                schedule_id=schedule.id,
                employee_id=employee_id,
                start_time=start_time,
                end_time=end_time,
                position=position,
            )
        )
        session = stores.work_sessions.save(work_session_service.new_session_for_shift(shift))
        stores.session_notes.save(SessionNote(work_session_id=session.id, content=""))

    logger.info("Created shift %s for employee %s in schedule %s", shift.id, employee_id, schedule_id)
    _resolve_names_later([(employee_id, shift.id)])
    return shift


def update_shift(
    shift_id: str,
    *,
    schedule_id: str,
    employee_id: str,
    start_time: datetime,
    end_time: datetime,
    position: str | None = None,
) -> Shift:
    if not schedule_id:
        raise ValidationError("schedule_id is required")
    if not employee_id:
        raise ValidationError("employee_id is required")

    with stores.atomic():
        shift = _require_shift(shift_id)
        target = _require_schedule(schedule_id)
        lifecycle_service.require_shifts_mutable(target, action="update shifts in")
        if target.id != shift.schedule_id:
            lifecycle_service.require_shifts_mutable(
                _require_schedule(shift.schedule_id), action="move shifts out of"
            )
        start_time, end_time = _validate_window(start_time, end_time)

        owner_changed = employee_id != shift.employee_id
        times_changed = (start_time, end_time) != (shift.start_time, shift.end_time)

        shift.schedule_id = target.id
        shift.start_time = start_time
        shift.end_time = end_time
        shift.position = position
        if owner_changed:
            _assign_owner(shift, employee_id)
        else:
            shift.updated_at = utcnow()
            stores.shifts.save(shift)

        if times_changed:
            session = stores.work_sessions.find_by_shift(shift.id)
            if session is not None:
                work_session_service.reconcile_with_shift(session, shift)

    logger.info("Updated shift %s", shift_id)
    if owner_changed:
        _resolve_names_later([(employee_id, shift.id)])
    return shift


def delete_shift(shift_id: str) -> None:
    """Delete the shift with its note and work session, in that order."""
    with stores.atomic():
        shift = _require_shift(shift_id)
        lifecycle_service.require_shifts_mutable(
            _require_schedule(shift.schedule_id), action="delete shifts from"
        )

        session = stores.work_sessions.find_by_shift(shift.id)
        if session is not None:
            note = stores.session_notes.find_by_work_session(session.id)
            if note is not None:
                stores.session_notes.delete(note)
            stores.work_sessions.delete(session)
        stores.shifts.delete(shift)

    logger.info("Deleted shift %s", shift_id)


def reassign_shift(shift_id: str, *, new_employee_id: str) -> Shift:
    """Hand the shift to another employee (an approved "take")."""
    if not new_employee_id:
        raise ValidationError("new_employee_id is required")

    with stores.atomic():
        shift = _require_shift(shift_id, for_update=True)
        lifecycle_service.require_shifts_mutable(
            _require_schedule(shift.schedule_id), action="reassign shifts of"
        )
        previous = shift.employee_id
        _assign_owner(shift, new_employee_id)

    logger.info("Reassigned shift %s from %s to %s", shift_id, previous, new_employee_id)
    _resolve_names_later([(new_employee_id, shift.id)])
    return shift


def swap_shifts(
    *,
    shift_a_id: str,
    shift_b_id: str,
    expected_employee_a: str,
    expected_employee_b: str,
) -> tuple[Shift, Shift]:
    """
    Exchange the owners of two shifts.

    The expected owners guard against replaying a stale approval: if either
    shift changed hands since the exchange was approved, nothing is swapped.
    Both shifts and both work sessions change in one transaction.
    """
    with stores.atomic():
        shift_a = _require_shift(shift_a_id, for_update=True)
        shift_b = _require_shift(shift_b_id, for_update=True)
        for schedule_id in {shift_a.schedule_id, shift_b.schedule_id}:
            lifecycle_service.require_shifts_mutable(_require_schedule(schedule_id), action="swap shifts of")

        employee_a = shift_a.employee_id
        employee_b = shift_b.employee_id
        if employee_a == employee_b:
            raise ValidationError("Cannot swap shifts that belong to the same employee")
        if employee_a != expected_employee_a or employee_b != expected_employee_b:
            raise ValidationError(
                f"Shift owners changed: expected {expected_employee_a}/{expected_employee_b}, "
                f"found {employee_a}/{employee_b}"
            )

        _assign_owner(shift_a, employee_b)
        _assign_owner(shift_b, employee_a)

    logger.info("Swapped shifts %s and %s between %s and %s", shift_a_id, shift_b_id, employee_a, employee_b)
    _resolve_names_later([(employee_b, shift_a.id), (employee_a, shift_b.id)])
    return shift_a, shift_b


def apply_resolved_name(shift_id: str, first_name: str | None, last_name: str | None) -> Shift | None:
    """
    Store a display name returned by the user directory.

    Returns None (and changes nothing) when the shift no longer exists.
    """
    with stores.atomic():
        shift = stores.shifts.get(shift_id)
        if shift is None:
            return None
        shift.employee_first_name = first_name
        shift.employee_last_name = last_name
        shift.updated_at = utcnow()
        stores.shifts.save(shift)
    return shift


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def find_overlapping(
    employee_id: str,
    start_time: datetime,
    end_time: datetime,
    *,
    exclude_shift_id: str | None = None,
) -> list[Shift]:
    """Shifts of the employee intersecting [start_time, end_time); touching ends do not count."""
    start_time, end_time = _validate_window(start_time, end_time)
    excluded = [exclude_shift_id] if exclude_shift_id else []
    return stores.shifts.find_overlapping(employee_id, start_time, end_time, exclude_ids=excluded)


def get_shift(shift_id: str) -> Shift:
    return _require_shift(shift_id)


def list_schedule_shifts(schedule_id: str) -> list[Shift]:
    return stores.shifts.find_by_schedule(schedule_id)


def list_employee_shifts(employee_id: str) -> list[Shift]:
    return stores.shifts.find_by_employee(employee_id)


def list_upcoming_employee_shifts(employee_id: str, *, now: datetime | None = None) -> list[Shift]:
    return stores.shifts.find_by_employee_starting_after(employee_id, to_utc_naive(now) if now else utcnow())


def list_business_unit_shifts_for_week(business_unit_id: str, week_start: date | datetime) -> list[Shift]:
    start, end = week_bounds(week_start)
    return stores.shifts.find_by_business_unit_starting_between(business_unit_id, start, end)


def list_business_unit_shifts_for_day(business_unit_id: str, day: date | datetime) -> list[Shift]:
    start, end = day_bounds(day)
    return stores.shifts.find_by_business_unit_starting_between(business_unit_id, start, end)


def list_shifts_with_sessions(business_unit_id: str, *, start: datetime, end: datetime) -> list[dict]:
    """Every shift of the business unit starting in [start, end), with its work session and note."""
    start = to_utc_naive(start)
    end = to_utc_naive(end)
    if end <= start:
        raise ValidationError("end must be after start")

    shifts = stores.shifts.find_by_business_unit_starting_between(business_unit_id, start, end)
    sessions = {ws.shift_id: ws for ws in stores.work_sessions.find_by_shifts(s.id for s in shifts)}
    notes = {
        note.work_session_id: note
        for note in stores.session_notes.find_by_work_sessions(ws.id for ws in sessions.values())
    }

    rows = []
    for shift in shifts:
        session = sessions.get(shift.id)
        note = notes.get(session.id) if session else None
        row = shift.to_dict()
        row["work_session"] = session.to_dict() if session else None
        row["session_note"] = note.to_dict() if note else None
        rows.append(row)

    logger.debug(
        "Collected %d shifts for business unit %s between %s and %s",
        len(rows), business_unit_id, to_utc_z(start), to_utc_z(end),
    )
    return rows
