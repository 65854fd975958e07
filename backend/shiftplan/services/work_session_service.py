# Overview: Service-layer operations for work sessions; clock-in/out, manager review, and sign-off.

"""
Work Session Service

WHY: Every shift owns one WorkSession recording what was actually worked.
Employees clock in and out; managers review, correct, and confirm.

CONFIRMATION RULE:
Any change to recorded times (clock-in, clock-out, manual modification,
reconciliation after a shift edit) resets confirmation, so a session
reappears in the manager's review queue until it is signed off again.
apply_modification() itself never touches confirmation; modify_and_confirm()
signs off in the same update.

AUDIT RULE:
original_clock_in_time / original_clock_out_time are captured from the
pre-modification values only while they are unset.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from ..errors import InvalidStateError, NotFoundError, ValidationError
from ..extensions import stores
from ..models import (
    SESSION_ACTIVE,
    SESSION_CANCELLED,
    SESSION_COMPLETED,
    SESSION_CREATED,
    SYSTEM_ACTOR,
    Shift,
    WorkSession,
)
from . import lifecycle_service
from shiftplan.time_utils import to_utc_naive, to_utc_z, utcnow, whole_minutes_between

logger = logging.getLogger(__name__)


@dataclass
class EmployeeWorkHours:
    user_id: str
    start: datetime
    end: datetime
    sessions: list
    total_minutes: int

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "start": to_utc_z(self.start),
            "end": to_utc_z(self.end),
            "total_minutes": self.total_minutes,
            "work_sessions": [session.to_dict() for session in self.sessions],
        }


def _require_work_session(work_session_id: str) -> WorkSession:
    session = stores.work_sessions.get(work_session_id)
    if not session:
        raise NotFoundError(f"Work session not found with id: {work_session_id}")
    return session


def _require_shift(shift_id: str) -> Shift:
    shift = stores.shifts.get(shift_id)
    if not shift:
        raise NotFoundError(f"Shift not found with id: {shift_id}")
    return shift


def _require_not_cancelled(session: WorkSession) -> None:
    if session.status == SESSION_CANCELLED:
        raise InvalidStateError(f"Work session {session.id} is cancelled")


def new_session_for_shift(shift: Shift) -> WorkSession:
    """Unsaved CREATED session for a freshly created shift."""
    return WorkSession(
        user_id=shift.employee_id,
        shift_id=shift.id,
        status=SESSION_CREATED,
        confirmed=False,
    )


def get_work_session(work_session_id: str) -> WorkSession:
    return _require_work_session(work_session_id)


def get_work_session_for_shift(shift_id: str) -> WorkSession:
    session = stores.work_sessions.find_by_shift(shift_id)
    if not session:
        raise NotFoundError(f"No work session found for shift {shift_id}")
    return session


def clock_in(*, user_id: str, shift_id: str, at: datetime | None = None) -> WorkSession:
    """
    Record a clock-in for the shift.

    Repeating a clock-in overwrites the time and re-opens confirmation. A
    shift that somehow lost its session gets a new one.
    """
    now = to_utc_naive(at) if at else utcnow()

    with stores.atomic():
        shift = _require_shift(shift_id)
        session = stores.work_sessions.find_by_shift(shift.id)

        if session is None:
            session = WorkSession(user_id=user_id, shift_id=shift.id, status=SESSION_CREATED)
        else:
            _require_not_cancelled(session)

        lifecycle_service.require_session_transition(session, SESSION_ACTIVE)
        session.clock_in_time = now
        session.status = SESSION_ACTIVE
        session.reset_confirmation()
        session.updated_at = utcnow()
        stores.work_sessions.save(session)

    logger.info("User %s clocked in for shift %s", user_id, shift_id)
    return session


def clock_out(*, user_id: str, shift_id: str, at: datetime | None = None) -> WorkSession:
    now = to_utc_naive(at) if at else utcnow()

    with stores.atomic():
        shift = _require_shift(shift_id)
        session = stores.work_sessions.find_by_shift(shift.id)
        if session is None:
            raise InvalidStateError(f"No work session found for shift {shift_id}")
        _require_not_cancelled(session)
        if session.clock_in_time is None:
            raise InvalidStateError("Cannot clock out without clocking in first")

        lifecycle_service.require_session_transition(session, SESSION_COMPLETED)
        session.clock_out_time = now
        session.total_minutes = whole_minutes_between(session.clock_in_time, now)
        session.status = SESSION_COMPLETED
        session.reset_confirmation()
        session.updated_at = utcnow()
        stores.work_sessions.save(session)

    logger.info("User %s clocked out of shift %s (%s minutes)", user_id, shift_id, session.total_minutes)
    return session


def apply_modification(
    session: WorkSession,
    *,
    clock_in_time: datetime,
    clock_out_time: datetime | None,
    modified_by: str,
) -> WorkSession:
    """
    Rewrite recorded times in place. Callers own the transaction.

    Shared by manual modification and shift reconciliation.
    """
    if clock_in_time is None:
        raise ValidationError("clock_in_time is required")
    if not modified_by:
        raise ValidationError("modified_by is required")
    clock_in_time = to_utc_naive(clock_in_time)
    clock_out_time = to_utc_naive(clock_out_time)
    if clock_out_time is not None and clock_out_time < clock_in_time:
        raise ValidationError("clock_out_time must not be before clock_in_time")

    new_status = SESSION_COMPLETED if clock_out_time is not None else SESSION_ACTIVE
    lifecycle_service.require_session_transition(session, new_status)

    if session.original_clock_in_time is None:
        session.original_clock_in_time = session.clock_in_time
    if session.original_clock_out_time is None:
        session.original_clock_out_time = session.clock_out_time

    session.clock_in_time = clock_in_time
    session.clock_out_time = clock_out_time
    session.total_minutes = (
        whole_minutes_between(clock_in_time, clock_out_time) if clock_out_time is not None else None
    )
    session.status = new_status
    session.modified_by = modified_by
    session.updated_at = utcnow()
    return session


def modify_work_session(
    work_session_id: str,
    *,
    clock_in_time: datetime,
    clock_out_time: datetime | None = None,
    modified_by: str,
) -> WorkSession:
    with stores.atomic():
        session = _require_work_session(work_session_id)
        apply_modification(
            session,
            clock_in_time=clock_in_time,
            clock_out_time=clock_out_time,
            modified_by=modified_by,
        )
        session.reset_confirmation()
        stores.work_sessions.save(session)

    logger.info("Work session %s modified by %s", work_session_id, modified_by)
    return session


def modify_and_confirm(
    work_session_id: str,
    *,
    clock_in_time: datetime,
    clock_out_time: datetime | None = None,
    modified_by: str,
) -> WorkSession:
    with stores.atomic():
        session = _require_work_session(work_session_id)
        apply_modification(
            session,
            clock_in_time=clock_in_time,
            clock_out_time=clock_out_time,
            modified_by=modified_by,
        )
        session.confirmed = True
        session.confirmed_by = modified_by
        session.confirmed_at = utcnow()
        stores.work_sessions.save(session)

    logger.info("Work session %s modified and confirmed by %s", work_session_id, modified_by)
    return session


def reconcile_with_shift(session: WorkSession, shift: Shift) -> bool:
    """
    Align a session that has recorded times with its edited shift.

    Sessions without a clock-in are left untouched: a CREATED session has no
    recorded times to disagree with the shift, and writing the planned window
    into it would fabricate attendance. Returns True when the session was
    rewritten (confirmation is then reset). Callers own the
    transaction.
    """
    if session.clock_in_time is None or session.status == SESSION_CANCELLED:
        return False
    if (session.clock_in_time, session.clock_out_time) == (shift.start_time, shift.end_time):
        return False

    apply_modification(
        session,
        clock_in_time=shift.start_time,
        clock_out_time=shift.end_time,
        modified_by=SYSTEM_ACTOR,
    )
    session.reset_confirmation()
    stores.work_sessions.save(session)
    logger.info("Work session %s realigned with edited shift %s", session.id, shift.id)
    return True


def confirm_work_session(work_session_id: str, *, confirmed_by: str) -> WorkSession:
    if not confirmed_by:
        raise ValidationError("confirmed_by is required")

    with stores.atomic():
        session = _require_work_session(work_session_id)
        session.confirmed = True
        session.confirmed_by = confirmed_by
        session.confirmed_at = utcnow()
        session.updated_at = utcnow()
        stores.work_sessions.save(session)

    logger.info("Work session %s confirmed by %s", work_session_id, confirmed_by)
    return session


def cancel_work_session(work_session_id: str, *, cancelled_by: str) -> WorkSession:
    """
    Administrative: move a session to CANCELLED.

    Not reachable from the REST adapter; exposed through the CLI only.
    """
    with stores.atomic():
        session = _require_work_session(work_session_id)
        _require_not_cancelled(session)
        lifecycle_service.require_session_transition(session, SESSION_CANCELLED)
        session.status = SESSION_CANCELLED
        session.modified_by = cancelled_by
        session.updated_at = utcnow()
        stores.work_sessions.save(session)

    logger.info("Work session %s cancelled by %s", work_session_id, cancelled_by)
    return session


def get_employee_work_hours(user_id: str, *, start: datetime, end: datetime) -> EmployeeWorkHours:
    """Sessions whose clock-in falls within [start, end], with their summed minutes."""
    start = to_utc_naive(start)
    end = to_utc_naive(end)
    if end < start:
        raise ValidationError("end must not be before start")

    sessions = stores.work_sessions.find_by_user_clocked_in_between(user_id, start, end)
    total = sum(session.total_minutes or 0 for session in sessions)
    return EmployeeWorkHours(user_id=user_id, start=start, end=end, sessions=sessions, total_minutes=total)


def list_unconfirmed(business_unit_id: str) -> list[dict]:
    """
    Manager review queue for a business unit, newest session first.

    Each row is the session joined with its shift's window, employee, and
    position, plus its note when one exists.
    """
    pairs = stores.work_sessions.find_unconfirmed_by_business_unit(business_unit_id)
    notes = {
        note.work_session_id: note
        for note in stores.session_notes.find_by_work_sessions(session.id for session, _ in pairs)
    }

    rows = []
    for session, shift in pairs:
        note = notes.get(session.id)
        row = session.to_dict()
        row.update({
            "shift_start_time": to_utc_z(shift.start_time),
            "shift_end_time": to_utc_z(shift.end_time),
            "employee_id": shift.employee_id,
            "employee_first_name": shift.employee_first_name,
            "employee_last_name": shift.employee_last_name,
            "position": shift.position,
            "note": note.to_dict() if note else None,
        })
        rows.append(row)
    return rows
