# Overview: State machines for schedules and work sessions; pure transition rules.

"""
Lifecycle Rules

================================================================================
SCHEDULE:  DRAFT <-> PUBLISHED,  {DRAFT, PUBLISHED} -> ARCHIVED
================================================================================

    DRAFT:     Created here. Editable (business unit, week).
    PUBLISHED: Visible to employees. Only reverts to DRAFT or archives.
    ARCHIVED:  Terminal. Owned shifts are frozen.

Shifts may be created, edited, and deleted while the schedule is DRAFT or
PUBLISHED; only ARCHIVED freezes them.

================================================================================
WORK SESSION:  CREATED -> ACTIVE -> COMPLETED,  any non-terminal -> CANCELLED
================================================================================

    CREATED:   Created with its shift, no times recorded.
    ACTIVE:    Clock-in recorded (clock-in, or modification without clock-out).
    COMPLETED: Clock-out recorded (clock-out, or modification with both times).
    CANCELLED: Terminal, administrative.

ACTIVE and COMPLETED may move back and forth: a repeated clock-in re-opens a
completed session, and a modification that drops the clock-out re-activates it.
"""

from __future__ import annotations

from ..errors import InvalidStateError
from ..models import (
    SCHEDULE_ARCHIVED,
    SCHEDULE_DRAFT,
    SCHEDULE_PUBLISHED,
    SCHEDULE_STATUSES,
    SESSION_ACTIVE,
    SESSION_CANCELLED,
    SESSION_COMPLETED,
    SESSION_CREATED,
    SESSION_STATUSES,
)


SCHEDULE_TRANSITIONS = {
    (SCHEDULE_DRAFT, SCHEDULE_PUBLISHED),
    (SCHEDULE_PUBLISHED, SCHEDULE_DRAFT),
    (SCHEDULE_DRAFT, SCHEDULE_ARCHIVED),
    (SCHEDULE_PUBLISHED, SCHEDULE_ARCHIVED),
}

SESSION_TRANSITIONS = {
    (SESSION_CREATED, SESSION_ACTIVE),
    (SESSION_CREATED, SESSION_COMPLETED),
    (SESSION_ACTIVE, SESSION_ACTIVE),
    (SESSION_ACTIVE, SESSION_COMPLETED),
    (SESSION_COMPLETED, SESSION_ACTIVE),
    (SESSION_COMPLETED, SESSION_COMPLETED),
    (SESSION_CREATED, SESSION_CANCELLED),
    (SESSION_ACTIVE, SESSION_CANCELLED),
    (SESSION_COMPLETED, SESSION_CANCELLED),
}


def validate_schedule_status(status: str) -> None:
    if status not in SCHEDULE_STATUSES:
        raise InvalidStateError(
            f"Invalid schedule status '{status}'. Must be one of: {', '.join(sorted(SCHEDULE_STATUSES))}"
        )


def validate_session_status(status: str) -> None:
    if status not in SESSION_STATUSES:
        raise InvalidStateError(
            f"Invalid work session status '{status}'. Must be one of: {', '.join(sorted(SESSION_STATUSES))}"
        )


def can_transition_schedule(from_status: str, to_status: str) -> bool:
    validate_schedule_status(from_status)
    validate_schedule_status(to_status)
    return (from_status, to_status) in SCHEDULE_TRANSITIONS


def can_transition_session(from_status: str, to_status: str) -> bool:
    validate_session_status(from_status)
    validate_session_status(to_status)
    return (from_status, to_status) in SESSION_TRANSITIONS


def require_schedule_transition(schedule, to_status: str) -> None:
    """Raise InvalidStateError unless the schedule may move to ``to_status``."""
    if not can_transition_schedule(schedule.status, to_status):
        raise InvalidStateError(
            f"Schedule {schedule.id} cannot move from {schedule.status} to {to_status}"
        )


def require_session_transition(session, to_status: str) -> None:
    if not can_transition_session(session.status, to_status):
        raise InvalidStateError(
            f"Work session {session.id} cannot move from {session.status} to {to_status}"
        )


def is_schedule_editable(schedule) -> bool:
    """DRAFT schedules accept changes to their own fields."""
    return schedule.status == SCHEDULE_DRAFT


def require_shifts_mutable(schedule, action: str = "modify shifts of") -> None:
    if schedule.status == SCHEDULE_ARCHIVED:
        raise InvalidStateError(f"Cannot {action} an archived schedule")


def is_published(schedule) -> bool:
    return schedule.status == SCHEDULE_PUBLISHED
