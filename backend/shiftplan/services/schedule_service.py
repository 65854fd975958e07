# Overview: Service-layer operations for weekly schedules; owns the schedule lifecycle.

"""
Schedule Service

WHY: A business unit plans one schedule per week. Managers edit it as a
DRAFT, PUBLISH it to employees, and may revert it to DRAFT for corrections.

Every operation that accepts a week normalizes it to Monday 00:00 UTC, so
callers may pass any day of the week and still address the same schedule.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from ..extensions import messaging, stores
from ..models import SCHEDULE_ARCHIVED, SCHEDULE_DRAFT, SCHEDULE_PUBLISHED, Schedule
from . import lifecycle_service
from shiftplan.time_utils import month_bounds, normalize_to_week_start, to_utc_z, utcnow

logger = logging.getLogger(__name__)


@dataclass
class ScheduleWithShifts:
    schedule: Schedule
    shifts: list = field(default_factory=list)

    def to_dict(self) -> dict:
        data = self.schedule.to_dict()
        data["shifts"] = [shift.to_dict() for shift in self.shifts]
        return data


def _require_schedule(schedule_id: str) -> Schedule:
    schedule = stores.schedules.get(schedule_id)
    if not schedule:
        raise NotFoundError(f"Schedule not found with id: {schedule_id}")
    return schedule


def _require_week_fields(business_unit_id: str | None, week_start) -> datetime:
    if not business_unit_id:
        raise ValidationError("business_unit_id is required")
    if week_start is None:
        raise ValidationError("week_start is required")
    if not isinstance(week_start, (date, datetime)):
        raise ValidationError("week_start must be a date")
    return normalize_to_week_start(week_start)


def create_schedule(*, business_unit_id: str, week_start: date | datetime) -> Schedule:
    normalized = _require_week_fields(business_unit_id, week_start)

    try:
        with stores.atomic():
            if stores.schedules.find_by_business_unit_and_week(business_unit_id, normalized):
                raise ConflictError(
                    f"A schedule already exists for business unit {business_unit_id} "
                    f"and week {normalized.date().isoformat()}"
                )
            schedule = stores.schedules.save(
                Schedule(
                    business_unit_id=business_unit_id,
                    week_start=normalized,
                    status=SCHEDULE_DRAFT,
                )
            )
    except IntegrityError as exc:
        # Lost a race with a concurrent create for the same week
        raise ConflictError(
            f"A schedule already exists for business unit {business_unit_id} "
            f"and week {normalized.date().isoformat()}"
        ) from exc

    logger.info("Created schedule %s for business unit %s, week %s", schedule.id, business_unit_id, normalized.date())
    return schedule


def get_schedule(schedule_id: str) -> Schedule:
    return _require_schedule(schedule_id)


def list_schedules() -> list[Schedule]:
    return stores.schedules.list_all()


def list_business_unit_schedules(business_unit_id: str) -> list[Schedule]:
    return stores.schedules.find_by_business_unit(business_unit_id)


def get_schedule_by_week(business_unit_id: str, week_start: date | datetime) -> Schedule | None:
    return stores.schedules.find_by_business_unit_and_week(
        business_unit_id, normalize_to_week_start(week_start)
    )


def get_current_schedule(business_unit_id: str, *, today: date | datetime | None = None) -> Schedule | None:
    """Schedule of the week containing ``today`` (default: now, UTC)."""
    return get_schedule_by_week(business_unit_id, today or utcnow())


def update_schedule(schedule_id: str, *, business_unit_id: str, week_start: date | datetime) -> Schedule:
    normalized = _require_week_fields(business_unit_id, week_start)

    try:
        with stores.atomic():
            schedule = _require_schedule(schedule_id)
            if not lifecycle_service.is_schedule_editable(schedule):
                raise InvalidStateError("Cannot update a schedule that is not in DRAFT status")

            existing = stores.schedules.find_by_business_unit_and_week(business_unit_id, normalized)
            if existing and existing.id != schedule.id:
                raise ConflictError(
                    f"A schedule already exists for business unit {business_unit_id} "
                    f"and week {normalized.date().isoformat()}"
                )

            schedule.business_unit_id = business_unit_id
            schedule.week_start = normalized
            schedule.updated_at = utcnow()
            stores.schedules.save(schedule)
    except IntegrityError as exc:
        raise ConflictError(
            f"A schedule already exists for business unit {business_unit_id} "
            f"and week {normalized.date().isoformat()}"
        ) from exc

    return schedule


def _employee_shift_map(shifts) -> dict[str, list[dict]]:
    employee_shifts: dict[str, list[dict]] = {}
    for shift in shifts:
        employee_shifts.setdefault(shift.employee_id, []).append(shift.to_dict())
    return employee_shifts


def publish_schedule(schedule_id: str) -> Schedule:
    """
    DRAFT -> PUBLISHED.

    After the commit, a schedule-published event carrying every
    (employee, shift) pair is launched as a detached task. Its failure is
    logged and never undoes the publish.
    """
    with stores.atomic():
        schedule = _require_schedule(schedule_id)
        if schedule.status != SCHEDULE_DRAFT:
            raise InvalidStateError("Only schedules in DRAFT status can be published")
        lifecycle_service.require_schedule_transition(schedule, SCHEDULE_PUBLISHED)

        schedule.status = SCHEDULE_PUBLISHED
        schedule.updated_at = utcnow()
        stores.schedules.save(schedule)

        snapshot = schedule.to_dict()
        employee_shifts = _employee_shift_map(stores.shifts.find_by_schedule(schedule.id))

    logger.info("Published schedule %s (%d employees with shifts)", schedule_id, len(employee_shifts))
    messaging.tasks.launch(
        messaging.publisher.publish_schedule_published,
        snapshot,
        employee_shifts,
        description=f"schedule-published event for {schedule_id}",
    )
    return schedule


def revert_to_draft(schedule_id: str) -> Schedule:
    with stores.atomic():
        schedule = _require_schedule(schedule_id)
        if schedule.status != SCHEDULE_PUBLISHED:
            raise InvalidStateError("Only schedules in PUBLISHED status can be reverted to DRAFT")
        lifecycle_service.require_schedule_transition(schedule, SCHEDULE_DRAFT)

        schedule.status = SCHEDULE_DRAFT
        schedule.updated_at = utcnow()
        stores.schedules.save(schedule)

    logger.info("Reverted schedule %s to DRAFT", schedule_id)
    return schedule


def archive_schedule(schedule_id: str) -> Schedule:
    """
    Administrative: move a schedule to ARCHIVED, freezing its shifts.

    Not reachable from the REST adapter; exposed through the CLI only.
    """
    with stores.atomic():
        schedule = _require_schedule(schedule_id)
        if schedule.status == SCHEDULE_ARCHIVED:
            raise InvalidStateError("Schedule is already archived")
        lifecycle_service.require_schedule_transition(schedule, SCHEDULE_ARCHIVED)

        schedule.status = SCHEDULE_ARCHIVED
        schedule.updated_at = utcnow()
        stores.schedules.save(schedule)

    logger.info("Archived schedule %s", schedule_id)
    return schedule


def get_published_schedule_with_shifts(business_unit_id: str, week_start: date | datetime) -> ScheduleWithShifts:
    """
    Employee-facing read. Only PUBLISHED schedules are returned; any other
    status fails so that draft contents never leak to unprivileged callers.
    """
    schedule = get_schedule_by_week(business_unit_id, week_start)
    if not schedule:
        raise NotFoundError(f"No schedule for business unit {business_unit_id} in week of {week_start}")
    if not lifecycle_service.is_published(schedule):
        raise InvalidStateError(
            f"Schedule for week {schedule.week_start.date().isoformat()} is not published and therefore not accessible"
        )
    return ScheduleWithShifts(schedule, stores.shifts.find_by_schedule(schedule.id))


def get_schedule_with_shifts(business_unit_id: str, week_start: date | datetime) -> ScheduleWithShifts:
    """Privileged read: any status."""
    schedule = get_schedule_by_week(business_unit_id, week_start)
    if not schedule:
        raise NotFoundError(f"No schedule for business unit {business_unit_id} in week of {week_start}")
    return ScheduleWithShifts(schedule, stores.shifts.find_by_schedule(schedule.id))


def get_monthly_schedule_for_user(
    business_unit_id: str,
    user_id: str,
    month: date | datetime,
    *,
    include_unpublished: bool = False,
) -> list[dict]:
    """
    The user's shifts, with work session and note, for every schedule of
    the business unit whose week starts in the calendar month of ``month``.

    Weeks starting in the previous month are not included even when they
    spill into this one.
    """
    start, end = month_bounds(month)
    schedules = stores.schedules.find_by_business_unit_between(business_unit_id, start, end)
    if not include_unpublished:
        schedules = [s for s in schedules if lifecycle_service.is_published(s)]

    weeks = []
    for schedule in schedules:
        shifts = stores.shifts.find_by_schedule_and_employee(schedule.id, user_id)
        sessions = {ws.shift_id: ws for ws in stores.work_sessions.find_by_shifts(s.id for s in shifts)}
        notes = {
            note.work_session_id: note
            for note in stores.session_notes.find_by_work_sessions(ws.id for ws in sessions.values())
        }

        shift_rows = []
        for shift in shifts:
            session = sessions.get(shift.id)
            note = notes.get(session.id) if session else None
            shift_rows.append({
                "id": shift.id,
                "start_time": to_utc_z(shift.start_time),
                "end_time": to_utc_z(shift.end_time),
                "position": shift.position,
                "work_session": None if session is None else {
                    "id": session.id,
                    "clock_in_time": to_utc_z(session.clock_in_time),
                    "clock_out_time": to_utc_z(session.clock_out_time),
                    "confirmed": session.confirmed,
                    "note": None if note is None else {"id": note.id, "content": note.content},
                },
            })

        weeks.append({
            "schedule_id": schedule.id,
            "week_start_date": schedule.week_start.date().isoformat(),
            "status": schedule.status,
            "shifts": shift_rows,
        })
    return weeks
