from __future__ import annotations

import uuid

from ..extensions import db
from shiftplan.time_utils import to_utc_z, utcnow


SCHEDULE_DRAFT = "DRAFT"
SCHEDULE_PUBLISHED = "PUBLISHED"
SCHEDULE_ARCHIVED = "ARCHIVED"
SCHEDULE_STATUSES = {SCHEDULE_DRAFT, SCHEDULE_PUBLISHED, SCHEDULE_ARCHIVED}


def new_id() -> str:
    return str(uuid.uuid4())


class Schedule(db.Model):
    """
    Weekly schedule for a business unit.

    WHY: The schedule is the aggregate root for a week of shifts. Employees
    only see a week once its schedule is PUBLISHED.

    LIFECYCLE:
    - DRAFT: Created, editable, invisible to employees
    - PUBLISHED: Visible to employees; may revert to DRAFT
    - ARCHIVED: Terminal; no owned shift may be created, edited, or deleted

    DESIGN:
    - week_start is always Monday 00:00 UTC (see time_utils.normalize_to_week_start)
    - At most one schedule per (business_unit_id, week_start)
    """
    __tablename__ = "schedules"
    __table_args__ = (
        db.UniqueConstraint("business_unit_id", "week_start", name="uq_schedules_business_unit_week"),
        db.Index("ix_schedules_business_unit_status", "business_unit_id", "status"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    business_unit_id = db.Column(db.String(64), nullable=False, index=True)
    week_start = db.Column(db.DateTime, nullable=False)

    # Status: DRAFT, PUBLISHED, ARCHIVED
    status = db.Column(db.String(16), nullable=False, default=SCHEDULE_DRAFT)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Schedule id={self.id} business_unit={self.business_unit_id!r} week={self.week_start} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_unit_id": self.business_unit_id,
            "week_start": to_utc_z(self.week_start),
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Shift(db.Model):
    """
    One employee's assigned working window inside a schedule.

    Every shift owns exactly one WorkSession, created with the shift and
    deleted with it. The employee display name is a cache filled in
    asynchronously by the user directory; it is never authoritative and
    may stay empty.
    """
    __tablename__ = "shifts"
    __table_args__ = (
        db.Index("ix_shifts_employee_window", "employee_id", "start_time", "end_time"),
        db.CheckConstraint("end_time > start_time", name="ck_shifts_end_after_start"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    schedule_id = db.Column(db.String(36), db.ForeignKey("schedules.id"), nullable=False, index=True)
    employee_id = db.Column(db.String(64), nullable=False, index=True)

    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    position = db.Column(db.String(64), nullable=True)

    # Advisory cache (resolved asynchronously)
    employee_first_name = db.Column(db.String(120), nullable=True)
    employee_last_name = db.Column(db.String(120), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    schedule = db.relationship("Schedule")

    def __repr__(self) -> str:
        return f"<Shift id={self.id} employee={self.employee_id!r} {self.start_time}-{self.end_time}>"

    def clear_display_name(self) -> None:
        self.employee_first_name = None
        self.employee_last_name = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "schedule_id": self.schedule_id,
            "employee_id": self.employee_id,
            "start_time": to_utc_z(self.start_time),
            "end_time": to_utc_z(self.end_time),
            "position": self.position,
            "employee_first_name": self.employee_first_name,
            "employee_last_name": self.employee_last_name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
