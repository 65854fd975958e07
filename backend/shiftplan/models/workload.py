from __future__ import annotations

from ..extensions import db
from .scheduling import new_id
from shiftplan.time_utils import to_utc_z, utcnow


SESSION_CREATED = "CREATED"
SESSION_ACTIVE = "ACTIVE"
SESSION_COMPLETED = "COMPLETED"
SESSION_CANCELLED = "CANCELLED"
SESSION_STATUSES = {SESSION_CREATED, SESSION_ACTIVE, SESSION_COMPLETED, SESSION_CANCELLED}

# modified_by marker for rewrites performed by shift reconciliation
SYSTEM_ACTOR = "SYSTEM"


class WorkSession(db.Model):
    """
    Recorded working time for a single shift.

    WHY: Managers review what was actually worked against what was planned,
    and sign off (confirm) on the recorded times.

    LIFECYCLE:
    - CREATED: Created with its shift, no times recorded
    - ACTIVE: Clocked in (or modified with a clock-in only)
    - COMPLETED: Clocked out (or modified with both times)
    - CANCELLED: Administrative terminal state

    RULES:
    - total_minutes is derived: null unless clock_out_time is set
    - confirmed/confirmed_by/confirmed_at move together; any change of
      recorded times resets them
    - original_clock_in/out hold the values seen before the FIRST manual
      modification and are never overwritten afterwards
    """
    __tablename__ = "work_sessions"
    __table_args__ = (
        db.UniqueConstraint("shift_id", name="uq_work_sessions_shift"),
        db.Index("ix_work_sessions_confirmed", "confirmed"),
        db.Index("ix_work_sessions_user_clock_in", "user_id", "clock_in_time"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    shift_id = db.Column(db.String(36), db.ForeignKey("shifts.id"), nullable=False)

    clock_in_time = db.Column(db.DateTime, nullable=True)
    clock_out_time = db.Column(db.DateTime, nullable=True)
    total_minutes = db.Column(db.Integer, nullable=True)

    # Status: CREATED, ACTIVE, COMPLETED, CANCELLED
    status = db.Column(db.String(16), nullable=False, default=SESSION_CREATED)

    # Manager sign-off
    confirmed = db.Column(db.Boolean, nullable=False, default=False)
    confirmed_by = db.Column(db.String(64), nullable=True)
    confirmed_at = db.Column(db.DateTime, nullable=True)

    # Audit of manual modifications
    modified_by = db.Column(db.String(64), nullable=True)
    original_clock_in_time = db.Column(db.DateTime, nullable=True)
    original_clock_out_time = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<WorkSession id={self.id} shift={self.shift_id} status={self.status} confirmed={self.confirmed}>"

    def reset_confirmation(self) -> None:
        self.confirmed = False
        self.confirmed_by = None
        self.confirmed_at = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "shift_id": self.shift_id,
            "clock_in_time": to_utc_z(self.clock_in_time),
            "clock_out_time": to_utc_z(self.clock_out_time),
            "total_minutes": self.total_minutes,
            "status": self.status,
            "confirmed": self.confirmed,
            "confirmed_by": self.confirmed_by,
            "confirmed_at": to_utc_z(self.confirmed_at),
            "modified_by": self.modified_by,
            "original_clock_in_time": to_utc_z(self.original_clock_in_time),
            "original_clock_out_time": to_utc_z(self.original_clock_out_time),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class SessionNote(db.Model):
    """Free-text note attached to a work session (at most one per session)."""
    __tablename__ = "session_notes"
    __table_args__ = (
        db.UniqueConstraint("work_session_id", name="uq_session_notes_work_session"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    work_session_id = db.Column(db.String(36), db.ForeignKey("work_sessions.id"), nullable=False)
    content = db.Column(db.Text, nullable=False, default="")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "work_session_id": self.work_session_id,
            "content": self.content,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
