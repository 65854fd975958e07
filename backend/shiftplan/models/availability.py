from __future__ import annotations

from ..extensions import db
from .scheduling import new_id
from shiftplan.time_utils import to_utc_z, utcnow


class Availability(db.Model):
    """
    A window in which an employee declares they can work.

    No lifecycle; windows may overlap each other freely.
    """
    __tablename__ = "availabilities"
    __table_args__ = (
        db.Index("ix_availabilities_business_unit_window", "business_unit_id", "start_time", "end_time"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    employee_id = db.Column(db.String(64), nullable=False, index=True)
    business_unit_id = db.Column(db.String(64), nullable=True)

    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "business_unit_id": self.business_unit_id,
            "start_time": to_utc_z(self.start_time),
            "end_time": to_utc_z(self.end_time),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
