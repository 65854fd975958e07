# Overview: Flask-SQLAlchemy implementations of the entity store contracts.

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from ..models import Availability, Schedule, SessionNote, Shift, WorkSession
from .base import (
    AvailabilityStore,
    ScheduleStore,
    SessionNoteStore,
    ShiftStore,
    TransactionManager,
    WorkSessionStore,
)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


class SqlTransactionManager(TransactionManager):
    def __init__(self, db):
        self.db = db

    def commit(self) -> None:
        self.db.session.commit()

    def rollback(self) -> None:
        self.db.session.rollback()


class _SqlStore:
    model = None

    def __init__(self, db):
        self.db = db

    @property
    def session(self):
        return self.db.session

    def get(self, entity_id: str):
        if not entity_id:
            return None
        return self.session.get(self.model, entity_id)

    def save(self, entity):
        self.session.add(entity)
        self.session.flush()
        return entity

    def delete(self, entity) -> None:
        self.session.delete(entity)
        self.session.flush()

    def list_all(self) -> list:
        return self.session.query(self.model).all()


class SqlScheduleStore(_SqlStore, ScheduleStore):
    model = Schedule

    def list_all(self) -> list:
        return self.session.query(Schedule).order_by(Schedule.week_start.desc()).all()

    def find_by_business_unit_and_week(self, business_unit_id: str, week_start: datetime):
        return (
            self.session.query(Schedule)
            .filter_by(business_unit_id=business_unit_id, week_start=week_start)
            .first()
        )

    def find_by_business_unit(self, business_unit_id: str) -> list:
        return (
            self.session.query(Schedule)
            .filter_by(business_unit_id=business_unit_id)
            .order_by(Schedule.week_start.desc())
            .all()
        )

    def find_by_business_unit_between(self, business_unit_id: str, start: datetime, end: datetime) -> list:
        return (
            self.session.query(Schedule)
            .filter(
                Schedule.business_unit_id == business_unit_id,
                Schedule.week_start >= start,
                Schedule.week_start < end,
            )
            .order_by(Schedule.week_start.asc())
            .all()
        )


class SqlShiftStore(_SqlStore, ShiftStore):
    model = Shift

    def get_for_update(self, shift_id: str):
        if not shift_id:
            return None
        return lock_for_update(self.session.query(Shift).filter_by(id=shift_id)).first()

    def find_by_schedule(self, schedule_id: str) -> list:
        return (
            self.session.query(Shift)
            .filter_by(schedule_id=schedule_id)
            .order_by(Shift.start_time.asc())
            .all()
        )

    def find_by_employee(self, employee_id: str) -> list:
        return (
            self.session.query(Shift)
            .filter_by(employee_id=employee_id)
            .order_by(Shift.start_time.asc())
            .all()
        )

    def find_by_employee_starting_after(self, employee_id: str, after: datetime) -> list:
        return (
            self.session.query(Shift)
            .filter(Shift.employee_id == employee_id, Shift.start_time > after)
            .order_by(Shift.start_time.asc())
            .all()
        )

    def find_by_schedule_and_employee(self, schedule_id: str, employee_id: str) -> list:
        return (
            self.session.query(Shift)
            .filter_by(schedule_id=schedule_id, employee_id=employee_id)
            .order_by(Shift.start_time.asc())
            .all()
        )

    def find_overlapping(
        self,
        employee_id: str,
        start: datetime,
        end: datetime,
        exclude_ids: Iterable[str] = (),
    ) -> list:
        query = self.session.query(Shift).filter(
            Shift.employee_id == employee_id,
            Shift.start_time < end,
            Shift.end_time > start,
        )
        excluded = [shift_id for shift_id in exclude_ids if shift_id]
        if excluded:
            query = query.filter(Shift.id.notin_(excluded))
        return query.order_by(Shift.start_time.asc()).all()

    def find_by_business_unit_starting_between(self, business_unit_id: str, start: datetime, end: datetime) -> list:
        return (
            self.session.query(Shift)
            .join(Schedule, Schedule.id == Shift.schedule_id)
            .filter(
                Schedule.business_unit_id == business_unit_id,
                Shift.start_time >= start,
                Shift.start_time < end,
            )
            .order_by(Shift.start_time.asc())
            .all()
        )


class SqlWorkSessionStore(_SqlStore, WorkSessionStore):
    model = WorkSession

    def find_by_shift(self, shift_id: str):
        return self.session.query(WorkSession).filter_by(shift_id=shift_id).first()

    def find_by_shifts(self, shift_ids: Iterable[str]) -> list:
        ids = list(shift_ids)
        if not ids:
            return []
        return self.session.query(WorkSession).filter(WorkSession.shift_id.in_(ids)).all()

    def find_unconfirmed_by_business_unit(self, business_unit_id: str) -> list:
        return (
            self.session.query(WorkSession, Shift)
            .join(Shift, Shift.id == WorkSession.shift_id)
            .join(Schedule, Schedule.id == Shift.schedule_id)
            .filter(
                Schedule.business_unit_id == business_unit_id,
                WorkSession.confirmed.is_(False),
            )
            .order_by(WorkSession.created_at.desc())
            .all()
        )

    def find_by_user_clocked_in_between(self, user_id: str, start: datetime, end: datetime) -> list:
        return (
            self.session.query(WorkSession)
            .filter(
                WorkSession.user_id == user_id,
                WorkSession.clock_in_time >= start,
                WorkSession.clock_in_time <= end,
            )
            .order_by(WorkSession.clock_in_time.asc())
            .all()
        )


class SqlSessionNoteStore(_SqlStore, SessionNoteStore):
    model = SessionNote

    def find_by_work_session(self, work_session_id: str):
        return self.session.query(SessionNote).filter_by(work_session_id=work_session_id).first()

    def find_by_work_sessions(self, work_session_ids: Iterable[str]) -> list:
        ids = list(work_session_ids)
        if not ids:
            return []
        return self.session.query(SessionNote).filter(SessionNote.work_session_id.in_(ids)).all()


class SqlAvailabilityStore(_SqlStore, AvailabilityStore):
    model = Availability

    def find_by_employee(self, employee_id: str) -> list:
        return (
            self.session.query(Availability)
            .filter_by(employee_id=employee_id)
            .order_by(Availability.start_time.asc())
            .all()
        )

    def find_by_business_unit(self, business_unit_id: str) -> list:
        return (
            self.session.query(Availability)
            .filter_by(business_unit_id=business_unit_id)
            .order_by(Availability.start_time.asc())
            .all()
        )

    def find_by_business_unit_overlapping(self, business_unit_id: str, start: datetime, end: datetime) -> list:
        return (
            self.session.query(Availability)
            .filter(
                Availability.business_unit_id == business_unit_id,
                Availability.start_time < end,
                Availability.end_time > start,
            )
            .order_by(Availability.start_time.asc())
            .all()
        )
