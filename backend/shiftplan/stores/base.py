# Overview: Abstract entity store contracts consumed by the service layer.

"""
Entity Store Interfaces

Services depend only on these contracts. The default implementation lives
in stores/sql.py and is backed by Flask-SQLAlchemy; another persistence
technology only needs to provide the same methods.

All datetimes passed in and returned are UTC-naive (see time_utils).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Generic, Iterable, Optional, TypeVar

T = TypeVar("T")


class TransactionManager(ABC):
    """Commit/rollback boundary shared by every store of one backend."""

    @abstractmethod
    def commit(self) -> None:
        pass

    @abstractmethod
    def rollback(self) -> None:
        pass


class EntityStore(ABC, Generic[T]):

    @abstractmethod
    def get(self, entity_id: str) -> Optional[T]:
        """Return the entity or None."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Insert or update. The entity has its id assigned on return."""

    @abstractmethod
    def delete(self, entity: T) -> None:
        pass

    @abstractmethod
    def list_all(self) -> list[T]:
        pass


class ScheduleStore(EntityStore["Schedule"]):

    @abstractmethod
    def find_by_business_unit_and_week(self, business_unit_id: str, week_start: datetime):
        """Schedule for the exact (already normalized) week start, or None."""

    @abstractmethod
    def find_by_business_unit(self, business_unit_id: str) -> list:
        """All schedules for the business unit, newest week first."""

    @abstractmethod
    def find_by_business_unit_between(self, business_unit_id: str, start: datetime, end: datetime) -> list:
        """Schedules whose week_start falls in [start, end), oldest first."""


class ShiftStore(EntityStore["Shift"]):

    @abstractmethod
    def get_for_update(self, shift_id: str):
        """Like get(), but locks the row until the transaction ends where supported."""

    @abstractmethod
    def find_by_schedule(self, schedule_id: str) -> list:
        pass

    @abstractmethod
    def find_by_employee(self, employee_id: str) -> list:
        pass

    @abstractmethod
    def find_by_employee_starting_after(self, employee_id: str, after: datetime) -> list:
        pass

    @abstractmethod
    def find_by_schedule_and_employee(self, schedule_id: str, employee_id: str) -> list:
        pass

    @abstractmethod
    def find_overlapping(
        self,
        employee_id: str,
        start: datetime,
        end: datetime,
        exclude_ids: Iterable[str] = (),
    ) -> list:
        """
        Shifts of the employee whose [start_time, end_time) intersects [start, end).

        Touching endpoints do not intersect.
        """

    @abstractmethod
    def find_by_business_unit_starting_between(self, business_unit_id: str, start: datetime, end: datetime) -> list:
        """Shifts in the business unit's schedules with start_time in [start, end), by start_time."""


class WorkSessionStore(EntityStore["WorkSession"]):

    @abstractmethod
    def find_by_shift(self, shift_id: str):
        pass

    @abstractmethod
    def find_by_shifts(self, shift_ids: Iterable[str]) -> list:
        pass

    @abstractmethod
    def find_unconfirmed_by_business_unit(self, business_unit_id: str) -> list:
        """(session, shift) pairs for unconfirmed sessions in the business unit, newest first."""

    @abstractmethod
    def find_by_user_clocked_in_between(self, user_id: str, start: datetime, end: datetime) -> list:
        pass


class SessionNoteStore(EntityStore["SessionNote"]):

    @abstractmethod
    def find_by_work_session(self, work_session_id: str):
        pass

    @abstractmethod
    def find_by_work_sessions(self, work_session_ids: Iterable[str]) -> list:
        pass


class AvailabilityStore(EntityStore["Availability"]):

    @abstractmethod
    def find_by_employee(self, employee_id: str) -> list:
        pass

    @abstractmethod
    def find_by_business_unit(self, business_unit_id: str) -> list:
        pass

    @abstractmethod
    def find_by_business_unit_overlapping(self, business_unit_id: str, start: datetime, end: datetime) -> list:
        pass
