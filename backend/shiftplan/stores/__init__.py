# Overview: Entity store registry installed on the Flask app like any other extension.

from __future__ import annotations

import threading
from contextlib import contextmanager

from .base import (
    AvailabilityStore,
    EntityStore,
    ScheduleStore,
    SessionNoteStore,
    ShiftStore,
    TransactionManager,
    WorkSessionStore,
)


class EntityStores:
    """
    Holds one store per entity plus the shared transaction manager.

    init_app() installs the SQL stores unless replacements are passed in.
    atomic() is the transactional boundary every mutating service operation
    runs in; nested atomic() blocks join the outermost one.
    """

    def __init__(self):
        self.schedules: ScheduleStore | None = None
        self.shifts: ShiftStore | None = None
        self.work_sessions: WorkSessionStore | None = None
        self.session_notes: SessionNoteStore | None = None
        self.availabilities: AvailabilityStore | None = None
        self.transactions: TransactionManager | None = None
        self._local = threading.local()

    def init_app(self, app, **overrides) -> None:
        from ..extensions import db
        from . import sql

        self.schedules = overrides.get("schedules") or sql.SqlScheduleStore(db)
        self.shifts = overrides.get("shifts") or sql.SqlShiftStore(db)
        self.work_sessions = overrides.get("work_sessions") or sql.SqlWorkSessionStore(db)
        self.session_notes = overrides.get("session_notes") or sql.SqlSessionNoteStore(db)
        self.availabilities = overrides.get("availabilities") or sql.SqlAvailabilityStore(db)
        self.transactions = overrides.get("transactions") or sql.SqlTransactionManager(db)

        app.extensions["shiftplan.stores"] = self

    @contextmanager
    def atomic(self):
        depth = getattr(self._local, "depth", 0)
        self._local.depth = depth + 1
        try:
            yield self
            if depth == 0:
                self.transactions.commit()
        except Exception:
            if depth == 0:
                self.transactions.rollback()
            raise
        finally:
            self._local.depth = depth


__all__ = [
    "EntityStores",
    "EntityStore",
    "ScheduleStore",
    "ShiftStore",
    "WorkSessionStore",
    "SessionNoteStore",
    "AvailabilityStore",
    "TransactionManager",
]
