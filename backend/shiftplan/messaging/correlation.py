# Overview: Correlation map that stitches async user-directory replies back to publish events.

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from shiftplan.time_utils import utcnow

NOTIFICATION_SCHEDULE_PUBLISHED = "SCHEDULE_PUBLISHED"


@dataclass
class PendingNotification:
    """
    A notification waiting for the user directory to return contact info.

    user_shifts maps employee id -> list of shift dicts for that employee.
    """
    type: str
    schedule: dict
    user_shifts: dict[str, list[dict]]
    registered_at: object = field(default_factory=utcnow)


class PendingNotificationStore:
    """
    Thread-safe correlation id -> PendingNotification map.

    Publish events and directory replies race, so every access is under a
    lock. Entries are removed only by pop(); there is no expiry, so an id
    whose reply never arrives stays here until sweep() is called.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._pending: dict[str, PendingNotification] = {}

    def put(self, correlation_id: str, pending: PendingNotification) -> None:
        with self._lock:
            self._pending[correlation_id] = pending

    def pop(self, correlation_id: str) -> PendingNotification | None:
        with self._lock:
            return self._pending.pop(correlation_id, None)

    def sweep(self, older_than) -> int:
        """Drop entries registered before ``older_than``; returns how many."""
        with self._lock:
            stale = [cid for cid, p in self._pending.items() if p.registered_at < older_than]
            for cid in stale:
                del self._pending[cid]
            return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)
