from .scheduling import (
    Schedule, Shift,
    SCHEDULE_DRAFT, SCHEDULE_PUBLISHED, SCHEDULE_ARCHIVED, SCHEDULE_STATUSES,
)
from .workload import (
    WorkSession, SessionNote,
    SESSION_CREATED, SESSION_ACTIVE, SESSION_COMPLETED, SESSION_CANCELLED, SESSION_STATUSES,
    SYSTEM_ACTOR,
)
from .availability import Availability

__all__ = [
    'Schedule', 'Shift', 'WorkSession', 'SessionNote', 'Availability',
    'SCHEDULE_DRAFT', 'SCHEDULE_PUBLISHED', 'SCHEDULE_ARCHIVED', 'SCHEDULE_STATUSES',
    'SESSION_CREATED', 'SESSION_ACTIVE', 'SESSION_COMPLETED', 'SESSION_CANCELLED', 'SESSION_STATUSES',
    'SYSTEM_ACTOR',
]
