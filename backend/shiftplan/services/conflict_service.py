# Overview: Overlap-based conflict checks feeding shift exchange approvals.

"""
Conflict Check

WHY: The exchange workflow (owned by another service) asks whether a take or
a swap would double-book anyone before it approves the request.

FALLBACK: An unexpected failure while checking (storage outage, bad data)
is reported as a conflict, never as "no conflict". A false "no conflict"
would let an unsafe exchange be approved; a false conflict only sends the
request to manual review. Business-rule errors (unknown shift, bad window)
still propagate to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from ..errors import NotFoundError, PlanningError
from ..extensions import stores
from . import shift_service

logger = logging.getLogger(__name__)


@dataclass
class ScheduleConflictResult:
    user_id: str
    start_time: datetime
    end_time: datetime
    has_conflict: bool
    conflicting_shift_ids: list[str] = field(default_factory=list)


@dataclass
class SwapConflictResult:
    poster_user_id: str
    requester_user_id: str
    original_shift_id: str
    swap_shift_id: str
    poster_has_conflict: bool
    requester_has_conflict: bool
    poster_conflicting_shift_ids: list[str] = field(default_factory=list)
    requester_conflicting_shift_ids: list[str] = field(default_factory=list)

    @property
    def is_swap_possible(self) -> bool:
        return not self.poster_has_conflict and not self.requester_has_conflict


def check_schedule_conflict(user_id: str, start_time: datetime, end_time: datetime) -> ScheduleConflictResult:
    """Would [start_time, end_time) double-book ``user_id``?"""
    try:
        overlapping = shift_service.find_overlapping(user_id, start_time, end_time)
    except PlanningError:
        raise
    except Exception:
        logger.exception("Conflict check failed for user %s; reporting a conflict", user_id)
        return ScheduleConflictResult(user_id, start_time, end_time, has_conflict=True)

    ids = [shift.id for shift in overlapping]
    logger.info("Conflict check for user %s: %d overlapping shifts", user_id, len(ids))
    return ScheduleConflictResult(user_id, start_time, end_time, has_conflict=bool(ids), conflicting_shift_ids=ids)


def conservative_swap_result(
    poster_user_id: str,
    requester_user_id: str,
    original_shift_id: str,
    swap_shift_id: str,
) -> SwapConflictResult:
    return SwapConflictResult(
        poster_user_id=poster_user_id,
        requester_user_id=requester_user_id,
        original_shift_id=original_shift_id,
        swap_shift_id=swap_shift_id,
        poster_has_conflict=True,
        requester_has_conflict=True,
    )


def check_swap_conflict(
    poster_user_id: str,
    requester_user_id: str,
    original_shift_id: str,
    swap_shift_id: str,
) -> SwapConflictResult:
    """
    Would swapping the two shifts double-book either employee?

    The poster is checked against the swap shift's window, ignoring the
    original shift they give up; the requester symmetrically against the
    original shift's window, ignoring the swap shift.
    """
    try:
        original = stores.shifts.get(original_shift_id)
        if original is None:
            raise NotFoundError(f"Original shift not found with id: {original_shift_id}")
        swap = stores.shifts.get(swap_shift_id)
        if swap is None:
            raise NotFoundError(f"Swap shift not found with id: {swap_shift_id}")

        poster_conflicts = shift_service.find_overlapping(
            poster_user_id, swap.start_time, swap.end_time, exclude_shift_id=original.id
        )
        requester_conflicts = shift_service.find_overlapping(
            requester_user_id, original.start_time, original.end_time, exclude_shift_id=swap.id
        )
    except PlanningError:
        raise
    except Exception:
        logger.exception(
            "Swap conflict check failed for shifts %s/%s; reporting swap impossible",
            original_shift_id, swap_shift_id,
        )
        return conservative_swap_result(poster_user_id, requester_user_id, original_shift_id, swap_shift_id)

    result = SwapConflictResult(
        poster_user_id=poster_user_id,
        requester_user_id=requester_user_id,
        original_shift_id=original_shift_id,
        swap_shift_id=swap_shift_id,
        poster_has_conflict=bool(poster_conflicts),
        requester_has_conflict=bool(requester_conflicts),
        poster_conflicting_shift_ids=[s.id for s in poster_conflicts],
        requester_conflicting_shift_ids=[s.id for s in requester_conflicts],
    )
    logger.info(
        "Swap conflict check %s/%s: poster=%s requester=%s possible=%s",
        original_shift_id, swap_shift_id,
        result.poster_has_conflict, result.requester_has_conflict, result.is_swap_possible,
    )
    return result
