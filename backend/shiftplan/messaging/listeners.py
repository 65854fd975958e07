# Overview: Inbound message handlers; the bus consumer calls these with raw JSON strings.

"""
Inbound Listeners

Each handler takes the message value as received from the bus. The consumer
loop belongs to the deployment; it must call the handler inside an app
context and treat a raised exception as "redeliver or dead-letter".

- Shift exchange events: failures are re-raised after a FAILED confirmation.
- User info replies and users-by-business-unit replies: malformed or
  unmatched messages are logged and dropped.
- Conflict check requests: always answered (conservative result on error).
"""

from __future__ import annotations

import json
import logging

from ..errors import PlanningError
from ..extensions import messaging
from ..services import conflict_service, exchange_service, notification_service, shift_service
from shiftplan.time_utils import parse_iso_datetime

logger = logging.getLogger(__name__)


def _decode(message: str | bytes | dict) -> dict:
    if isinstance(message, dict):
        return message
    if isinstance(message, bytes):
        message = message.decode("utf-8")
    data = json.loads(message)
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object")
    return data


def handle_shift_exchange_event(message) -> bool:
    """
    Apply an approved take/swap. Returns False for ignored (non-approved) events.

    Raises on malformed events and on failed exchanges.
    """
    logger.info("Received shift exchange event")
    event = exchange_service.ExchangeEvent.from_message(_decode(message))
    handled = exchange_service.on_exchange_approved(event)
    if handled:
        logger.info("Processed shift exchange %s for original shift %s", event.request_id, event.original_shift_id)
    return handled


def handle_user_info_response(message) -> bool:
    """Store a resolved display name on its shift. Returns True when a shift was updated."""
    try:
        data = _decode(message)
    except ValueError:
        logger.warning("Dropping malformed user info response: %r", message)
        return False

    shift_id = data.get("shiftId")
    if data.get("errorMessage"):
        logger.warning(
            "User info lookup failed for user %s, shift %s: %s",
            data.get("userId"), shift_id, data["errorMessage"],
        )
        return False
    if not shift_id:
        logger.warning("User info response without shiftId (request %s)", data.get("requestId"))
        return False

    shift = shift_service.apply_resolved_name(shift_id, data.get("firstName"), data.get("lastName"))
    if shift is None:
        logger.warning("Shift %s not found when applying employee name", shift_id)
        return False

    logger.info("Updated shift %s with employee name", shift_id)
    return True


def handle_users_by_business_unit_response(message):
    """
    Claim the pending schedule notification for the reply's correlation id
    and dispatch one push per (user, shift). Returns the dispatch summary,
    or None when there was nothing to do.
    """
    try:
        data = _decode(message)
    except ValueError:
        logger.warning("Dropping malformed users-by-business-unit response: %r", message)
        return None

    correlation_id = data.get("correlationId")
    pending = messaging.pending.pop(correlation_id) if correlation_id else None
    if pending is None:
        logger.warning("No pending notification found for correlation id %s", correlation_id)
        return None

    entries = data.get("users")
    if not isinstance(entries, list):
        entries = []
    users = [
        notification_service.DirectoryUser.from_message(entry)
        for entry in entries
        if isinstance(entry, dict) and entry.get("id")
    ]
    if len(users) < len(entries):
        logger.warning(
            "Skipped %d unusable user entries for correlation id %s",
            len(entries) - len(users), correlation_id,
        )
    logger.info(
        "Processing %s notification for %d users in business unit %s",
        pending.type, len(users), data.get("businessUnitId"),
    )
    return notification_service.send_schedule_published(pending.schedule, pending.user_shifts, users)


def handle_schedule_conflict_check_request(message) -> dict | None:
    """Answer a schedule conflict check on the response topic; returns the response sent."""
    try:
        data = _decode(message)
        user_id = data["userId"]
        correlation_id = data["correlationId"]
        start = parse_iso_datetime(data["startTime"])
        end = parse_iso_datetime(data["endTime"])
    except (ValueError, KeyError, TypeError, AttributeError):
        logger.exception("Failed to read schedule conflict check request: %r", message)
        return None

    try:
        result = conflict_service.check_schedule_conflict(user_id, start, end)
        has_conflict, ids = result.has_conflict, result.conflicting_shift_ids
    except PlanningError as exc:
        logger.warning("Schedule conflict check for user %s rejected: %s", user_id, exc)
        has_conflict, ids = True, []

    response = {
        "userId": user_id,
        "startTime": data["startTime"],
        "endTime": data["endTime"],
        "hasConflict": has_conflict,
        "conflictingShiftIds": ids,
        "correlationId": correlation_id,
    }
    messaging.publisher.publish_schedule_conflict_result(response)
    return response


def handle_swap_conflict_check_request(message) -> dict | None:
    try:
        data = _decode(message)
        poster = data["posterUserId"]
        requester = data["requesterUserId"]
        original_shift_id = data["originalShiftId"]
        swap_shift_id = data["swapShiftId"]
        correlation_id = data["correlationId"]
    except (ValueError, KeyError, TypeError):
        logger.exception("Failed to read swap conflict check request: %r", message)
        return None

    try:
        result = conflict_service.check_swap_conflict(poster, requester, original_shift_id, swap_shift_id)
    except PlanningError as exc:
        logger.error("Swap conflict check for shifts %s/%s rejected: %s", original_shift_id, swap_shift_id, exc)
        result = conflict_service.conservative_swap_result(poster, requester, original_shift_id, swap_shift_id)

    response = {
        "posterUserId": result.poster_user_id,
        "requesterUserId": result.requester_user_id,
        "originalShiftId": result.original_shift_id,
        "swapShiftId": result.swap_shift_id,
        "posterHasConflict": result.poster_has_conflict,
        "requesterHasConflict": result.requester_has_conflict,
        "posterConflictingShiftIds": result.poster_conflicting_shift_ids,
        "requesterConflictingShiftIds": result.requester_conflicting_shift_ids,
        "isSwapPossible": result.is_swap_possible,
        "correlationId": correlation_id,
    }
    messaging.publisher.publish_swap_conflict_result(response)
    return response
