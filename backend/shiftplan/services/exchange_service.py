# Overview: Applies shift exchanges (take/swap) approved by the collaboration service.

"""
Shift Exchange

The collaboration service owns the exchange workflow; this service only
carries out an approval and reports the outcome:

- TAKE: the original shift is reassigned to the requester.
- SWAP: the poster's original shift and the requester's swap shift trade
  owners. The poster and requester ids are checked against the current
  owners so that a stale approval never swaps the wrong shifts.

A SUCCESS or FAILED confirmation echoing the event is published either way.
On failure the error is re-raised so the transport can redeliver or
dead-letter the event; nothing is retried here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import ValidationError
from ..extensions import messaging
from ..messaging.publisher import EXCHANGE_FAILED, EXCHANGE_SUCCESS
from . import shift_service
from shiftplan.time_utils import to_utc_z, utcnow

logger = logging.getLogger(__name__)

EXCHANGE_TAKE = "TAKE"
EXCHANGE_SWAP = "SWAP"
EXCHANGE_APPROVED = "APPROVED"

# Wire names used by the collaboration service
_REQUEST_TYPE_ALIASES = {
    "TAKE": EXCHANGE_TAKE,
    "TAKE_SHIFT": EXCHANGE_TAKE,
    "SWAP": EXCHANGE_SWAP,
    "SWAP_SHIFT": EXCHANGE_SWAP,
}


@dataclass(frozen=True)
class ExchangeEvent:
    request_id: str
    request_type: str
    original_shift_id: str
    poster_user_id: str
    requester_user_id: str
    status: str
    swap_shift_id: str | None = None
    exchange_shift_id: str | None = None
    business_unit_id: str | None = None
    wire_request_type: str | None = None

    @classmethod
    def from_message(cls, data: dict) -> "ExchangeEvent":
        missing = [
            key for key in ("requestId", "requestType", "originalShiftId", "posterUserId", "requesterUserId", "status")
            if not data.get(key)
        ]
        if missing:
            raise ValidationError(f"Shift exchange event is missing: {', '.join(missing)}")

        wire_type = str(data["requestType"])
        request_type = _REQUEST_TYPE_ALIASES.get(wire_type.upper())
        if request_type is None:
            raise ValidationError(f"Unknown shift exchange request type: {wire_type}")

        return cls(
            request_id=data["requestId"],
            request_type=request_type,
            original_shift_id=data["originalShiftId"],
            poster_user_id=data["posterUserId"],
            requester_user_id=data["requesterUserId"],
            status=str(data["status"]).upper(),
            swap_shift_id=data.get("swapShiftId"),
            exchange_shift_id=data.get("exchangeShiftId"),
            business_unit_id=data.get("businessUnitId"),
            wire_request_type=wire_type,
        )

    def confirmation_fields(self) -> dict:
        return {
            "exchangeShiftId": self.exchange_shift_id,
            "originalShiftId": self.original_shift_id,
            "posterUserId": self.poster_user_id,
            "requesterUserId": self.requester_user_id,
            "requestType": self.wire_request_type or self.request_type,
            "swapShiftId": self.swap_shift_id,
            "businessUnitId": self.business_unit_id,
            "timestamp": to_utc_z(utcnow()),
        }


def _apply(event: ExchangeEvent) -> None:
    if event.request_type == EXCHANGE_TAKE:
        shift_service.reassign_shift(event.original_shift_id, new_employee_id=event.requester_user_id)
        return

    if not event.swap_shift_id:
        raise ValidationError("swapShiftId is required for SWAP exchanges")
    shift_service.swap_shifts(
        shift_a_id=event.original_shift_id,
        shift_b_id=event.swap_shift_id,
        expected_employee_a=event.poster_user_id,
        expected_employee_b=event.requester_user_id,
    )


def on_exchange_approved(event: ExchangeEvent) -> bool:
    """
    Carry out an approved exchange. Returns False when the event was not an
    approval and was ignored.
    """
    if event.status != EXCHANGE_APPROVED:
        logger.info("Ignoring shift exchange %s with status %s", event.request_id, event.status)
        return False

    logger.info(
        "Applying %s exchange %s (original shift %s, poster %s, requester %s)",
        event.request_type, event.request_id, event.original_shift_id,
        event.poster_user_id, event.requester_user_id,
    )
    try:
        _apply(event)
    except Exception as exc:
        logger.exception("Shift exchange %s failed", event.request_id)
        messaging.publisher.publish_exchange_confirmation(
            event.request_id, EXCHANGE_FAILED, str(exc) or exc.__class__.__name__, **event.confirmation_fields()
        )
        raise

    messaging.publisher.publish_exchange_confirmation(
        event.request_id, EXCHANGE_SUCCESS, **event.confirmation_fields()
    )
    return True
