# Overview: Outbound event publisher and name resolver built on a MessageTransport.

"""
Outbound Events

EventPublisher and NameResolver are the contracts the services call.
The Bus* implementations translate those calls into keyed messages on
configured topics. Message payloads use camelCase keys, matching what
the sibling services consume.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod

from .correlation import (
    NOTIFICATION_SCHEDULE_PUBLISHED,
    PendingNotification,
    PendingNotificationStore,
)
from .transport import MessageTransport

logger = logging.getLogger(__name__)

EXCHANGE_SUCCESS = "SUCCESS"
EXCHANGE_FAILED = "FAILED"


class EventPublisher(ABC):

    @abstractmethod
    def publish_schedule_published(self, schedule: dict, employee_shifts: dict[str, list[dict]]) -> str:
        """Announce a published schedule; returns the correlation id used."""

    @abstractmethod
    def publish_exchange_confirmation(self, request_id: str, status: str, detail: str | None = None, **event_fields) -> None:
        pass

    @abstractmethod
    def publish_schedule_conflict_result(self, result: dict) -> None:
        pass

    @abstractmethod
    def publish_swap_conflict_result(self, result: dict) -> None:
        pass


class NameResolver(ABC):

    @abstractmethod
    def request(self, user_id: str, shift_id: str) -> None:
        """Ask the user directory for the display name; the reply arrives later."""


class BusEventPublisher(EventPublisher):
    def __init__(self, transport: MessageTransport, pending: PendingNotificationStore, topics: dict[str, str]):
        self.transport = transport
        self.pending = pending
        self.topics = topics

    def publish_schedule_published(self, schedule: dict, employee_shifts: dict[str, list[dict]]) -> str:
        correlation_id = str(uuid.uuid4())
        self.pending.put(
            correlation_id,
            PendingNotification(
                type=NOTIFICATION_SCHEDULE_PUBLISHED,
                schedule=schedule,
                user_shifts=employee_shifts,
            ),
        )
        business_unit_id = schedule["business_unit_id"]
        self.transport.send(
            self.topics["users_by_business_unit_request"],
            business_unit_id,
            {"businessUnitId": business_unit_id, "correlationId": correlation_id},
        )
        logger.info(
            "Schedule %s published; requested users of business unit %s (correlation %s, %d employees)",
            schedule["id"], business_unit_id, correlation_id, len(employee_shifts),
        )
        return correlation_id

    def publish_exchange_confirmation(self, request_id: str, status: str, detail: str | None = None, **event_fields) -> None:
        payload = dict(event_fields)
        payload.update({"requestId": request_id, "status": status})
        if detail is not None:
            payload["message"] = detail
        self.transport.send(self.topics["shift_exchange_confirmations"], request_id, payload)
        logger.info("Shift exchange confirmation sent for request %s: %s", request_id, status)

    def publish_schedule_conflict_result(self, result: dict) -> None:
        self.transport.send(
            self.topics["schedule_conflict_check_response"],
            result.get("correlationId"),
            result,
        )

    def publish_swap_conflict_result(self, result: dict) -> None:
        self.transport.send(
            self.topics["swap_conflict_check_response"],
            result.get("correlationId"),
            result,
        )


class BusNameResolver(NameResolver):
    def __init__(self, transport: MessageTransport, topic: str):
        self.transport = transport
        self.topic = topic

    def request(self, user_id: str, shift_id: str) -> None:
        request_id = str(uuid.uuid4())
        logger.info("Requesting user info for user %s, shift %s (request %s)", user_id, shift_id, request_id)
        self.transport.send(
            self.topic,
            user_id,
            {"requestId": request_id, "userId": user_id, "shiftId": shift_id},
        )
