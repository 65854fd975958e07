# Overview: Messaging collaborators registry (transport, publisher, resolver, tasks, push).

from __future__ import annotations

from .correlation import PendingNotification, PendingNotificationStore
from .publisher import BusEventPublisher, BusNameResolver, EventPublisher, NameResolver
from .push import InMemoryPushSender, LoggingPushSender, PushNotification, PushSender
from .tasks import DetachedTaskRunner
from .transport import InMemoryTransport, LoggingTransport, MessageTransport


def _build_transport(config) -> MessageTransport:
    kind = config["SHIFTPLAN_TRANSPORT"]
    if kind == "logging":
        return LoggingTransport()
    if kind == "memory":
        return InMemoryTransport(max_messages=config["SHIFTPLAN_MEMORY_BUFFER_SIZE"])
    raise ValueError(f"Unknown SHIFTPLAN_TRANSPORT: {kind!r} (expected logging or memory)")


def _build_push_sender(config) -> PushSender:
    kind = config["SHIFTPLAN_PUSH_SENDER"]
    if kind == "logging":
        return LoggingPushSender()
    if kind == "memory":
        return InMemoryPushSender(max_notifications=config["SHIFTPLAN_MEMORY_BUFFER_SIZE"])
    raise ValueError(f"Unknown SHIFTPLAN_PUSH_SENDER: {kind!r} (expected logging or memory)")


class Messaging:
    """
    Wires the outbound collaborators from app config.

    SHIFTPLAN_TRANSPORT and SHIFTPLAN_PUSH_SENDER pick the built-in
    implementations ("logging" drops after logging, "memory" keeps a bounded
    buffer). Any piece can be replaced through init_app(app, transport=..., ...),
    which is how a deployment plugs in its bus client and push provider.
    """

    def __init__(self):
        self.transport: MessageTransport | None = None
        self.pending: PendingNotificationStore | None = None
        self.publisher: EventPublisher | None = None
        self.name_resolver: NameResolver | None = None
        self.push_sender: PushSender | None = None
        self.tasks: DetachedTaskRunner | None = None
        self.notifications_enabled = True

    def init_app(self, app, **overrides) -> None:
        config = app.config
        topics = {
            "user_info_request": config["TOPIC_USER_INFO_REQUEST"],
            "users_by_business_unit_request": config["TOPIC_USERS_BY_BUSINESS_UNIT_REQUEST"],
            "shift_exchange_confirmations": config["TOPIC_SHIFT_EXCHANGE_CONFIRMATIONS"],
            "schedule_conflict_check_response": config["TOPIC_SCHEDULE_CONFLICT_CHECK_RESPONSE"],
            "swap_conflict_check_response": config["TOPIC_SWAP_CONFLICT_CHECK_RESPONSE"],
        }

        if self.tasks is not None:
            self.tasks.shutdown(wait=False)

        self.transport = overrides.get("transport") or _build_transport(config)
        self.pending = overrides.get("pending") or PendingNotificationStore()
        self.publisher = overrides.get("publisher") or BusEventPublisher(self.transport, self.pending, topics)
        self.name_resolver = overrides.get("name_resolver") or BusNameResolver(
            self.transport, topics["user_info_request"]
        )
        self.push_sender = overrides.get("push_sender") or _build_push_sender(config)
        self.tasks = overrides.get("tasks") or DetachedTaskRunner(
            max_workers=config["SHIFTPLAN_DETACHED_WORKERS"],
            inline=config["SHIFTPLAN_DETACHED_INLINE"],
        )
        self.notifications_enabled = config["SHIFTPLAN_NOTIFICATIONS_ENABLED"]

        app.extensions["shiftplan.messaging"] = self


__all__ = [
    "Messaging",
    "MessageTransport",
    "LoggingTransport",
    "InMemoryTransport",
    "EventPublisher",
    "BusEventPublisher",
    "NameResolver",
    "BusNameResolver",
    "PendingNotification",
    "PendingNotificationStore",
    "PushSender",
    "PushNotification",
    "LoggingPushSender",
    "InMemoryPushSender",
    "DetachedTaskRunner",
]
