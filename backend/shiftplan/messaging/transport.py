# Overview: Outbound message transport contract, the logging default, and an in-memory recorder.

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field

from shiftplan.time_utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 1000


@dataclass(frozen=True)
class SentMessage:
    topic: str
    key: str | None
    payload: dict
    sent_at: object = field(default_factory=utcnow)


class MessageTransport(ABC):
    """
    Sends one keyed JSON-serializable payload to a topic.

    The production deployment plugs its message bus client in here; the
    services never see the wire format.
    """

    @abstractmethod
    def send(self, topic: str, key: str | None, payload: dict) -> None:
        pass


class LoggingTransport(MessageTransport):
    """Default when no bus client is wired in: serializes, logs, and drops."""

    def send(self, topic: str, key: str | None, payload: dict) -> None:
        # Same serialization check a real bus client would apply
        body = json.dumps(payload, default=str)
        logger.info("Message for %s (key=%s) not delivered, no bus configured: %s", topic, key, body)


class InMemoryTransport(MessageTransport):
    """
    Keeps the most recent messages in memory (SHIFTPLAN_TRANSPORT=memory).

    Used by tests and local inspection. Older messages fall off once
    max_messages is reached.
    """

    def __init__(self, max_messages: int = DEFAULT_BUFFER_SIZE):
        self._lock = threading.Lock()
        self._sent: deque[SentMessage] = deque(maxlen=max_messages)

    def send(self, topic: str, key: str | None, payload: dict) -> None:
        body = json.dumps(payload, default=str)
        with self._lock:
            self._sent.append(SentMessage(topic=topic, key=key, payload=payload))
        logger.debug("Message queued on %s (key=%s): %s", topic, key, body)

    @property
    def sent(self) -> list[SentMessage]:
        with self._lock:
            return list(self._sent)

    def sent_to(self, topic: str) -> list[SentMessage]:
        return [message for message in self.sent if message.topic == topic]

    def clear(self) -> None:
        with self._lock:
            self._sent.clear()
