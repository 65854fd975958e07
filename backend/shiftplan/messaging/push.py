# Overview: Push delivery contract; formatting and delivery belong to the push provider.

from __future__ import annotations

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 1000


@dataclass(frozen=True)
class PushNotification:
    token: str
    user_id: str
    title: str
    body: str
    data: dict


class PushSender(ABC):

    @abstractmethod
    def send(self, notification: PushNotification) -> str:
        """Deliver one notification; returns the provider message id."""


class LoggingPushSender(PushSender):
    """Default sender when no push provider is wired in: logs and drops."""

    def __init__(self):
        self._ids = itertools.count(1)

    def send(self, notification: PushNotification) -> str:
        message_id = f"local-{next(self._ids)}"
        logger.info("Push to user %s: %s (%s)", notification.user_id, notification.title, notification.body)
        return message_id


class InMemoryPushSender(PushSender):
    """Keeps the most recent pushes in memory (SHIFTPLAN_PUSH_SENDER=memory)."""

    def __init__(self, max_notifications: int = DEFAULT_BUFFER_SIZE):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._sent: deque[PushNotification] = deque(maxlen=max_notifications)

    def send(self, notification: PushNotification) -> str:
        with self._lock:
            self._sent.append(notification)
            message_id = f"memory-{next(self._ids)}"
        logger.debug("Push recorded for user %s: %s", notification.user_id, notification.title)
        return message_id

    @property
    def sent(self) -> list[PushNotification]:
        with self._lock:
            return list(self._sent)
