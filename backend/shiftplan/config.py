# backend/shiftplan/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///shiftplan.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Detached (fire-and-forget) tasks: name resolution and notification requests
    SHIFTPLAN_DETACHED_WORKERS = int(os.environ.get("SHIFTPLAN_DETACHED_WORKERS", "4"))
    SHIFTPLAN_DETACHED_INLINE = _env_bool("SHIFTPLAN_DETACHED_INLINE", False)

    SHIFTPLAN_NOTIFICATIONS_ENABLED = _env_bool("SHIFTPLAN_NOTIFICATIONS_ENABLED", True)

    # Built-in outbound collaborators: "logging" (log and drop) or "memory" (bounded buffer)
    SHIFTPLAN_TRANSPORT = os.environ.get("SHIFTPLAN_TRANSPORT", "logging")
    SHIFTPLAN_PUSH_SENDER = os.environ.get("SHIFTPLAN_PUSH_SENDER", "logging")
    SHIFTPLAN_MEMORY_BUFFER_SIZE = int(os.environ.get("SHIFTPLAN_MEMORY_BUFFER_SIZE", "1000"))

    # Message bus topics (the transport itself is provided by the deployment)
    TOPIC_USER_INFO_REQUEST = os.environ.get("TOPIC_USER_INFO_REQUEST", "user-info-request")
    TOPIC_USERS_BY_BUSINESS_UNIT_REQUEST = os.environ.get(
        "TOPIC_USERS_BY_BUSINESS_UNIT_REQUEST", "users-by-business-unit-request"
    )
    TOPIC_SHIFT_EXCHANGE_CONFIRMATIONS = os.environ.get(
        "TOPIC_SHIFT_EXCHANGE_CONFIRMATIONS", "shift-exchange-confirmations"
    )
    TOPIC_SCHEDULE_CONFLICT_CHECK_RESPONSE = os.environ.get(
        "TOPIC_SCHEDULE_CONFLICT_CHECK_RESPONSE", "schedule-conflict-check-response"
    )
    TOPIC_SWAP_CONFLICT_CHECK_RESPONSE = os.environ.get(
        "TOPIC_SWAP_CONFLICT_CHECK_RESPONSE", "swap-conflict-check-response"
    )
