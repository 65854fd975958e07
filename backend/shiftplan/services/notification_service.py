# Overview: Builds and dispatches "schedule published" push notifications, one per shift.

"""
Schedule Published Notifications

LIFECYCLE:
1. publish_schedule() launches the schedule-published event (detached).
2. The publisher registers a PendingNotification under a correlation id and
   asks the user directory for the business unit's users.
3. The directory reply arrives through the users-by-business-unit listener,
   which claims the pending entry and calls send_schedule_published().

Each (user, shift) pair gets its own notification; users without a device
token are skipped. Individual delivery failures are counted and logged,
never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..extensions import messaging
from ..messaging.push import PushNotification
from shiftplan.time_utils import parse_iso_datetime

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Schedule Published"
NOTIFICATION_DATA_TYPE = "schedule_published"


@dataclass(frozen=True)
class DirectoryUser:
    """A user as returned by the user directory."""
    id: str
    fcm_token: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: str | None = None

    @classmethod
    def from_message(cls, data: dict) -> "DirectoryUser":
        return cls(
            id=str(data["id"]),
            fcm_token=data.get("fcmToken"),
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            role=data.get("role"),
        )


@dataclass
class DispatchSummary:
    sent: int = 0
    failed: int = 0


def build_schedule_published_notifications(
    schedule: dict,
    user_shifts: dict[str, list[dict]],
    users: list[DirectoryUser],
) -> list[PushNotification]:
    notifications = []
    for user in users:
        if not user.fcm_token or not user.fcm_token.strip():
            continue
        for shift in user_shifts.get(user.id) or []:
            start = parse_iso_datetime(shift["start_time"])
            notifications.append(
                PushNotification(
                    token=user.fcm_token,
                    user_id=user.id,
                    title=NOTIFICATION_TITLE,
                    body=f"You're scheduled to work on {start.strftime('%b %d')}",
                    data={
                        "type": NOTIFICATION_DATA_TYPE,
                        "scheduleId": schedule.get("id") or "",
                        "businessUnitId": schedule.get("business_unit_id") or "",
                        "weekStart": schedule.get("week_start") or "",
                        "shiftId": shift.get("id") or "",
                        "shiftDate": start.date().isoformat(),
                        "shiftStartTime": shift["start_time"],
                        "shiftEndTime": shift["end_time"],
                        "position": shift.get("position") or "",
                    },
                )
            )
    return notifications


def send_schedule_published(
    schedule: dict,
    user_shifts: dict[str, list[dict]],
    users: list[DirectoryUser],
) -> DispatchSummary:
    summary = DispatchSummary()
    if not messaging.notifications_enabled:
        logger.warning("Push notifications are disabled; skipping schedule %s", schedule.get("id"))
        return summary

    notifications = build_schedule_published_notifications(schedule, user_shifts, users)
    if not notifications:
        logger.info("No users with device tokens and shifts for schedule %s", schedule.get("id"))
        return summary

    for notification in notifications:
        try:
            message_id = messaging.push_sender.send(notification)
        except Exception as exc:
            summary.failed += 1
            logger.warning(
                "Failed to notify user %s for shift %s: %s",
                notification.user_id, notification.data["shiftId"], exc,
            )
            continue
        summary.sent += 1
        logger.debug("Notified user %s for shift %s (%s)", notification.user_id, notification.data["shiftId"], message_id)

    logger.info(
        "Schedule %s notifications: %d sent, %d failed",
        schedule.get("id"), summary.sent, summary.failed,
    )
    return summary
