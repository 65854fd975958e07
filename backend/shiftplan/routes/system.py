# backend/shiftplan/routes/system.py
"""
System health endpoint.

Checks the database and the in-process messaging collaborators so that a
deployment can tell a dead store from a stuck notification pipeline.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db, messaging
from ..models import Schedule
from shiftplan.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity with a trivial query.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        schedule_count = db.session.query(Schedule).count()
        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"schedules": schedule_count},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_messaging_health() -> dict:
    """
    Pending notifications never expire on their own; a growing count means
    user-directory replies are not arriving.
    """
    pending = len(messaging.pending) if messaging.pending is not None else 0
    return {
        "status": "healthy" if messaging.transport is not None else "unhealthy",
        "details": {
            "pending_notifications": pending,
            "notifications_enabled": messaging.notifications_enabled,
        },
    }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: All systems healthy
    - 503: One or more systems unhealthy
    """
    start_time = time.time()

    database_health = check_database_health()
    messaging_health = check_messaging_health()

    all_checks = [database_health, messaging_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status = "unhealthy"
        http_status = 503
    else:
        overall_status = "healthy"
        http_status = 200

    response = {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": {
            "database": database_health,
            "messaging": messaging_health,
        }
    }

    return response, http_status
