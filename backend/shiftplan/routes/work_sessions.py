# Overview: Flask API routes for work sessions; clock-in/out and manager review.

"""
Work Session Routes

SECURITY:
- Clock in/out act on the caller's own identity.
- The review queue, confirm, modify, and modify-and-confirm require ADMIN
  or MANAGER; the acting manager is recorded from X-User-Id.
- Work hours are visible to the employee and to ADMIN/MANAGER.
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import PRIVILEGED_ROLES, is_privileged, require_identity, require_roles
from ..errors import PlanningError
from ..services import session_note_service, work_session_service
from ..validation import optional_datetime, require_datetime, require_str


work_sessions_bp = Blueprint("work_sessions", __name__, url_prefix="/v1/work-sessions")


def _error(e: PlanningError):
    return jsonify({"error": str(e)}), e.status_code


@work_sessions_bp.post("/clock-in")
@require_identity
def clock_in_route():
    data = request.get_json(silent=True) or {}

    try:
        session = work_session_service.clock_in(user_id=g.user_id, shift_id=require_str(data, "shift_id"))
        return jsonify({"work_session": session.to_dict()})
    except PlanningError as e:
        return _error(e)


@work_sessions_bp.post("/clock-out")
@require_identity
def clock_out_route():
    data = request.get_json(silent=True) or {}

    try:
        session = work_session_service.clock_out(user_id=g.user_id, shift_id=require_str(data, "shift_id"))
        return jsonify({"work_session": session.to_dict()})
    except PlanningError as e:
        return _error(e)


@work_sessions_bp.get("/<work_session_id>")
@require_identity
def get_work_session_route(work_session_id):
    try:
        session = work_session_service.get_work_session(work_session_id)
    except PlanningError as e:
        return _error(e)
    if not is_privileged() and session.user_id != g.user_id:
        return jsonify({"error": "Permission denied"}), 403
    return jsonify({"work_session": session.to_dict()})


@work_sessions_bp.get("/shift/<shift_id>")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def get_shift_work_session_route(shift_id):
    try:
        session = work_session_service.get_work_session_for_shift(shift_id)
        return jsonify({"work_session": session.to_dict()})
    except PlanningError as e:
        return _error(e)


@work_sessions_bp.get("/users/<user_id>/hours")
@require_identity
def work_hours_route(user_id):
    if not is_privileged() and g.user_id != user_id:
        return jsonify({"error": "Permission denied"}), 403

    try:
        hours = work_session_service.get_employee_work_hours(
            user_id,
            start=require_datetime(request.args, "start"),
            end=require_datetime(request.args, "end"),
        )
        return jsonify(hours.to_dict())
    except PlanningError as e:
        return _error(e)


@work_sessions_bp.get("/management/business-units/<business_unit_id>/unconfirmed")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def unconfirmed_route(business_unit_id):
    rows = work_session_service.list_unconfirmed(business_unit_id)
    return jsonify({"work_sessions": rows})


@work_sessions_bp.post("/management/confirm")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def confirm_route():
    data = request.get_json(silent=True) or {}

    try:
        session = work_session_service.confirm_work_session(
            require_str(data, "work_session_id"), confirmed_by=g.user_id
        )
        return jsonify({"work_session": session.to_dict()})
    except PlanningError as e:
        return _error(e)


@work_sessions_bp.put("/management/modify")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def modify_route():
    data = request.get_json(silent=True) or {}

    try:
        session = work_session_service.modify_work_session(
            require_str(data, "work_session_id"),
            clock_in_time=require_datetime(data, "clock_in_time"),
            clock_out_time=optional_datetime(data, "clock_out_time"),
            modified_by=g.user_id,
        )
        return jsonify({"work_session": session.to_dict()})
    except PlanningError as e:
        return _error(e)


@work_sessions_bp.put("/management/modify-and-confirm")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def modify_and_confirm_route():
    data = request.get_json(silent=True) or {}

    try:
        session = work_session_service.modify_and_confirm(
            require_str(data, "work_session_id"),
            clock_in_time=require_datetime(data, "clock_in_time"),
            clock_out_time=optional_datetime(data, "clock_out_time"),
            modified_by=g.user_id,
        )
        return jsonify({"work_session": session.to_dict()})
    except PlanningError as e:
        return _error(e)


@work_sessions_bp.put("/management/session-note")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def management_note_route():
    data = request.get_json(silent=True) or {}

    try:
        note = session_note_service.upsert_note(
            work_session_id=require_str(data, "work_session_id"),
            content=data.get("content") or "",
        )
        return jsonify({"session_note": note.to_dict()})
    except PlanningError as e:
        return _error(e)
