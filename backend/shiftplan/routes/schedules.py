# Overview: Flask API routes for weekly schedules; parses input and returns JSON responses.

"""
Schedule Routes

SECURITY:
- Creating, editing, publishing, and reverting require ADMIN or MANAGER.
- The any-status week view requires ADMIN or MANAGER.
- The published week view is open to any identified caller.
- A monthly schedule is visible to the user it belongs to (published weeks
  only) and to ADMIN/MANAGER (all weeks).
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import PRIVILEGED_ROLES, is_privileged, require_identity, require_roles
from ..errors import PlanningError
from ..models import SCHEDULE_PUBLISHED
from ..services import schedule_service
from ..validation import require_date, require_str


schedules_bp = Blueprint("schedules", __name__, url_prefix="/v1")


def _error(e: PlanningError):
    return jsonify({"error": str(e)}), e.status_code


@schedules_bp.post("/schedules")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def create_schedule_route():
    data = request.get_json(silent=True) or {}

    try:
        schedule = schedule_service.create_schedule(
            business_unit_id=require_str(data, "business_unit_id"),
            week_start=require_date(data, "week_start"),
        )
        return jsonify({"schedule": schedule.to_dict()}), 201
    except PlanningError as e:
        return _error(e)


@schedules_bp.get("/schedules")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def list_schedules_route():
    schedules = schedule_service.list_schedules()
    return jsonify({"schedules": [s.to_dict() for s in schedules]})


@schedules_bp.get("/schedules/<schedule_id>")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def get_schedule_route(schedule_id):
    try:
        schedule = schedule_service.get_schedule(schedule_id)
        return jsonify({"schedule": schedule.to_dict()})
    except PlanningError as e:
        return _error(e)


@schedules_bp.put("/schedules/<schedule_id>")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def update_schedule_route(schedule_id):
    data = request.get_json(silent=True) or {}

    try:
        schedule = schedule_service.update_schedule(
            schedule_id,
            business_unit_id=require_str(data, "business_unit_id"),
            week_start=require_date(data, "week_start"),
        )
        return jsonify({"schedule": schedule.to_dict()})
    except PlanningError as e:
        return _error(e)


@schedules_bp.post("/schedules/<schedule_id>/publish")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def publish_schedule_route(schedule_id):
    try:
        schedule = schedule_service.publish_schedule(schedule_id)
        return jsonify({"schedule": schedule.to_dict()})
    except PlanningError as e:
        return _error(e)


@schedules_bp.post("/schedules/<schedule_id>/draft")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def revert_schedule_route(schedule_id):
    try:
        schedule = schedule_service.revert_to_draft(schedule_id)
        return jsonify({"schedule": schedule.to_dict()})
    except PlanningError as e:
        return _error(e)


@schedules_bp.get("/business-units/<business_unit_id>/schedules")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def list_business_unit_schedules_route(business_unit_id):
    schedules = schedule_service.list_business_unit_schedules(business_unit_id)
    return jsonify({"schedules": [s.to_dict() for s in schedules]})


@schedules_bp.get("/business-units/<business_unit_id>/schedules/current")
@require_identity
def current_schedule_route(business_unit_id):
    schedule = schedule_service.get_current_schedule(business_unit_id)
    if schedule is None:
        return jsonify({"error": "No schedule for the current week"}), 404
    if not is_privileged() and schedule.status != SCHEDULE_PUBLISHED:
        return jsonify({"error": "Schedule for the current week is not published"}), 409
    return jsonify({"schedule": schedule.to_dict()})


@schedules_bp.get("/business-units/<business_unit_id>/schedules/week/published")
@require_identity
def published_week_route(business_unit_id):
    try:
        view = schedule_service.get_published_schedule_with_shifts(
            business_unit_id, require_date(request.args, "week_start")
        )
        return jsonify({"schedule": view.to_dict()})
    except PlanningError as e:
        return _error(e)


@schedules_bp.get("/business-units/<business_unit_id>/schedules/week")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def any_week_route(business_unit_id):
    try:
        view = schedule_service.get_schedule_with_shifts(
            business_unit_id, require_date(request.args, "week_start")
        )
        return jsonify({"schedule": view.to_dict()})
    except PlanningError as e:
        return _error(e)


@schedules_bp.get("/business-units/<business_unit_id>/users/<user_id>/monthly-schedule")
@require_identity
def monthly_schedule_route(business_unit_id, user_id):
    privileged = is_privileged()
    if not privileged and g.user_id != user_id:
        return jsonify({"error": "Permission denied"}), 403

    try:
        weeks = schedule_service.get_monthly_schedule_for_user(
            business_unit_id,
            user_id,
            require_date(request.args, "month"),
            include_unpublished=privileged,
        )
        return jsonify({"user_id": user_id, "business_unit_id": business_unit_id, "weeks": weeks})
    except PlanningError as e:
        return _error(e)
