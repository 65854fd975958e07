# Overview: Flask API routes for shifts; parses input and returns JSON responses.

"""
Shift Routes

SECURITY:
- Creating, editing, and deleting shifts require ADMIN or MANAGER.
- Business-unit views and the comprehensive view require ADMIN or MANAGER.
- Employees may list their own shifts; ADMIN/MANAGER may list anyone's.
- Conflict checks are open to any identified caller.
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import PRIVILEGED_ROLES, is_privileged, require_identity, require_roles
from ..errors import PlanningError
from ..services import conflict_service, shift_service
from ..validation import optional_str, require_date, require_datetime, require_str
from shiftplan.time_utils import to_utc_z


shifts_bp = Blueprint("shifts", __name__, url_prefix="/v1")


def _error(e: PlanningError):
    return jsonify({"error": str(e)}), e.status_code


def _may_view_employee(employee_id: str) -> bool:
    return is_privileged() or g.user_id == employee_id


@shifts_bp.post("/shifts")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def create_shift_route():
    data = request.get_json(silent=True) or {}

    try:
        shift = shift_service.create_shift(
            schedule_id=require_str(data, "schedule_id"),
            employee_id=require_str(data, "employee_id"),
            start_time=require_datetime(data, "start_time"),
            end_time=require_datetime(data, "end_time"),
            position=optional_str(data, "position"),
        )
        return jsonify({"shift": shift.to_dict()}), 201
    except PlanningError as e:
        return _error(e)


@shifts_bp.get("/shifts/<shift_id>")
@require_identity
def get_shift_route(shift_id):
    try:
        shift = shift_service.get_shift(shift_id)
    except PlanningError as e:
        return _error(e)
    if not _may_view_employee(shift.employee_id):
        return jsonify({"error": "Permission denied"}), 403
    return jsonify({"shift": shift.to_dict()})


@shifts_bp.put("/shifts/<shift_id>")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def update_shift_route(shift_id):
    data = request.get_json(silent=True) or {}

    try:
        shift = shift_service.update_shift(
            shift_id,
            schedule_id=require_str(data, "schedule_id"),
            employee_id=require_str(data, "employee_id"),
            start_time=require_datetime(data, "start_time"),
            end_time=require_datetime(data, "end_time"),
            position=optional_str(data, "position"),
        )
        return jsonify({"shift": shift.to_dict()})
    except PlanningError as e:
        return _error(e)


@shifts_bp.delete("/shifts/<shift_id>")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def delete_shift_route(shift_id):
    try:
        shift_service.delete_shift(shift_id)
        return "", 204
    except PlanningError as e:
        return _error(e)


@shifts_bp.get("/schedules/<schedule_id>/shifts")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def list_schedule_shifts_route(schedule_id):
    shifts = shift_service.list_schedule_shifts(schedule_id)
    return jsonify({"shifts": [s.to_dict() for s in shifts]})


@shifts_bp.get("/users/<employee_id>/shifts")
@require_identity
def list_employee_shifts_route(employee_id):
    if not _may_view_employee(employee_id):
        return jsonify({"error": "Permission denied"}), 403
    shifts = shift_service.list_employee_shifts(employee_id)
    return jsonify({"shifts": [s.to_dict() for s in shifts]})


@shifts_bp.get("/users/<employee_id>/shifts/upcoming")
@require_identity
def list_upcoming_shifts_route(employee_id):
    if not _may_view_employee(employee_id):
        return jsonify({"error": "Permission denied"}), 403
    shifts = shift_service.list_upcoming_employee_shifts(employee_id)
    return jsonify({"shifts": [s.to_dict() for s in shifts]})


@shifts_bp.get("/business-units/<business_unit_id>/shifts/week")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def business_unit_week_shifts_route(business_unit_id):
    try:
        shifts = shift_service.list_business_unit_shifts_for_week(
            business_unit_id, require_date(request.args, "week_start")
        )
        return jsonify({"shifts": [s.to_dict() for s in shifts]})
    except PlanningError as e:
        return _error(e)


@shifts_bp.get("/business-units/<business_unit_id>/shifts/day")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def business_unit_day_shifts_route(business_unit_id):
    try:
        shifts = shift_service.list_business_unit_shifts_for_day(
            business_unit_id, require_date(request.args, "date")
        )
        return jsonify({"shifts": [s.to_dict() for s in shifts]})
    except PlanningError as e:
        return _error(e)


@shifts_bp.get("/business-units/<business_unit_id>/shifts/comprehensive")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def comprehensive_shifts_route(business_unit_id):
    try:
        rows = shift_service.list_shifts_with_sessions(
            business_unit_id,
            start=require_datetime(request.args, "start_date"),
            end=require_datetime(request.args, "end_date"),
        )
        return jsonify({"shifts": rows})
    except PlanningError as e:
        return _error(e)


@shifts_bp.get("/users/<employee_id>/conflicts")
@require_identity
def schedule_conflict_route(employee_id):
    try:
        result = conflict_service.check_schedule_conflict(
            employee_id,
            require_datetime(request.args, "start_time"),
            require_datetime(request.args, "end_time"),
        )
    except PlanningError as e:
        return _error(e)

    return jsonify({
        "user_id": result.user_id,
        "start_time": to_utc_z(result.start_time),
        "end_time": to_utc_z(result.end_time),
        "has_conflict": result.has_conflict,
        "conflicting_shift_ids": result.conflicting_shift_ids,
    })
