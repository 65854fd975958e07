# Overview: Flask API routes for employee availability windows.

"""
Availability Routes

SECURITY:
- Employees manage their own availability; ADMIN/MANAGER manage anyone's.
- Business-unit listings require ADMIN or MANAGER.
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import PRIVILEGED_ROLES, is_privileged, require_identity, require_roles
from ..errors import PlanningError
from ..services import availability_service
from ..validation import optional_datetime, optional_str, require_datetime, require_str


availabilities_bp = Blueprint("availabilities", __name__, url_prefix="/v1")


def _error(e: PlanningError):
    return jsonify({"error": str(e)}), e.status_code


def _may_manage(employee_id: str) -> bool:
    return is_privileged() or g.user_id == employee_id


@availabilities_bp.post("/availabilities")
@require_identity
def create_availability_route():
    data = request.get_json(silent=True) or {}

    try:
        employee_id = optional_str(data, "employee_id") or g.user_id
        if not _may_manage(employee_id):
            return jsonify({"error": "Permission denied"}), 403
        availability = availability_service.create_availability(
            employee_id=employee_id,
            start_time=require_datetime(data, "start_time"),
            end_time=require_datetime(data, "end_time"),
            business_unit_id=optional_str(data, "business_unit_id"),
        )
        return jsonify({"availability": availability.to_dict()}), 201
    except PlanningError as e:
        return _error(e)


@availabilities_bp.get("/availabilities/<availability_id>")
@require_identity
def get_availability_route(availability_id):
    try:
        availability = availability_service.get_availability(availability_id)
    except PlanningError as e:
        return _error(e)
    if not _may_manage(availability.employee_id):
        return jsonify({"error": "Permission denied"}), 403
    return jsonify({"availability": availability.to_dict()})


@availabilities_bp.put("/availabilities/<availability_id>")
@require_identity
def update_availability_route(availability_id):
    data = request.get_json(silent=True) or {}

    try:
        existing = availability_service.get_availability(availability_id)
        employee_id = require_str(data, "employee_id")
        if not (_may_manage(existing.employee_id) and _may_manage(employee_id)):
            return jsonify({"error": "Permission denied"}), 403
        availability = availability_service.update_availability(
            availability_id,
            employee_id=employee_id,
            start_time=require_datetime(data, "start_time"),
            end_time=require_datetime(data, "end_time"),
            business_unit_id=optional_str(data, "business_unit_id"),
        )
        return jsonify({"availability": availability.to_dict()})
    except PlanningError as e:
        return _error(e)


@availabilities_bp.delete("/availabilities/<availability_id>")
@require_identity
def delete_availability_route(availability_id):
    try:
        existing = availability_service.get_availability(availability_id)
        if not _may_manage(existing.employee_id):
            return jsonify({"error": "Permission denied"}), 403
        availability_service.delete_availability(availability_id)
        return "", 204
    except PlanningError as e:
        return _error(e)


@availabilities_bp.get("/users/<employee_id>/availabilities")
@require_identity
def employee_availabilities_route(employee_id):
    if not _may_manage(employee_id):
        return jsonify({"error": "Permission denied"}), 403
    availabilities = availability_service.list_employee_availabilities(employee_id)
    return jsonify({"availabilities": [a.to_dict() for a in availabilities]})


@availabilities_bp.get("/business-units/<business_unit_id>/availabilities")
@require_identity
@require_roles(*PRIVILEGED_ROLES)
def business_unit_availabilities_route(business_unit_id):
    try:
        availabilities = availability_service.list_business_unit_availabilities(
            business_unit_id,
            start=optional_datetime(request.args, "start_date"),
            end=optional_datetime(request.args, "end_date"),
        )
        return jsonify({"availabilities": [a.to_dict() for a in availabilities]})
    except PlanningError as e:
        return _error(e)
