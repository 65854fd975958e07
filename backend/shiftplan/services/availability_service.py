# Overview: Service-layer operations for employee availability windows.

from __future__ import annotations

from datetime import datetime

from ..errors import NotFoundError, ValidationError
from ..extensions import stores
from ..models import Availability
from shiftplan.time_utils import to_utc_naive, utcnow


def _validate_window(employee_id: str | None, start_time: datetime | None, end_time: datetime | None):
    if not employee_id:
        raise ValidationError("employee_id is required")
    if start_time is None or end_time is None:
        raise ValidationError("start_time and end_time are required")
    start_time = to_utc_naive(start_time)
    end_time = to_utc_naive(end_time)
    if end_time <= start_time:
        raise ValidationError("end_time must be after start_time")
    return start_time, end_time


def _require_availability(availability_id: str) -> Availability:
    availability = stores.availabilities.get(availability_id)
    if not availability:
        raise NotFoundError(f"Availability not found with id: {availability_id}")
    return availability


def create_availability(
    *,
    employee_id: str,
    start_time: datetime,
    end_time: datetime,
    business_unit_id: str | None = None,
) -> Availability:
    start_time, end_time = _validate_window(employee_id, start_time, end_time)

    with stores.atomic():
        availability = stores.availabilities.save(
            Availability(
                employee_id=employee_id,
                business_unit_id=business_unit_id,
                start_time=start_time,
                end_time=end_time,
            )
        )
    return availability


def get_availability(availability_id: str) -> Availability:
    return _require_availability(availability_id)


def update_availability(
    availability_id: str,
    *,
    employee_id: str,
    start_time: datetime,
    end_time: datetime,
    business_unit_id: str | None = None,
) -> Availability:
    start_time, end_time = _validate_window(employee_id, start_time, end_time)

    with stores.atomic():
        availability = _require_availability(availability_id)
        availability.employee_id = employee_id
        availability.start_time = start_time
        availability.end_time = end_time
        if business_unit_id is not None:
            availability.business_unit_id = business_unit_id
        availability.updated_at = utcnow()
        stores.availabilities.save(availability)
    return availability


def delete_availability(availability_id: str) -> None:
    with stores.atomic():
        stores.availabilities.delete(_require_availability(availability_id))


def list_employee_availabilities(employee_id: str) -> list[Availability]:
    return stores.availabilities.find_by_employee(employee_id)


def list_business_unit_availabilities(
    business_unit_id: str,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Availability]:
    """All windows of the business unit, or only those overlapping [start, end) when both are given."""
    if start is None and end is None:
        return stores.availabilities.find_by_business_unit(business_unit_id)
    if start is None or end is None:
        raise ValidationError("start and end must be given together")
    start = to_utc_naive(start)
    end = to_utc_naive(end)
    if end <= start:
        raise ValidationError("end must be after start")
    return stores.availabilities.find_by_business_unit_overlapping(business_unit_id, start, end)
