from __future__ import annotations
from datetime import date, datetime
from typing import Any, Mapping

from .errors import ValidationError
from shiftplan.time_utils import parse_iso_date, parse_iso_datetime


def require_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{key} is required")
    return str(value).strip()


def optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _parse_datetime(key: str, value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be an ISO-8601 string")
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{key} must be a valid ISO-8601 datetime")


def require_datetime(data: Mapping[str, Any], key: str) -> datetime:
    parsed = _parse_datetime(key, data.get(key))
    if parsed is None:
        raise ValidationError(f"{key} is required")
    return parsed


def optional_datetime(data: Mapping[str, Any], key: str) -> datetime | None:
    return _parse_datetime(key, data.get(key))


def require_date(data: Mapping[str, Any], key: str) -> date:
    """Accepts "YYYY-MM-DD" or a full datetime (its UTC date is used)."""
    value = data.get(key)
    if value is None or not str(value).strip():
        raise ValidationError(f"{key} is required")
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{key} must be a valid ISO-8601 date")
