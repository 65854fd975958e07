from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to the canonical UTC-naive form.

    Aware values are converted to UTC and stripped; naive values are
    interpreted as UTC already.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    return to_utc_naive(datetime.fromisoformat(s))


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse "YYYY-MM-DD" (or a full datetime, keeping its UTC date)."""
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    if len(s) == 10:
        return date.fromisoformat(s)
    return parse_iso_datetime(s).date()


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def normalize_to_week_start(value: date | datetime) -> datetime:
    """
    Monday 00:00:00 UTC of the week containing ``value``.

    Datetimes are first brought to UTC, so an aware Sunday-evening value
    in a far-east zone may land in the previous UTC week.
    """
    if isinstance(value, datetime):
        day = to_utc_naive(value).date()
    else:
        day = value
    monday = day - timedelta(days=day.weekday())
    return datetime.combine(monday, time.min)


def week_bounds(week_start: date | datetime) -> tuple[datetime, datetime]:
    """Half-open [monday, next monday) range for the week."""
    start = normalize_to_week_start(week_start)
    return start, start + timedelta(days=7)


def day_bounds(day: date | datetime) -> tuple[datetime, datetime]:
    if isinstance(day, datetime):
        day = to_utc_naive(day).date()
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def month_bounds(day: date | datetime) -> tuple[datetime, datetime]:
    if isinstance(day, datetime):
        day = to_utc_naive(day).date()
    start = datetime.combine(day.replace(day=1), time.min)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def whole_minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes elapsed from start to end, truncated toward zero."""
    seconds = (to_utc_naive(end) - to_utc_naive(start)).total_seconds()
    return int(seconds / 60)
