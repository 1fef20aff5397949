"""
Date helpers - UTC day boundaries for payroll periods

Stored timestamps use one fixed UTC form: YYYY-MM-DDTHH:MM:SS.mmmZ
so that string comparison in MongoDB queries matches time order.
"""
from datetime import datetime, date, time, timedelta, timezone
from typing import Union


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """Format a datetime as a UTC millisecond ISO string ending in Z."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime('%Y-%m-%dT%H:%M:%S.') + f"{dt.microsecond // 1000:03d}Z"


def parse_iso(value: Union[str, datetime, None]):
    """Parse an ISO timestamp (with Z or offset) into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_day(value: Union[str, date, datetime]) -> date:
    """Accept YYYY-MM-DD or a full ISO timestamp and return the calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    value = (value or "").strip()
    if len(value) > 10:
        return parse_iso(value).date()
    return date.fromisoformat(value)


def day_start(day: date) -> datetime:
    """00:00:00.000Z of the given day"""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def day_end(day: date) -> datetime:
    """23:59:59.999Z of the given day"""
    return datetime.combine(day, time(23, 59, 59, 999000), tzinfo=timezone.utc)


def month_bounds(dt: datetime):
    """First instant and last millisecond of the calendar month containing dt."""
    first = dt.date().replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return day_start(first), day_end(next_first - timedelta(days=1))


def current_week_range(now: datetime = None):
    """Monday 00:00 to Saturday 23:59:59.999 of the current week (payday Saturday)."""
    now = now or utc_now()
    monday = now.date() - timedelta(days=now.weekday())
    saturday = monday + timedelta(days=5)
    return day_start(monday), day_end(saturday)
