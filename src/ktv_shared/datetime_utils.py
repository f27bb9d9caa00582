"""
Datetime utilities.

Bookings, sessions and shifts are stored as naive wall-clock values in the
venue's timezone, so every "now" in the services goes through venue_now().
"""

from __future__ import annotations

import os
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo


def venue_now() -> datetime:
    """Current wall-clock time at the venue, as a naive datetime."""
    tz = ZoneInfo(os.getenv("VENUE_TIMEZONE", "Asia/Jakarta"))
    return datetime.now(tz).replace(tzinfo=None, microsecond=0)


def venue_today() -> date:
    return venue_now().date()


def sunday_based_weekday(day: date) -> int:
    """Day of week with Sunday = 0 ... Saturday = 6."""
    return (day.weekday() + 1) % 7


def parse_date(value: str | date | None, field: str = "date") -> date | None:
    from ktv_shared.validation import ValidationError

    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid {field}: expected YYYY-MM-DD") from exc


def parse_time(value: str | time | None, field: str = "time") -> time | None:
    from ktv_shared.validation import ValidationError

    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid {field}: expected HH:MM") from exc


def hours_between(start: time, end: time) -> float:
    """Length of a same-day slot in hours."""
    base = date(2000, 1, 1)
    delta = datetime.combine(base, end) - datetime.combine(base, start)
    return delta.total_seconds() / 3600


def add_hours(value: time, hours: float) -> time | None:
    """Shift a time of day forward; None when the result crosses midnight."""
    base = date(2000, 1, 1)
    shifted = datetime.combine(base, value) + timedelta(hours=hours)
    if shifted.date() != base:
        return None
    return shifted.time()


def format_remaining(delta: timedelta) -> str:
    """Format a countdown the way the room cards show it: '2h 15m'."""
    total_minutes = max(0, int(delta.total_seconds() // 60))
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"
