"""
Date and time helpers.

All instants are stored in UTC. Gym-local dates are derived with the
organization's IANA timezone.
"""

from __future__ import annotations

import calendar
from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import settings


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive values read back from databases that drop tzinfo."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def get_zone(name: str | None) -> ZoneInfo:
    try:
        return ZoneInfo(name or settings.DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo(settings.DEFAULT_TIMEZONE)


def local_date(value: datetime, tz_name: str | None) -> date:
    """Calendar date of an instant as seen in the given timezone."""
    return as_utc(value).astimezone(get_zone(tz_name)).date()


def today_in(tz_name: str | None) -> date:
    return local_date(utcnow(), tz_name)


def local_day_bounds(day: date, tz_name: str | None) -> tuple[datetime, datetime]:
    """UTC [start, end) instants covering one local calendar day."""
    zone = get_zone(tz_name)
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(date.fromordinal(day.toordinal() + 1), time.min, tzinfo=zone)
    return start.astimezone(UTC), end.astimezone(UTC)


def local_to_utc(day: date, hh_mm: str, tz_name: str | None) -> datetime:
    """Convert a local wall-clock ``HH:MM`` on ``day`` to a UTC instant."""
    hours, minutes = (int(part) for part in hh_mm.split(":"))
    local = datetime.combine(day, time(hours, minutes), tzinfo=get_zone(tz_name))
    return local.astimezone(UTC)


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def format_dmy(value: date | None) -> str:
    """DD/MM/YYYY, the format used in member-facing messages."""
    return value.strftime("%d/%m/%Y") if value else ""
