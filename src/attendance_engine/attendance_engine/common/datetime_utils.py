from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterator
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.exceptions import ConfigMissing, ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r} (expected YYYY-MM-DD)")


def parse_iso_datetime(value: str, tz: ZoneInfo) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are read as reference-zone wall time."""
    try:
        parsed = datetime.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"Invalid timestamp {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def get_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigMissing(f"Unknown time zone {name!r}")


def now_in(tz: ZoneInfo) -> datetime:
    """Current time in the given zone.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(tz)


def local_date(ts: datetime, tz: ZoneInfo) -> date:
    """Calendar date of an instant in the reference zone (the record's day key)."""
    return ts.astimezone(tz).date()


def at_local(day: date, wall: time, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, wall, tzinfo=tz)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Inclusive day range."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
