from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from ..common.datetime_utils import get_zone
from ..core.constants import (
    DEFAULT_FULL_DAY_HOURS,
    DEFAULT_HALF_DAY_HOURS,
    DEFAULT_LATE_GRACE_MINUTES,
    DEFAULT_TIMEZONE,
)


@dataclass(frozen=True)
class BreakWindow:
    """A recurring break, e.g. lunch 13:00-13:30.

    ``days`` holds weekday numbers (0=Monday); empty means every day.
    """

    name: str
    start: time
    end: time
    is_active: bool = True
    days: frozenset[int] = frozenset()

    def applies_on(self, day: date) -> bool:
        return self.is_active and (not self.days or day.weekday() in self.days)


@dataclass(frozen=True)
class StatusThresholds:
    full_day_hours: float = DEFAULT_FULL_DAY_HOURS
    half_day_hours: float = DEFAULT_HALF_DAY_HOURS


@dataclass(frozen=True)
class ShiftConfig:
    """Organization shift configuration.

    Loaded once per request/job and passed explicitly to the calculator,
    classifier and reconciliation job.
    """

    check_in_time: time
    check_out_time: time
    working_days: frozenset[int] = frozenset({0, 1, 2, 3, 4})
    full_day_hours: float = DEFAULT_FULL_DAY_HOURS
    half_day_hours: float = DEFAULT_HALF_DAY_HOURS
    late_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES
    timezone: str = DEFAULT_TIMEZONE
    break_windows: tuple[BreakWindow, ...] = field(default_factory=tuple)

    @property
    def zone(self) -> ZoneInfo:
        return get_zone(self.timezone)

    @property
    def thresholds(self) -> StatusThresholds:
        return StatusThresholds(full_day_hours=self.full_day_hours, half_day_hours=self.half_day_hours)

    def is_working_day(self, day: date) -> bool:
        return day.weekday() in self.working_days

    def is_within_working_hours(self, at: datetime) -> bool:
        """True on a working day between scheduled check-in and check-out (inclusive)."""
        local = at.astimezone(self.zone)
        if not self.is_working_day(local.date()):
            return False
        return self.check_in_time <= local.time() <= self.check_out_time
