from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..common.datetime_utils import at_local
from ..core.enums import AttendanceStatus, PunctualityStatus
from ..shifts.model import ShiftConfig, StatusThresholds


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    reason: str


def classify(effective_work_hours: float, thresholds: StatusThresholds) -> StatusDecision:
    """Map effective hours onto present / half-day / absent."""
    hours = float(effective_work_hours)
    full = thresholds.full_day_hours
    half = thresholds.half_day_hours

    if hours >= full:
        return StatusDecision(AttendanceStatus.PRESENT, f"Worked {hours:.2f}h (>= {full:g}h full-day threshold)")
    if hours >= half:
        return StatusDecision(
            AttendanceStatus.HALF_DAY,
            f"Worked {hours:.2f}h (>= {half:g}h half-day, < {full:g}h full-day threshold)",
        )
    return StatusDecision(AttendanceStatus.ABSENT, f"Worked only {hours:.2f}h (< {half:g}h half-day threshold)")


def classify_check_in(check_in: datetime, shift: ShiftConfig) -> PunctualityStatus:
    tz = shift.zone
    local = check_in.astimezone(tz)
    scheduled = at_local(local.date(), shift.check_in_time, tz)
    if local < scheduled:
        return PunctualityStatus.EARLY
    if local <= scheduled + timedelta(minutes=shift.late_grace_minutes):
        return PunctualityStatus.ON_TIME
    return PunctualityStatus.LATE


def classify_check_out(check_out: datetime, shift: ShiftConfig) -> PunctualityStatus:
    tz = shift.zone
    local = check_out.astimezone(tz)
    scheduled = at_local(local.date(), shift.check_out_time, tz)
    if local < scheduled:
        return PunctualityStatus.EARLY
    if local <= scheduled + timedelta(minutes=shift.late_grace_minutes):
        return PunctualityStatus.ON_TIME
    return PunctualityStatus.LATE
