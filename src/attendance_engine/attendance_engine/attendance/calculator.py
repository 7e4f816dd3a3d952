"""Shift/break arithmetic.

The single derivation path for logged hours, break minutes, effective hours and
shrinkage. Live check-out, correction approval and reconciliation all call
:func:`compute_work_hours`; nothing else in the package does this math.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence
from zoneinfo import ZoneInfo

from ..common.datetime_utils import at_local
from ..core.exceptions import InvalidRange
from ..shifts.model import BreakWindow


@dataclass(frozen=True)
class WorkHours:
    total_logged_hours: float
    break_minutes: float
    effective_work_hours: float
    shrinkage_percentage: float


@dataclass(frozen=True)
class UpcomingBreak:
    window: BreakWindow
    starts_in_minutes: int


def compute_work_hours(
    check_in: datetime,
    check_out: datetime,
    break_windows: Sequence[BreakWindow],
    tz: ZoneInfo,
) -> WorkHours:
    if check_out <= check_in:
        raise InvalidRange(f"check-out {check_out.isoformat()} is not after check-in {check_in.isoformat()}")

    total_logged_hours = round((check_out - check_in).total_seconds() / 3600, 2)
    break_minutes = round(break_overlap_seconds(check_in, check_out, break_windows, tz) / 60, 2)

    effective_work_hours = round(max(0.0, total_logged_hours - break_minutes / 60), 2)
    if total_logged_hours == 0:
        shrinkage = 0.0
    else:
        shrinkage = round((break_minutes / 60) / total_logged_hours * 100, 2)

    return WorkHours(
        total_logged_hours=total_logged_hours,
        break_minutes=break_minutes,
        effective_work_hours=effective_work_hours,
        shrinkage_percentage=shrinkage,
    )


def break_overlap_seconds(
    check_in: datetime,
    check_out: datetime,
    break_windows: Iterable[BreakWindow],
    tz: ZoneInfo,
) -> float:
    """Seconds of [check_in, check_out] covered by the union of applicable breaks.

    Windows are anchored on check-in's local date. Overlapping windows are
    merged so shared minutes count once.
    """
    day = check_in.astimezone(tz).date()
    clipped: list[tuple[datetime, datetime]] = []
    for window in break_windows:
        if not window.applies_on(day):
            continue
        start = max(at_local(day, window.start, tz), check_in)
        end = min(at_local(day, window.end, tz), check_out)
        if end > start:
            clipped.append((start, end))

    return sum((end - start).total_seconds() for start, end in _merge(clipped))


def _merge(intervals: list[tuple[datetime, datetime]]) -> list[tuple[datetime, datetime]]:
    merged: list[tuple[datetime, datetime]] = []
    for start, end in sorted(intervals):
        if merged and start <= merged[-1][1]:
            prev_start, prev_end = merged[-1]
            merged[-1] = (prev_start, max(prev_end, end))
        else:
            merged.append((start, end))
    return merged


def active_break_at(break_windows: Iterable[BreakWindow], at: datetime, tz: ZoneInfo) -> Optional[BreakWindow]:
    local = at.astimezone(tz)
    for window in break_windows:
        if not window.applies_on(local.date()):
            continue
        if at_local(local.date(), window.start, tz) <= local < at_local(local.date(), window.end, tz):
            return window
    return None


def next_break(break_windows: Iterable[BreakWindow], at: datetime, tz: ZoneInfo) -> Optional[UpcomingBreak]:
    local = at.astimezone(tz)
    best: Optional[UpcomingBreak] = None
    best_delta: Optional[timedelta] = None
    for window in break_windows:
        if not window.applies_on(local.date()):
            continue
        delta = at_local(local.date(), window.start, tz) - local
        if delta > timedelta(0) and (best_delta is None or delta < best_delta):
            best_delta = delta
            best = UpcomingBreak(window=window, starts_in_minutes=round(delta.total_seconds() / 60))
    return best


@dataclass(frozen=True)
class BreakStatus:
    current: Optional[BreakWindow]
    upcoming: Optional[UpcomingBreak]

    def to_dict(self) -> dict:
        def window(w: BreakWindow) -> dict:
            return {"name": w.name, "start": w.start.strftime("%H:%M"), "end": w.end.strftime("%H:%M")}

        return {
            "on_break": self.current is not None,
            "current": window(self.current) if self.current else None,
            "upcoming": (
                {**window(self.upcoming.window), "starts_in_minutes": self.upcoming.starts_in_minutes}
                if self.upcoming
                else None
            ),
        }


def break_status(break_windows: Sequence[BreakWindow], at: datetime, tz: ZoneInfo) -> BreakStatus:
    return BreakStatus(current=active_break_at(break_windows, at, tz), upcoming=next_break(break_windows, at, tz))
