from __future__ import annotations

from datetime import time, timedelta, timezone

import pytest

from src.attendance_engine.attendance_engine.attendance.calculator import (
    active_break_at,
    compute_work_hours,
    next_break,
)
from src.attendance_engine.attendance_engine.core.exceptions import InvalidRange
from src.attendance_engine.attendance_engine.shifts.model import BreakWindow
from tests.support import IST, MONDAY, ist

LUNCH = BreakWindow("Lunch", time(13, 0), time(13, 30))


def test_full_day_with_lunch_break():
    hours = compute_work_hours(ist(MONDAY, 9), ist(MONDAY, 18), [LUNCH], IST)

    assert hours.total_logged_hours == 9.0
    assert hours.break_minutes == 30.0
    assert hours.effective_work_hours == 8.5
    assert hours.shrinkage_percentage == 5.56


def test_overlapping_breaks_are_counted_once():
    tea = BreakWindow("Extended lunch", time(13, 15), time(14, 0))

    hours = compute_work_hours(ist(MONDAY, 9), ist(MONDAY, 18), [LUNCH, tea], IST)

    # Union 13:00-14:00, not 30 + 45 minutes.
    assert hours.break_minutes == 60.0
    assert hours.effective_work_hours == 8.0
    assert hours.shrinkage_percentage == 11.11


def test_break_is_clipped_to_the_worked_interval():
    hours = compute_work_hours(ist(MONDAY, 13, 15), ist(MONDAY, 18), [LUNCH], IST)

    assert hours.total_logged_hours == 4.75
    assert hours.break_minutes == 15.0
    assert hours.effective_work_hours == 4.5
    assert hours.shrinkage_percentage == 5.26


def test_break_outside_the_worked_interval_is_ignored():
    hours = compute_work_hours(ist(MONDAY, 14), ist(MONDAY, 18), [LUNCH], IST)

    assert hours.break_minutes == 0.0
    assert hours.effective_work_hours == 4.0


def test_inactive_or_other_weekday_breaks_do_not_apply():
    inactive = BreakWindow("Lunch", time(13, 0), time(13, 30), is_active=False)
    fridays_only = BreakWindow("Prayer", time(13, 0), time(14, 0), days=frozenset({4}))

    hours = compute_work_hours(ist(MONDAY, 9), ist(MONDAY, 18), [inactive, fridays_only], IST)

    assert hours.break_minutes == 0.0
    assert hours.effective_work_hours == hours.total_logged_hours == 9.0


@pytest.mark.parametrize("minutes", [1, 95, 600])
def test_without_breaks_effective_equals_total(minutes):
    check_in = ist(MONDAY, 8)
    hours = compute_work_hours(check_in, check_in + timedelta(minutes=minutes), [], IST)

    assert hours.effective_work_hours == hours.total_logged_hours
    assert hours.shrinkage_percentage == 0.0


def test_break_minutes_never_exceed_logged_time():
    hours = compute_work_hours(ist(MONDAY, 13, 5), ist(MONDAY, 13, 20), [LUNCH], IST)

    assert hours.break_minutes == 15.0
    assert hours.effective_work_hours == 0.0
    assert hours.shrinkage_percentage == 100.0


@pytest.mark.parametrize("delta", [timedelta(0), timedelta(minutes=-5)])
def test_check_out_not_after_check_in_is_invalid(delta):
    with pytest.raises(InvalidRange):
        compute_work_hours(ist(MONDAY, 9), ist(MONDAY, 9) + delta, [LUNCH], IST)


def test_utc_timestamps_are_anchored_in_the_reference_zone():
    # 03:30Z..12:30Z is 09:00..18:00 in Asia/Kolkata.
    check_in = ist(MONDAY, 9).astimezone(timezone.utc)
    check_out = ist(MONDAY, 18).astimezone(timezone.utc)

    hours = compute_work_hours(check_in, check_out, [LUNCH], IST)

    assert hours.break_minutes == 30.0
    assert hours.effective_work_hours == 8.5


def test_active_break_window_lookup():
    assert active_break_at([LUNCH], ist(MONDAY, 13, 10), IST) == LUNCH
    assert active_break_at([LUNCH], ist(MONDAY, 13, 30), IST) is None
    assert active_break_at([LUNCH], ist(MONDAY, 12, 59), IST) is None


def test_next_break_reports_minutes_until_start():
    upcoming = next_break([LUNCH], ist(MONDAY, 12, 0), IST)

    assert upcoming is not None
    assert upcoming.window == LUNCH
    assert upcoming.starts_in_minutes == 60
    assert next_break([LUNCH], ist(MONDAY, 14, 0), IST) is None
