from __future__ import annotations

from dataclasses import replace
from datetime import timezone

import pytest

from src.attendance_engine.attendance_engine.attendance.service import AttendanceService
from src.attendance_engine.attendance_engine.calendars.model import LeaveInterval
from src.attendance_engine.attendance_engine.core.enums import AttendanceStatus, PunctualityStatus, Role
from src.attendance_engine.attendance_engine.core.exceptions import (
    AlreadyOpen,
    ConfigMissing,
    InvalidRange,
    NoOpenRecord,
    OnLeave,
    OutsideGeofence,
)
from src.attendance_engine.attendance_engine.geofence.model import Coordinate, GeofenceSettings, GeofenceZone
from src.attendance_engine.attendance_engine.users.model import Identity
from tests.support import EMPLOYEE_ID, MONDAY, ist

EMPLOYEE = Identity(EMPLOYEE_ID, Role.EMPLOYEE)
OFFICE = Coordinate(12.9716, 77.5946)


def test_open_day_creates_in_progress_record(store):
    record = store.open_day(EMPLOYEE_ID, MONDAY, ist(MONDAY, 9, 2))

    assert record.status == AttendanceStatus.IN_PROGRESS
    assert record.check_in == ist(MONDAY, 9, 2)
    assert record.check_out is None
    assert record.check_in_status == PunctualityStatus.ON_TIME


def test_second_check_in_same_day_is_rejected(store):
    store.open_day(EMPLOYEE_ID, MONDAY, ist(MONDAY, 9))

    with pytest.raises(AlreadyOpen):
        store.open_day(EMPLOYEE_ID, MONDAY, ist(MONDAY, 10))


def test_open_day_fills_a_placeholder_without_check_in(store, attendance_repo):
    assert store.upsert_absent(EMPLOYEE_ID, MONDAY, "Placeholder", is_manual_entry=True)

    record = store.open_day(EMPLOYEE_ID, MONDAY, ist(MONDAY, 9, 30))

    assert record.status == AttendanceStatus.IN_PROGRESS
    assert record.check_in_status == PunctualityStatus.LATE
    assert len(attendance_repo.records) == 1


def test_close_day_derives_hours_and_status(store):
    store.open_day(EMPLOYEE_ID, MONDAY, ist(MONDAY, 9))

    record = store.close_day(EMPLOYEE_ID, MONDAY, ist(MONDAY, 18))

    assert record.status == AttendanceStatus.PRESENT
    assert record.total_logged_hours == 9.0
    assert record.break_minutes == 30.0
    assert record.effective_work_hours == 8.5
    assert record.shrinkage_percentage == 5.56
    assert record.check_out_status == PunctualityStatus.ON_TIME
    assert record.status_reason.startswith("Worked 8.50h")


def test_close_day_without_open_record(store):
    with pytest.raises(NoOpenRecord):
        store.close_day(EMPLOYEE_ID, MONDAY, ist(MONDAY, 18))


def test_close_day_twice_is_rejected(store):
    store.open_day(EMPLOYEE_ID, MONDAY, ist(MONDAY, 9))
    store.close_day(EMPLOYEE_ID, MONDAY, ist(MONDAY, 18))

    with pytest.raises(NoOpenRecord):
        store.close_day(EMPLOYEE_ID, MONDAY, ist(MONDAY, 19))


def test_close_day_before_check_in_keeps_record_open(store, attendance_repo):
    opened = store.open_day(EMPLOYEE_ID, MONDAY, ist(MONDAY, 9))

    with pytest.raises(InvalidRange):
        store.close_day(EMPLOYEE_ID, MONDAY, ist(MONDAY, 8))

    assert attendance_repo.get_by_id(opened.attendance_id).status == AttendanceStatus.IN_PROGRESS


def test_lost_close_race_reports_no_open_record(store, attendance_repo, monkeypatch):
    store.open_day(EMPLOYEE_ID, MONDAY, ist(MONDAY, 9))
    monkeypatch.setattr(attendance_repo, "close_open", lambda **kwargs: False)

    with pytest.raises(NoOpenRecord):
        store.close_day(EMPLOYEE_ID, MONDAY, ist(MONDAY, 18))


def test_upsert_absent_never_overwrites(store, attendance_repo):
    opened = store.open_day(EMPLOYEE_ID, MONDAY, ist(MONDAY, 9))

    assert store.upsert_absent(EMPLOYEE_ID, MONDAY, "No check-in recorded") is False
    assert attendance_repo.get_by_id(opened.attendance_id) == opened


def test_list_range_reads_by_employee_and_dates(store):
    store.upsert_absent(EMPLOYEE_ID, MONDAY, "No check-in recorded")
    store.upsert_absent(EMPLOYEE_ID, MONDAY.replace(day=7), "No check-in recorded")
    store.upsert_absent(EMPLOYEE_ID, MONDAY.replace(day=20), "No check-in recorded")

    records = store.list_range(EMPLOYEE_ID, MONDAY, MONDAY.replace(day=10))

    assert [r.work_date.day for r in records] == [6, 7]


def test_check_in_uses_reference_zone_date(store):
    # 19:00Z on Sunday is 00:30 on Monday in Asia/Kolkata.
    at = ist(MONDAY, 0, 30).astimezone(timezone.utc)

    record = store.check_in(EMPLOYEE, at)

    assert record.work_date == MONDAY
    assert record.check_in_status == PunctualityStatus.EARLY


def test_check_out_notifies_employee(store, notifier):
    store.check_in(EMPLOYEE, ist(MONDAY, 9))
    record = store.check_out(EMPLOYEE, ist(MONDAY, 18))

    assert record.status == AttendanceStatus.PRESENT
    assert notifier.events() == ["checked_out"]
    assert notifier.sent[0].employee_id == EMPLOYEE_ID


def test_check_in_without_shift_configuration(store, shifts):
    shifts.config = None

    with pytest.raises(ConfigMissing):
        store.check_in(EMPLOYEE, ist(MONDAY, 9))


def test_failing_notifier_does_not_break_check_out(store, notifier, monkeypatch):
    def boom(notification):
        raise RuntimeError("smtp down")

    monkeypatch.setattr(notifier, "send", boom)
    store.check_in(EMPLOYEE, ist(MONDAY, 9))

    assert store.check_out(EMPLOYEE, ist(MONDAY, 18)).status == AttendanceStatus.PRESENT


class TestStrictGeofenceCheckIn:
    @pytest.fixture
    def live_store(self, attendance_repo, shifts, geofence_service, zones_repo, notifier, leaves):
        zones_repo.settings = GeofenceSettings(enabled=True, strict_check_in=True)
        zones_repo.zones[1] = GeofenceZone(1, "HQ", OFFICE, 150)
        return AttendanceService(attendance_repo, shifts, geofence_service, notifier, leaves)

    def test_inside_zone_is_validated(self, live_store):
        record = live_store.check_in(EMPLOYEE, ist(MONDAY, 9), OFFICE)

        assert record.geofence_validated is True

    def test_outside_zone_is_rejected(self, live_store, attendance_repo):
        far_away = Coordinate(13.0827, 80.2707)

        with pytest.raises(OutsideGeofence):
            live_store.check_in(EMPLOYEE, ist(MONDAY, 9), far_away)

        assert attendance_repo.records == {}

    def test_non_strict_mode_records_outside_check_in(self, live_store, zones_repo):
        zones_repo.settings = replace(zones_repo.settings, strict_check_in=False)

        record = live_store.check_in(EMPLOYEE, ist(MONDAY, 9), Coordinate(13.0827, 80.2707))

        assert record.geofence_validated is False

    def test_work_from_home_day_skips_geofence(self, live_store, leaves):
        leaves.leaves.append(LeaveInterval(EMPLOYEE_ID, MONDAY, MONDAY, work_from_home=True))

        record = live_store.check_in(EMPLOYEE, ist(MONDAY, 9), Coordinate(13.0827, 80.2707))

        assert record.status == AttendanceStatus.IN_PROGRESS
        assert record.geofence_validated is False

    def test_check_out_stores_location_and_zone(self, live_store, notifier):
        live_store.check_in(EMPLOYEE, ist(MONDAY, 9), OFFICE)

        record = live_store.check_out(EMPLOYEE, ist(MONDAY, 18), OFFICE)

        assert record.check_out_location == OFFICE
        assert record.check_out_zone_name == "HQ"
        assert notifier.sent[-1].data["check_out_zone"] == "HQ"

    def test_check_out_outside_zone_keeps_location_only(self, live_store):
        live_store.check_in(EMPLOYEE, ist(MONDAY, 9), OFFICE)
        far_away = Coordinate(13.0827, 80.2707)

        record = live_store.check_out(EMPLOYEE, ist(MONDAY, 18), far_away)

        assert record.check_out_location == far_away
        assert record.check_out_zone_name is None
        assert record.to_dict()["check_out_location"] == {"latitude": 13.0827, "longitude": 80.2707}


def test_check_in_on_approved_leave_is_refused_and_recorded(store, leaves, attendance_repo):
    leaves.leaves.append(LeaveInterval(EMPLOYEE_ID, MONDAY, MONDAY.replace(day=8)))

    with pytest.raises(OnLeave):
        store.check_in(EMPLOYEE, ist(MONDAY, 9))

    record = attendance_repo.get_for_employee_and_date(EMPLOYEE_ID, MONDAY)
    assert record.status == AttendanceStatus.ON_LEAVE
    assert record.check_in is None
    assert record.status_reason == "Approved leave"

    # A second attempt is refused the same way and writes nothing new.
    with pytest.raises(OnLeave):
        store.check_in(EMPLOYEE, ist(MONDAY, 10))
    assert len(attendance_repo.records) == 1


def test_leave_of_another_employee_does_not_block_check_in(store, leaves):
    leaves.leaves.append(LeaveInterval(EMPLOYEE_ID + 1, MONDAY, MONDAY))

    assert store.check_in(EMPLOYEE, ist(MONDAY, 9)).status == AttendanceStatus.IN_PROGRESS


def test_check_out_without_geofence_stores_reported_location(store):
    store.check_in(EMPLOYEE, ist(MONDAY, 9))

    record = store.check_out(EMPLOYEE, ist(MONDAY, 18), OFFICE)

    assert record.check_out_location == OFFICE
    assert record.check_out_zone_name is None


def test_break_status_during_and_before_lunch(store):
    during = store.break_status(ist(MONDAY, 13, 10))
    before = store.break_status(ist(MONDAY, 12, 0))

    assert during.current.name == "Lunch"
    assert during.upcoming is None
    assert before.current is None
    assert before.upcoming.starts_in_minutes == 60
    assert before.to_dict()["upcoming"] == {"name": "Lunch", "start": "13:00", "end": "13:30", "starts_in_minutes": 60}
