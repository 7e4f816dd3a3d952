from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

from src.attendance_engine.attendance_engine.attendance.model import AttendanceRecord
from src.attendance_engine.attendance_engine.calendars.model import Holiday, LeaveInterval
from src.attendance_engine.attendance_engine.core.enums import AttendanceStatus, RequestStatus, Role
from src.attendance_engine.attendance_engine.corrections.model import ApprovalOutcome, CorrectionRequest
from src.attendance_engine.attendance_engine.geofence.model import GeofenceObservation, GeofenceSettings, GeofenceZone
from src.attendance_engine.attendance_engine.shifts.model import BreakWindow, ShiftConfig
from src.attendance_engine.attendance_engine.users.model import Department, Employee

IST = ZoneInfo("Asia/Kolkata")

# 2024-05-06 is a Monday.
MONDAY = date(2024, 5, 6)

ADMIN_ID = 1
HEAD_ID = 2
MANAGER_ID = 3
EMPLOYEE_ID = 4
OTHER_ID = 5
ENGINEERING = 10
SALES = 20


def ist(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=IST)


def standard_shift(**overrides) -> ShiftConfig:
    values = dict(
        check_in_time=time(9, 0),
        check_out_time=time(18, 0),
        timezone="Asia/Kolkata",
        break_windows=(BreakWindow("Lunch", time(13, 0), time(13, 30)),),
    )
    values.update(overrides)
    return ShiftConfig(**values)


@dataclass
class InMemoryShifts:
    config: Optional[ShiftConfig]

    def get_active(self) -> Optional[ShiftConfig]:
        return self.config


class InMemoryAttendance:
    """Mirrors the conditional writes of the MySQL repository."""

    def __init__(self):
        self._next_id = 1
        self.records: dict[int, AttendanceRecord] = {}

    def _key_taken(self, employee_id: int, work_date: date) -> bool:
        return self.get_for_employee_and_date(employee_id, work_date) is not None

    def _insert(self, record: AttendanceRecord) -> int:
        rid = self._next_id
        self._next_id += 1
        self.records[rid] = replace(record, attendance_id=rid)
        return rid

    def get_by_id(self, attendance_id):
        return self.records.get(int(attendance_id))

    def get_for_employee_and_date(self, employee_id, work_date):
        for r in self.records.values():
            if r.employee_id == int(employee_id) and r.work_date == work_date:
                return r
        return None

    def list_range(self, employee_id, start, end):
        rows = [r for r in self.records.values() if r.employee_id == int(employee_id) and start <= r.work_date <= end]
        return sorted(rows, key=lambda r: r.work_date)

    def list_in_progress_before(self, day):
        rows = [
            r
            for r in self.records.values()
            if r.status == AttendanceStatus.IN_PROGRESS and r.check_in and not r.check_out and r.work_date < day
        ]
        return sorted(rows, key=lambda r: (r.work_date, r.employee_id))

    def create_open(self, *, employee_id, work_date, check_in, check_in_status, geofence_validated=False):
        if self._key_taken(employee_id, work_date):
            return None
        return self._insert(
            AttendanceRecord(
                attendance_id=0,
                employee_id=int(employee_id),
                work_date=work_date,
                check_in=check_in,
                check_out=None,
                status=AttendanceStatus.IN_PROGRESS,
                check_in_status=check_in_status,
                geofence_validated=geofence_validated,
            )
        )

    def fill_open(self, *, attendance_id, check_in, check_in_status, geofence_validated=False):
        r = self.records.get(int(attendance_id))
        if not r or r.check_in is not None:
            return False
        self.records[r.attendance_id] = replace(
            r,
            check_in=check_in,
            status=AttendanceStatus.IN_PROGRESS,
            check_in_status=check_in_status,
            geofence_validated=geofence_validated,
        )
        return True

    def close_open(
        self, *, attendance_id, check_out, hours, decision, check_out_status, remarks=None, location=None, zone_name=None
    ):
        r = self.records.get(int(attendance_id))
        if not r or r.status != AttendanceStatus.IN_PROGRESS or r.check_out is not None:
            return False
        self.records[r.attendance_id] = replace(
            r,
            check_out=check_out,
            status=decision.status,
            status_reason=decision.reason,
            total_logged_hours=hours.total_logged_hours,
            break_minutes=hours.break_minutes,
            effective_work_hours=hours.effective_work_hours,
            shrinkage_percentage=hours.shrinkage_percentage,
            check_out_status=check_out_status,
            remarks=remarks if remarks is not None else r.remarks,
            check_out_location=location,
            check_out_zone_name=zone_name,
        )
        return True

    def insert_without_check_in(self, *, employee_id, work_date, status, status_reason, remarks=None, is_manual_entry=False):
        if self._key_taken(employee_id, work_date):
            return None
        return self._insert(
            AttendanceRecord(
                attendance_id=0,
                employee_id=int(employee_id),
                work_date=work_date,
                check_in=None,
                check_out=None,
                status=status,
                status_reason=status_reason,
                remarks=remarks,
                is_manual_entry=is_manual_entry,
            )
        )

    def apply_correction(self, *, attendance_id, expected, change):
        """Same guard as the approval UPDATE: write only while the record still matches ``expected``."""
        r = self.records.get(int(attendance_id))
        if not r or (r.check_in, r.check_out, r.status) != (expected.check_in, expected.check_out, expected.status):
            return False
        r = replace(
            r,
            check_in=change.check_in,
            check_out=change.check_out,
            status=change.status,
            status_reason=change.status_reason or r.status_reason,
            remarks=change.remarks,
            is_manual_entry=True,
        )
        if change.hours is not None:
            r = replace(
                r,
                total_logged_hours=change.hours.total_logged_hours,
                break_minutes=change.hours.break_minutes,
                effective_work_hours=change.hours.effective_work_hours,
                shrinkage_percentage=change.hours.shrinkage_percentage,
            )
        self.records[r.attendance_id] = r
        return True


class InMemoryDirectory:
    def __init__(self, employees: list[Employee], departments: list[Department]):
        self.employees = {e.employee_id: e for e in employees}
        self.departments = {d.dept_id: d for d in departments}

    def get_by_id(self, employee_id):
        return self.employees.get(int(employee_id))

    def get_by_username(self, username):
        return next((e for e in self.employees.values() if e.username == username), None)

    def list_active(self):
        return [e for e in self.employees.values() if e.is_active]

    def get_department(self, dept_id):
        return self.departments.get(int(dept_id))

    def list_managed_employee_ids(self, manager_id):
        headed = {d.dept_id for d in self.departments.values() if manager_id in d.head_ids}
        return {
            e.employee_id
            for e in self.employees.values()
            if e.dept_id in headed or e.reporting_manager_id == manager_id
        }


class InMemoryCorrections:
    def __init__(self, attendance: InMemoryAttendance):
        self.attendance = attendance
        self._next_id = 1
        self.requests: dict[int, CorrectionRequest] = {}

    def create_if_no_pending(self, request):
        if any(r.attendance_id == request.attendance_id and r.is_pending for r in self.requests.values()):
            return None
        rid = self._next_id
        self._next_id += 1
        self.requests[rid] = replace(request, request_id=rid, status=RequestStatus.PENDING)
        return rid

    def get(self, request_id):
        return self.requests.get(int(request_id))

    def list(self, *, employee_ids=None, status=None, limit=200):
        rows = [
            r
            for r in self.requests.values()
            if (employee_ids is None or r.employee_id in employee_ids) and (status is None or r.status == status)
        ]
        return sorted(rows, key=lambda r: r.request_id, reverse=True)[:limit]

    def decide(self, *, request_id, status, reviewer_id, reviewed_at, comments):
        r = self.requests.get(int(request_id))
        if not r or not r.is_pending:
            return False
        self.requests[r.request_id] = replace(
            r, status=status, reviewer_id=reviewer_id, reviewed_at=reviewed_at, reviewer_comments=comments
        )
        return True

    def approve(self, *, request_id, reviewer_id, reviewed_at, comments, expected, change, applied):
        r = self.requests.get(int(request_id))
        if not r or not r.is_pending:
            return ApprovalOutcome.NOT_PENDING
        if not self.attendance.apply_correction(attendance_id=r.attendance_id, expected=expected, change=change):
            return ApprovalOutcome.RECORD_CHANGED
        self.requests[r.request_id] = replace(
            r,
            status=RequestStatus.APPROVED,
            reviewer_id=reviewer_id,
            reviewed_at=reviewed_at,
            reviewer_comments=comments,
            applied=applied,
        )
        return ApprovalOutcome.APPROVED


@dataclass
class InMemoryZones:
    settings: Optional[GeofenceSettings]
    zones: dict[int, GeofenceZone] = field(default_factory=dict)

    def get_settings(self):
        return self.settings

    def list_zones(self, *, active_only=True):
        return [z for z in self.zones.values() if z.is_active or not active_only]

    def get_zone(self, zone_id):
        return self.zones.get(int(zone_id))

    def create_zone(self, zone):
        zid = max(self.zones, default=0) + 1
        self.zones[zid] = replace(zone, zone_id=zid)
        return zid

    def update_zone(self, zone):
        if zone.zone_id not in self.zones:
            return False
        self.zones[zone.zone_id] = zone
        return True


class InMemoryObservations:
    def __init__(self):
        self.observations: dict[int, GeofenceObservation] = {}

    def create(self, observation):
        oid = len(self.observations) + 1
        self.observations[oid] = replace(observation, observation_id=oid)
        return oid

    def get(self, observation_id):
        return self.observations.get(int(observation_id))

    def list(self, *, employee_ids=None, request_status=None, limit=50):
        rows = [
            o
            for o in self.observations.values()
            if (employee_ids is None or o.employee_id in employee_ids)
            and (request_status is None or (o.request is not None and o.request.status == request_status))
        ]
        return sorted(rows, key=lambda o: o.observed_at, reverse=True)[:limit]

    def decide_request(self, *, observation_id, status, reviewer_id, reviewed_at, comments=None):
        o = self.observations.get(int(observation_id))
        if not o or o.request is None or o.request.status != RequestStatus.PENDING:
            return False
        self.observations[o.observation_id] = replace(
            o,
            request=replace(o.request, status=status, reviewer_id=reviewer_id, reviewed_at=reviewed_at, comments=comments),
        )
        return True


@dataclass
class InMemoryHolidays:
    holidays: list[Holiday] = field(default_factory=list)

    def list_active(self, start, end):
        return [h for h in self.holidays if h.start_date <= end and (h.end_date or h.start_date) >= start]


@dataclass
class InMemoryLeaves:
    leaves: list[LeaveInterval] = field(default_factory=list)

    def list_approved(self, start, end):
        return [l for l in self.leaves if l.start_date <= end and l.end_date >= start]


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def send(self, notification):
        self.sent.append(notification)

    def events(self) -> list[str]:
        return [n.event for n in self.sent]


def make_employee(employee_id: int, name: str, role: Role, dept_id: Optional[int], manager_id: Optional[int] = None, **kw):
    return Employee(
        employee_id=employee_id,
        full_name=name,
        username=name.lower().replace(" ", "."),
        password_hash="x",
        role=role,
        dept_id=dept_id,
        reporting_manager_id=manager_id,
        **kw,
    )


