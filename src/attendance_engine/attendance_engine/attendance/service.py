from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..calendars.model import LeaveInterval
from ..calendars.repository import LeaveCalendar
from ..common.datetime_utils import local_date, now_in
from ..core.enums import AttendanceStatus
from ..core.exceptions import AlreadyOpen, NoOpenRecord, NotFound, OnLeave, ValidationError
from ..geofence.model import Coordinate
from ..geofence.service import GeofenceService
from ..notifications.notifier import Notification, Notifier, notify_safely
from ..shifts.model import ShiftConfig
from ..shifts.repository import ShiftConfigRepository
from ..shifts.service import load_shift_config
from ..users.model import Identity
from .calculator import BreakStatus, break_status, compute_work_hours
from .classifier import classify, classify_check_in, classify_check_out
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

ON_LEAVE_REASON = "Approved leave"


class AttendanceService:
    """The attendance record store.

    ``open_day``, ``close_day``, ``upsert_absent`` and ``mark_on_leave`` are the only ways a
    record's check-in, check-out and derived hours are written outside of
    correction approval. ``check_in`` / ``check_out`` are the live façade used
    by the HTTP layer.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        shifts: ShiftConfigRepository,
        geofence: Optional[GeofenceService] = None,
        notifier: Optional[Notifier] = None,
        leaves: Optional[LeaveCalendar] = None,
    ):
        self._attendance = attendance
        self._shifts = shifts
        self._geofence = geofence
        self._notifier = notifier
        self._leaves = leaves

    def _require(self, attendance_id: Optional[int]) -> AttendanceRecord:
        record = self._attendance.get_by_id(attendance_id) if attendance_id else None
        if not record:
            raise NotFound("Attendance record not found")
        return record

    def open_day(
        self,
        employee_id: int,
        work_date: date,
        check_in: datetime,
        *,
        shift: Optional[ShiftConfig] = None,
        geofence_validated: bool = False,
    ) -> AttendanceRecord:
        shift = shift or load_shift_config(self._shifts)
        check_in_status = classify_check_in(check_in, shift)

        existing = self._attendance.get_for_employee_and_date(int(employee_id), work_date)
        if existing and existing.check_in is not None:
            raise AlreadyOpen(f"Already checked in on {work_date.isoformat()}")

        if existing:
            # Placeholder (e.g. missing-entry correction or absence) without a check-in yet.
            filled = self._attendance.fill_open(
                attendance_id=existing.attendance_id,
                check_in=check_in,
                check_in_status=check_in_status,
                geofence_validated=geofence_validated,
            )
            if not filled:
                raise AlreadyOpen(f"Already checked in on {work_date.isoformat()}")
            return self._require(existing.attendance_id)

        attendance_id = self._attendance.create_open(
            employee_id=int(employee_id),
            work_date=work_date,
            check_in=check_in,
            check_in_status=check_in_status,
            geofence_validated=geofence_validated,
        )
        if attendance_id is None:
            raise AlreadyOpen(f"Already checked in on {work_date.isoformat()}")
        return self._require(attendance_id)

    def close_day(
        self,
        employee_id: int,
        work_date: date,
        check_out: datetime,
        *,
        shift: Optional[ShiftConfig] = None,
        location: Optional[Coordinate] = None,
        zone_name: Optional[str] = None,
    ) -> AttendanceRecord:
        record = self._attendance.get_for_employee_and_date(int(employee_id), work_date)
        if not record or record.status != AttendanceStatus.IN_PROGRESS or record.check_in is None:
            raise NoOpenRecord(f"No open attendance record on {work_date.isoformat()}")

        shift = shift or load_shift_config(self._shifts)
        hours = compute_work_hours(record.check_in, check_out, shift.break_windows, shift.zone)
        decision = classify(hours.effective_work_hours, shift.thresholds)

        closed = self._attendance.close_open(
            attendance_id=record.attendance_id,
            check_out=check_out,
            hours=hours,
            decision=decision,
            check_out_status=classify_check_out(check_out, shift),
            location=location,
            zone_name=zone_name,
        )
        if not closed:
            raise NoOpenRecord(f"Attendance record on {work_date.isoformat()} was closed concurrently")
        return self._require(record.attendance_id)

    def upsert_absent(
        self,
        employee_id: int,
        work_date: date,
        reason: str,
        remarks: Optional[str] = None,
        *,
        is_manual_entry: bool = False,
    ) -> bool:
        """Insert an absent record unless the day already has one (never overwrites)."""
        created = self._attendance.insert_without_check_in(
            employee_id=int(employee_id),
            work_date=work_date,
            status=AttendanceStatus.ABSENT,
            status_reason=reason,
            remarks=remarks,
            is_manual_entry=is_manual_entry,
        )
        return created is not None

    def mark_on_leave(self, employee_id: int, work_date: date) -> bool:
        created = self._attendance.insert_without_check_in(
            employee_id=int(employee_id),
            work_date=work_date,
            status=AttendanceStatus.ON_LEAVE,
            status_reason=ON_LEAVE_REASON,
        )
        return created is not None

    def approved_leave_on(self, employee_id: int, day: date) -> Optional[LeaveInterval]:
        if self._leaves is None:
            return None
        leaves = self._leaves.list_approved(day, day)
        return next((leave for leave in leaves if leave.employee_id == int(employee_id) and leave.covers(day)), None)

    def list_range(self, employee_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        if end < start:
            raise ValidationError("end date must not be before start date")
        return self._attendance.list_range(int(employee_id), start, end)

    def break_status(self, at: Optional[datetime] = None) -> BreakStatus:
        shift = load_shift_config(self._shifts)
        return break_status(shift.break_windows, at or now_in(shift.zone), shift.zone)

    # ---- live façade ----

    def check_in(
        self,
        identity: Identity,
        at: Optional[datetime] = None,
        coordinate: Optional[Coordinate] = None,
    ) -> AttendanceRecord:
        shift = load_shift_config(self._shifts)
        at = at or now_in(shift.zone)
        work_date = local_date(at, shift.zone)

        leave = self.approved_leave_on(identity.employee_id, work_date)
        if leave is not None and not leave.work_from_home:
            if self.mark_on_leave(identity.employee_id, work_date):
                logger.info("employee %s is on approved leave on %s", identity.employee_id, work_date)
            raise OnLeave(f"You are on approved leave on {work_date.isoformat()}")

        validated = False
        # Work-from-home days are not held to the office geofence.
        if self._geofence is not None and leave is None:
            validated = self._geofence.validate_check_in(identity.employee_id, coordinate)

        record = self.open_day(
            identity.employee_id,
            work_date,
            at,
            shift=shift,
            geofence_validated=validated,
        )
        logger.info("employee %s checked in on %s (%s)", identity.employee_id, record.work_date, record.check_in_status)
        return record

    def check_out(
        self,
        identity: Identity,
        at: Optional[datetime] = None,
        coordinate: Optional[Coordinate] = None,
    ) -> AttendanceRecord:
        shift = load_shift_config(self._shifts)
        at = at or now_in(shift.zone)
        work_date = local_date(at, shift.zone)

        zone_name = None
        on_leave = self.approved_leave_on(identity.employee_id, work_date) is not None
        if coordinate is not None and self._geofence is not None and not on_leave:
            evaluation = self._geofence.locate(identity.employee_id, coordinate)
            if evaluation is not None and evaluation.is_within:
                zone_name = evaluation.nearest_zone.name

        record = self.close_day(
            identity.employee_id,
            work_date,
            at,
            shift=shift,
            location=coordinate,
            zone_name=zone_name,
        )
        logger.info(
            "employee %s checked out on %s: %.2fh effective, %s",
            identity.employee_id,
            record.work_date,
            record.effective_work_hours,
            record.status.value,
        )

        notify_safely(
            self._notifier,
            Notification(
                event="checked_out",
                title="Checked out",
                body=(
                    f"Worked {record.effective_work_hours:.2f}h "
                    f"({record.break_minutes:g} min break); status {record.status.value}"
                ),
                employee_id=identity.employee_id,
                data={"attendance_id": record.attendance_id, "check_out_zone": record.check_out_zone_name},
            ),
        )
        return record
