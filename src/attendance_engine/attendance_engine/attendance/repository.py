from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, PunctualityStatus
from ..geofence.model import Coordinate
from .calculator import WorkHours
from .classifier import StatusDecision
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Persistence for attendance records.

    Every write targets a single (employee_id, work_date) row and is
    conditional: methods return None/False when the row was not in the
    expected state instead of overwriting it.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_range(self, employee_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_in_progress_before(self, day: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create_open(
        self,
        *,
        employee_id: int,
        work_date: date,
        check_in: datetime,
        check_in_status: Optional[PunctualityStatus],
        geofence_validated: bool = False,
    ) -> Optional[int]:
        """Insert an in-progress record; None if one already exists for the day."""

        raise NotImplementedError

    def fill_open(
        self,
        *,
        attendance_id: int,
        check_in: datetime,
        check_in_status: Optional[PunctualityStatus],
        geofence_validated: bool = False,
    ) -> bool:
        """Set check-in on a placeholder record that has none yet."""

        raise NotImplementedError

    def close_open(
        self,
        *,
        attendance_id: int,
        check_out: datetime,
        hours: WorkHours,
        decision: StatusDecision,
        check_out_status: Optional[PunctualityStatus],
        remarks: Optional[str] = None,
        location: Optional[Coordinate] = None,
        zone_name: Optional[str] = None,
    ) -> bool:
        """Close the record only while it is still in-progress."""

        raise NotImplementedError

    def insert_without_check_in(
        self,
        *,
        employee_id: int,
        work_date: date,
        status: AttendanceStatus,
        status_reason: str,
        remarks: Optional[str] = None,
        is_manual_entry: bool = False,
    ) -> Optional[int]:
        """Insert an absent or on-leave record; None (no overwrite) if the day already has one."""

        raise NotImplementedError
