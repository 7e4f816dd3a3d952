from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, PunctualityStatus
from ..geofence.model import Coordinate


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: the canonical attendance record of one employee for one day."""

    attendance_id: int
    employee_id: int
    work_date: date
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    status: AttendanceStatus
    total_logged_hours: float = 0.0
    break_minutes: float = 0.0
    effective_work_hours: float = 0.0
    shrinkage_percentage: float = 0.0
    status_reason: Optional[str] = None
    is_manual_entry: bool = False
    remarks: Optional[str] = None
    check_in_status: Optional[PunctualityStatus] = None
    check_out_status: Optional[PunctualityStatus] = None
    geofence_validated: bool = False
    check_out_location: Optional[Coordinate] = None
    check_out_zone_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "employee_id": self.employee_id,
            "date": self.work_date.isoformat(),
            "check_in": self.check_in.isoformat() if self.check_in else None,
            "check_out": self.check_out.isoformat() if self.check_out else None,
            "status": self.status.value,
            "total_logged_hours": self.total_logged_hours,
            "break_minutes": self.break_minutes,
            "effective_work_hours": self.effective_work_hours,
            "shrinkage_percentage": self.shrinkage_percentage,
            "status_reason": self.status_reason,
            "is_manual_entry": self.is_manual_entry,
            "remarks": self.remarks,
            "check_in_status": self.check_in_status.value if self.check_in_status else None,
            "check_out_status": self.check_out_status.value if self.check_out_status else None,
            "geofence_validated": self.geofence_validated,
            "check_out_location": (
                {"latitude": self.check_out_location.latitude, "longitude": self.check_out_location.longitude}
                if self.check_out_location
                else None
            ),
            "check_out_zone_name": self.check_out_zone_name,
        }


def append_remark(existing: Optional[str], remark: str) -> str:
    return f"{existing} | {remark}" if existing else remark
