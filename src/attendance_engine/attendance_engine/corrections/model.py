from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional

from ..attendance.calculator import WorkHours
from ..core.enums import AttendanceStatus, CorrectionType, RequestStatus


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class CorrectionPatch:
    """Requested values; None means "no change requested" for that field."""

    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    status: Optional[AttendanceStatus] = None

    @property
    def is_empty(self) -> bool:
        return self.check_in is None and self.check_out is None and self.status is None

    def to_dict(self) -> dict:
        return {
            "check_in": _iso(self.check_in),
            "check_out": _iso(self.check_out),
            "status": self.status.value if self.status else None,
        }


@dataclass(frozen=True)
class AttendanceSnapshot:
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    status: AttendanceStatus
    work_hours: float = 0.0

    def to_dict(self) -> dict:
        return {
            "check_in": _iso(self.check_in),
            "check_out": _iso(self.check_out),
            "status": self.status.value,
            "work_hours": self.work_hours,
        }


@dataclass(frozen=True)
class CorrectionRequest:
    request_id: int
    employee_id: int
    attendance_id: int
    work_date: date
    correction_type: CorrectionType
    current: AttendanceSnapshot
    patch: CorrectionPatch
    reason: str
    status: RequestStatus
    submitted_by: int
    created_at: datetime
    reviewer_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    reviewer_comments: Optional[str] = None
    applied: Optional[AttendanceSnapshot] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "employee_id": self.employee_id,
            "attendance_id": self.attendance_id,
            "date": self.work_date.isoformat(),
            "correction_type": self.correction_type.value,
            "current": self.current.to_dict(),
            "requested": self.patch.to_dict(),
            "reason": self.reason,
            "status": self.status.value,
            "submitted_by": self.submitted_by,
            "created_at": self.created_at.isoformat(),
            "reviewer_id": self.reviewer_id,
            "reviewed_at": _iso(self.reviewed_at),
            "reviewer_comments": self.reviewer_comments,
            "applied": self.applied.to_dict() if self.applied else None,
        }


@dataclass(frozen=True)
class AppliedCorrection:
    """Values an approval writes onto the attendance record."""

    check_in: Optional[datetime]
    check_out: Optional[datetime]
    status: AttendanceStatus
    hours: Optional[WorkHours]
    status_reason: Optional[str]
    remarks: Optional[str] = None

    def snapshot(self, fallback_hours: float) -> AttendanceSnapshot:
        return AttendanceSnapshot(
            check_in=self.check_in,
            check_out=self.check_out,
            status=self.status,
            work_hours=self.hours.effective_work_hours if self.hours else fallback_hours,
        )


class ApprovalOutcome(str, Enum):
    APPROVED = "approved"
    NOT_PENDING = "not-pending"
    RECORD_CHANGED = "record-changed"
