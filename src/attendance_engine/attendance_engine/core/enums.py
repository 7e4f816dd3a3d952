from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles as issued by the identity collaborator."""

    GOD_ADMIN = "god_admin"
    ADMIN = "admin"
    HR = "hr"
    MANAGER = "manager"
    EMPLOYEE = "employee"

    @property
    def is_org_wide_reviewer(self) -> bool:
        return self in {Role.GOD_ADMIN, Role.ADMIN, Role.HR}


class AttendanceStatus(str, Enum):
    """Canonical daily status stored on an attendance record."""

    IN_PROGRESS = "in-progress"
    PRESENT = "present"
    HALF_DAY = "half-day"
    ABSENT = "absent"
    LATE = "late"
    ON_LEAVE = "on-leave"


class PunctualityStatus(str, Enum):
    """Check-in / check-out timing relative to the scheduled shift."""

    EARLY = "early"
    ON_TIME = "on-time"
    LATE = "late"
    AUTO_CORRECTED = "auto-corrected"


class RequestStatus(str, Enum):
    """Approval state shared by corrections and out-of-premises requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CorrectionType(str, Enum):
    MISSING_ENTRY = "missing-entry"
    WRONG_CHECK_IN = "wrong-check-in"
    WRONG_CHECK_OUT = "wrong-check-out"
    WRONG_STATUS = "wrong-status"
    OTHER = "other"


class ReviewDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"

    @property
    def resulting_status(self) -> RequestStatus:
        return RequestStatus.APPROVED if self is ReviewDecision.APPROVE else RequestStatus.REJECTED
