from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

from ..attendance.calculator import compute_work_hours
from ..attendance.classifier import classify
from ..attendance.model import AttendanceRecord, append_remark
from ..attendance.repository import AttendanceRepository
from ..attendance.service import AttendanceService
from ..common.datetime_utils import local_date, now_in
from ..common.validators import optional_text, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import AttendanceStatus, CorrectionType, RequestStatus, ReviewDecision
from ..core.exceptions import (
    AlreadyProcessed,
    DuplicatePending,
    InvalidRange,
    NotFound,
    RecordChanged,
    ValidationError,
)
from ..notifications.notifier import Notification, Notifier, notify_safely
from ..shifts.model import ShiftConfig
from ..shifts.repository import ShiftConfigRepository
from ..shifts.service import load_shift_config
from ..users.authority import ReviewerAuthority
from ..users.model import Identity
from ..users.repository import EmployeeDirectory
from .model import AppliedCorrection, ApprovalOutcome, AttendanceSnapshot, CorrectionPatch, CorrectionRequest
from .repository import CorrectionRepository

logger = logging.getLogger(__name__)

PLACEHOLDER_REASON = "Placeholder for missing-entry correction"


def snapshot_of(record: AttendanceRecord) -> AttendanceSnapshot:
    return AttendanceSnapshot(
        check_in=record.check_in,
        check_out=record.check_out,
        status=record.status,
        work_hours=record.effective_work_hours,
    )


def placeholder_for(employee_id: int, work_date: date) -> AttendanceRecord:
    """The record a missing-entry request would create, before it is written."""
    return AttendanceRecord(
        attendance_id=0,
        employee_id=employee_id,
        work_date=work_date,
        check_in=None,
        check_out=None,
        status=AttendanceStatus.ABSENT,
        status_reason=PLACEHOLDER_REASON,
        is_manual_entry=True,
    )


def merge_patch(record: AttendanceRecord, patch: CorrectionPatch, shift: ShiftConfig) -> AppliedCorrection:
    """Overlay a patch on a record and re-derive hours/status.

    When both times are known the calculator and classifier run again; an
    explicit status in the patch still wins over the classified one, and the
    status reason says so.
    """
    check_in = patch.check_in or record.check_in
    check_out = patch.check_out or record.check_out

    if check_in is not None and check_out is not None:
        hours = compute_work_hours(check_in, check_out, shift.break_windows, shift.zone)
        decision = classify(hours.effective_work_hours, shift.thresholds)
        if patch.status is not None and patch.status != decision.status:
            reason = f"Corrected: status set to {patch.status.value} by reviewer (hours alone: {decision.reason})"
        else:
            reason = f"Corrected: {decision.reason}"
        return AppliedCorrection(
            check_in=check_in,
            check_out=check_out,
            status=patch.status or decision.status,
            hours=hours,
            status_reason=reason,
        )

    return AppliedCorrection(
        check_in=check_in,
        check_out=check_out,
        status=patch.status or record.status,
        hours=None,
        status_reason=f"Corrected: status set to {patch.status.value} by reviewer" if patch.status else None,
    )


class CorrectionService:
    """Correction requests: submit, review (approve/reject) and listing.

    A request is decided exactly once: the decision is a compare-and-set on
    ``pending``, so of two concurrent reviewers only one gets through and the
    other sees :class:`AlreadyProcessed`. Approval claims the request and
    writes the record in one transaction, and only if the record still holds
    the values the merge was computed from.
    """

    def __init__(
        self,
        corrections: CorrectionRepository,
        attendance: AttendanceRepository,
        store: AttendanceService,
        shifts: ShiftConfigRepository,
        directory: EmployeeDirectory,
        authority: ReviewerAuthority,
        notifier: Optional[Notifier] = None,
    ):
        self._corrections = corrections
        self._attendance = attendance
        self._store = store
        self._shifts = shifts
        self._directory = directory
        self._authority = authority
        self._notifier = notifier

    def _find_record(
        self,
        employee_id: int,
        attendance_id: Optional[int],
        work_date: Optional[date],
        correction_type: CorrectionType,
    ) -> Optional[AttendanceRecord]:
        """The targeted record; None only for a missing-entry request on a day without one."""
        if attendance_id is not None:
            record = self._attendance.get_by_id(int(attendance_id))
            if not record or record.employee_id != employee_id:
                raise NotFound("Attendance record not found")
            return record

        if work_date is None:
            raise ValidationError("attendance_id or date is required")

        record = self._attendance.get_for_employee_and_date(employee_id, work_date)
        if record is None and correction_type != CorrectionType.MISSING_ENTRY:
            raise NotFound(f"No attendance record on {work_date.isoformat()}")
        return record

    def _create_placeholder(self, employee_id: int, work_date: date) -> AttendanceRecord:
        created = self._store.upsert_absent(employee_id, work_date, PLACEHOLDER_REASON, is_manual_entry=True)
        record = self._attendance.get_for_employee_and_date(employee_id, work_date)
        if not record:
            raise NotFound(f"No attendance record on {work_date.isoformat()}")
        if created:
            logger.info("created missing-entry placeholder %s for employee %s", record.attendance_id, employee_id)
        return record

    @staticmethod
    def _validate_patch(
        record: AttendanceRecord,
        patch: CorrectionPatch,
        correction_type: CorrectionType,
        shift: ShiftConfig,
    ) -> None:
        if patch.is_empty and correction_type != CorrectionType.MISSING_ENTRY:
            raise ValidationError("Request at least one change")
        if patch.status == AttendanceStatus.IN_PROGRESS:
            raise ValidationError("A correction cannot set the status to in-progress")
        if patch.check_in is not None and local_date(patch.check_in, shift.zone) != record.work_date:
            raise ValidationError(f"Requested check-in must fall on {record.work_date.isoformat()}")

        check_in = patch.check_in or record.check_in
        check_out = patch.check_out or record.check_out
        if check_in is not None and check_out is not None and check_out <= check_in:
            raise InvalidRange("Requested check-out must be after check-in")

        changes = (
            patch.check_in is not None and patch.check_in != record.check_in,
            patch.check_out is not None and patch.check_out != record.check_out,
            patch.status is not None and patch.status != record.status,
        )
        if not any(changes) and correction_type != CorrectionType.MISSING_ENTRY:
            raise ValidationError("Request at least one change")

    def submit(
        self,
        identity: Identity,
        *,
        correction_type: CorrectionType,
        patch: CorrectionPatch,
        reason: str,
        employee_id: Optional[int] = None,
        attendance_id: Optional[int] = None,
        work_date: Optional[date] = None,
        at: Optional[datetime] = None,
    ) -> CorrectionRequest:
        target_id = int(employee_id) if employee_id is not None else identity.employee_id
        if target_id != identity.employee_id:
            # Proxy submission on behalf of someone the submitter could review for.
            self._authority.require(identity, target_id)

        reason = require_non_empty(reason, "reason")
        shift = load_shift_config(self._shifts)
        at = at or now_in(shift.zone)

        record = self._find_record(target_id, attendance_id, work_date, correction_type)
        if record is None:
            # Nothing is written until the request is known to be valid.
            self._validate_patch(placeholder_for(target_id, work_date), patch, correction_type, shift)
            record = self._create_placeholder(target_id, work_date)
        self._validate_patch(record, patch, correction_type, shift)

        request = CorrectionRequest(
            request_id=0,
            employee_id=target_id,
            attendance_id=record.attendance_id,
            work_date=record.work_date,
            correction_type=correction_type,
            current=snapshot_of(record),
            patch=patch,
            reason=reason,
            status=RequestStatus.PENDING,
            submitted_by=identity.employee_id,
            created_at=at,
        )
        request_id = self._corrections.create_if_no_pending(request)
        if request_id is None:
            raise DuplicatePending(f"A pending correction already exists for {record.work_date.isoformat()}")
        request = replace(request, request_id=request_id)

        employee = self._directory.get_by_id(target_id)
        if employee and employee.reporting_manager_id is not None:
            notify_safely(
                self._notifier,
                Notification(
                    event="correction_submitted",
                    title="Attendance correction request",
                    body=f"{employee.full_name} requested a {correction_type.value} correction for {record.work_date.isoformat()}",
                    employee_id=employee.reporting_manager_id,
                    data={"request_id": request_id},
                ),
            )
        return request

    def review(
        self,
        request_id: int,
        identity: Identity,
        decision: ReviewDecision,
        comments: Optional[str] = None,
        *,
        at: Optional[datetime] = None,
    ) -> CorrectionRequest:
        request = self._corrections.get(int(request_id))
        if not request:
            raise NotFound("Correction request not found")
        if not request.is_pending:
            raise AlreadyProcessed(f"This request has already been {request.status.value}")

        self._authority.require(identity, request.employee_id)

        shift = load_shift_config(self._shifts)
        at = at or now_in(shift.zone)
        comments = optional_text(comments)
        status = decision.resulting_status
        result = replace(request, status=status, reviewer_id=identity.employee_id, reviewed_at=at, reviewer_comments=comments)

        if decision == ReviewDecision.APPROVE:
            record = self._attendance.get_by_id(request.attendance_id)
            if not record:
                raise NotFound("Attendance record not found")

            remark = f"Corrected on {local_date(at, shift.zone).isoformat()} - {request.reason}"
            change = replace(merge_patch(record, request.patch, shift), remarks=append_remark(record.remarks, remark))
            applied = change.snapshot(record.effective_work_hours)
            outcome = self._corrections.approve(
                request_id=request.request_id,
                reviewer_id=identity.employee_id,
                reviewed_at=at,
                comments=comments,
                expected=snapshot_of(record),
                change=change,
                applied=applied,
            )
            if outcome == ApprovalOutcome.NOT_PENDING:
                raise AlreadyProcessed("This request has already been processed")
            if outcome == ApprovalOutcome.RECORD_CHANGED:
                logger.info(
                    "correction %s not applied: attendance %s changed during review", request.request_id, record.attendance_id
                )
                raise RecordChanged("The attendance record changed during review; review it again")

            result = replace(result, applied=applied)
            logger.info(
                "correction %s applied to attendance %s by %s", request.request_id, record.attendance_id, identity.employee_id
            )
        else:
            claimed = self._corrections.decide(
                request_id=request.request_id,
                status=status,
                reviewer_id=identity.employee_id,
                reviewed_at=at,
                comments=comments,
            )
            if not claimed:
                raise AlreadyProcessed("This request has already been processed")

        notify_safely(
            self._notifier,
            Notification(
                event=f"correction_{status.value}",
                title=f"Attendance correction {status.value}",
                body=comments or f"Your correction for {request.work_date.isoformat()} was {status.value}",
                employee_id=request.employee_id,
                data={"request_id": request.request_id},
            ),
        )
        return result

    def list_mine(
        self,
        identity: Identity,
        *,
        status: Optional[RequestStatus] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[CorrectionRequest]:
        return self._corrections.list(employee_ids={identity.employee_id}, status=status, limit=limit)

    def list_pending_for(self, identity: Identity, *, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[CorrectionRequest]:
        """Pending requests the caller may review."""
        if identity.role.is_org_wide_reviewer:
            return self._corrections.list(status=RequestStatus.PENDING, limit=limit)
        managed = self._directory.list_managed_employee_ids(identity.employee_id) - {identity.employee_id}
        return self._corrections.list(employee_ids=managed, status=RequestStatus.PENDING, limit=limit)
