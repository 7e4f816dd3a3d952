"""Reconciliation job.

Step A closes in-progress records left open on past days; Step B backfills
absent records for past working days. Both steps only ever write through
conditional operations, so re-running over the same range is a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from ..attendance.calculator import WorkHours, compute_work_hours
from ..attendance.classifier import StatusDecision, classify
from ..attendance.model import AttendanceRecord, append_remark
from ..attendance.repository import AttendanceRepository
from ..attendance.service import AttendanceService
from ..calendars.repository import HolidayCalendar, LeaveCalendar
from ..common.datetime_utils import at_local, iter_days
from ..core.enums import PunctualityStatus
from ..core.exceptions import ValidationError
from ..notifications.notifier import Notification, Notifier, notify_safely
from ..shifts.model import ShiftConfig
from ..shifts.repository import ShiftConfigRepository
from ..shifts.service import load_shift_config
from ..users.repository import EmployeeDirectory

logger = logging.getLogger(__name__)

MONTH_TO_DATE = "month-to-date"
ROLLING_30_DAYS = "rolling-30-days"
RANGE_MODES = (MONTH_TO_DATE, ROLLING_30_DAYS)

AUTO_CLOSE_REMARK = "Auto-corrected: Past day incomplete."
ABSENT_REASON = "No check-in recorded"
ABSENT_REMARK = "Auto-marked absent (Reconciliation)"


def default_range(today: date, mode: str = MONTH_TO_DATE) -> tuple[date, date]:
    """Backfill range ending yesterday.

    On the first of the month ``month-to-date`` yields an empty range (start > end).
    """
    yesterday = today - timedelta(days=1)
    if mode == MONTH_TO_DATE:
        return today.replace(day=1), yesterday
    if mode == ROLLING_30_DAYS:
        return today - timedelta(days=30), yesterday
    raise ValidationError(f"Unknown range mode {mode!r} (expected one of {', '.join(RANGE_MODES)})")


@dataclass
class DaySummary:
    marked_absent: int = 0
    skipped: int = 0
    errors: int = 0
    skip_reason: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "marked_absent": self.marked_absent,
            "skipped": self.skipped,
            "errors": self.errors,
            "skip_reason": self.skip_reason,
        }


@dataclass
class ReconciliationSummary:
    start: date
    end: date
    closed: int = 0
    marked_absent: int = 0
    skipped: int = 0
    errors: int = 0
    days: dict[date, DaySummary] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "closed": self.closed,
            "marked_absent": self.marked_absent,
            "skipped": self.skipped,
            "errors": self.errors,
            "days": {d.isoformat(): s.to_dict() for d, s in sorted(self.days.items())},
        }


class ReconciliationJob:
    def __init__(
        self,
        attendance: AttendanceRepository,
        store: AttendanceService,
        shifts: ShiftConfigRepository,
        directory: EmployeeDirectory,
        holidays: HolidayCalendar,
        leaves: LeaveCalendar,
        notifier: Optional[Notifier] = None,
    ):
        self._attendance = attendance
        self._store = store
        self._shifts = shifts
        self._directory = directory
        self._holidays = holidays
        self._leaves = leaves
        self._notifier = notifier

    def run(self, start: date, end: date, today: date) -> ReconciliationSummary:
        # ConfigMissing propagates: without a shift there is nothing to reconcile against.
        shift = load_shift_config(self._shifts)
        summary = ReconciliationSummary(start=start, end=end)

        self._close_stale(shift, today, summary)
        self._backfill_absences(shift, start, min(end, today - timedelta(days=1)), summary)

        logger.info(
            "reconciliation %s..%s: closed=%s marked_absent=%s skipped=%s errors=%s",
            start,
            end,
            summary.closed,
            summary.marked_absent,
            summary.skipped,
            summary.errors,
        )
        notify_safely(
            self._notifier,
            Notification(
                event="reconciliation_completed",
                title="Attendance reconciliation completed",
                body=(
                    f"{summary.closed} stale records closed, {summary.marked_absent} absences recorded, "
                    f"{summary.errors} errors"
                ),
                data=summary.to_dict(),
            ),
        )
        return summary

    # ---- Step A ----

    def _close_stale(self, shift: ShiftConfig, today: date, summary: ReconciliationSummary) -> None:
        for record in self._attendance.list_in_progress_before(today):
            try:
                if self._close_one(shift, record):
                    summary.closed += 1
                else:
                    summary.skipped += 1
            except Exception:
                summary.errors += 1
                logger.exception("failed to auto-close attendance %s (employee %s)", record.attendance_id, record.employee_id)

    def _close_one(self, shift: ShiftConfig, record: AttendanceRecord) -> bool:
        if record.check_in is None:
            return False

        scheduled = at_local(record.work_date, shift.check_out_time, shift.zone)
        check_out = max(record.check_in, scheduled)
        if check_out > record.check_in:
            hours = compute_work_hours(record.check_in, check_out, shift.break_windows, shift.zone)
        else:
            # Checked in at or after the scheduled check-out: nothing counted.
            hours = WorkHours(total_logged_hours=0.0, break_minutes=0.0, effective_work_hours=0.0, shrinkage_percentage=0.0)
        decision = classify(hours.effective_work_hours, shift.thresholds)

        closed = self._attendance.close_open(
            attendance_id=record.attendance_id,
            check_out=check_out,
            hours=hours,
            decision=StatusDecision(decision.status, f"{decision.reason} (Auto-corrected)"),
            check_out_status=PunctualityStatus.AUTO_CORRECTED,
            remarks=append_remark(record.remarks, AUTO_CLOSE_REMARK),
        )
        if not closed:
            logger.info("attendance %s was closed concurrently; skipping", record.attendance_id)
        return closed

    # ---- Step B ----

    def _backfill_absences(self, shift: ShiftConfig, start: date, end: date, summary: ReconciliationSummary) -> None:
        if end < start:
            return

        holidays = list(self._holidays.list_active(start, end))
        leaves = list(self._leaves.list_approved(start, end))
        employees = list(self._directory.list_active())

        for day in iter_days(start, end):
            day_summary = summary.days.setdefault(day, DaySummary())

            if not shift.is_working_day(day):
                day_summary.skip_reason = "non-working day"
                continue
            holiday = next((h for h in holidays if h.covers(day)), None)
            if holiday:
                day_summary.skip_reason = f"holiday: {holiday.name}"
                continue

            for employee in employees:
                try:
                    marked = self._backfill_one(employee.employee_id, employee.join_date, day, leaves)
                except Exception:
                    day_summary.errors += 1
                    summary.errors += 1
                    logger.exception("failed to backfill %s for employee %s", day, employee.employee_id)
                    continue

                if marked:
                    day_summary.marked_absent += 1
                    summary.marked_absent += 1
                else:
                    day_summary.skipped += 1
                    summary.skipped += 1

    def _backfill_one(self, employee_id: int, join_date: Optional[date], day: date, leaves) -> bool:
        if join_date is not None and join_date > day:
            return False
        if self._attendance.get_for_employee_and_date(employee_id, day):
            return False
        if any(leave.employee_id == employee_id and leave.covers(day) for leave in leaves):
            return False
        return self._store.upsert_absent(employee_id, day, ABSENT_REASON, ABSENT_REMARK)
