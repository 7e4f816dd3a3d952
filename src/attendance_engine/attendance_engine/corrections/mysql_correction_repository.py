from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..attendance.mysql_attendance_repository import update_if_unchanged
from ..core.enums import AttendanceStatus, CorrectionType, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_utc_naive, to_utc_naive
from .model import AppliedCorrection, ApprovalOutcome, AttendanceSnapshot, CorrectionPatch, CorrectionRequest
from .repository import CorrectionRepository

_COLUMNS = """
    request_id, employee_id, attendance_id, work_date, correction_type,
    current_check_in, current_check_out, current_status, current_work_hours,
    requested_check_in, requested_check_out, requested_status,
    reason, status, submitted_by, created_at, reviewer_id, reviewed_at, reviewer_comments,
    applied_check_in, applied_check_out, applied_status, applied_work_hours
"""


def _row_to_request(r: dict) -> CorrectionRequest:
    applied = None
    if r.get("applied_status"):
        applied = AttendanceSnapshot(
            check_in=from_utc_naive(r.get("applied_check_in")),
            check_out=from_utc_naive(r.get("applied_check_out")),
            status=AttendanceStatus(r["applied_status"]),
            work_hours=float(r.get("applied_work_hours") or 0),
        )
    return CorrectionRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        attendance_id=int(r["attendance_id"]),
        work_date=r["work_date"],
        correction_type=CorrectionType(r["correction_type"]),
        current=AttendanceSnapshot(
            check_in=from_utc_naive(r.get("current_check_in")),
            check_out=from_utc_naive(r.get("current_check_out")),
            status=AttendanceStatus(r["current_status"]),
            work_hours=float(r.get("current_work_hours") or 0),
        ),
        patch=CorrectionPatch(
            check_in=from_utc_naive(r.get("requested_check_in")),
            check_out=from_utc_naive(r.get("requested_check_out")),
            status=AttendanceStatus(r["requested_status"]) if r.get("requested_status") else None,
        ),
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        submitted_by=int(r["submitted_by"]),
        created_at=from_utc_naive(r["created_at"]),
        reviewer_id=r.get("reviewer_id"),
        reviewed_at=from_utc_naive(r.get("reviewed_at")),
        reviewer_comments=r.get("reviewer_comments"),
        applied=applied,
    )


class MySQLCorrectionRepository(CorrectionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_if_no_pending(self, request: CorrectionRequest) -> Optional[int]:
        # uq_corrections_pending (a generated column set only while pending) rejects a second pending row.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO attendance_corrections(
                    employee_id, attendance_id, work_date, correction_type,
                    current_check_in, current_check_out, current_status, current_work_hours,
                    requested_check_in, requested_check_out, requested_status,
                    reason, status, submitted_by, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(request.employee_id),
                    int(request.attendance_id),
                    request.work_date,
                    request.correction_type.value,
                    to_utc_naive(request.current.check_in),
                    to_utc_naive(request.current.check_out),
                    request.current.status.value,
                    request.current.work_hours,
                    to_utc_naive(request.patch.check_in),
                    to_utc_naive(request.patch.check_out),
                    request.patch.status.value if request.patch.status else None,
                    request.reason,
                    RequestStatus.PENDING.value,
                    int(request.submitted_by),
                    to_utc_naive(request.created_at),
                ),
            )
            if cur.rowcount <= 0:
                return None
            return int(cur.lastrowid)

    def get(self, request_id: int) -> Optional[CorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_corrections WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def list(
        self,
        *,
        employee_ids: Optional[set[int]] = None,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[CorrectionRequest]:
        clauses: list[str] = []
        params: list[object] = []
        if employee_ids is not None:
            if not employee_ids:
                return []
            clauses.append(f"employee_id IN ({', '.join(['%s'] * len(employee_ids))})")
            params.extend(sorted(employee_ids))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_corrections
                {where}
                ORDER BY created_at DESC, request_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewer_id: int,
        reviewed_at: datetime,
        comments: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_corrections
                SET status=%s, reviewer_id=%s, reviewed_at=%s, reviewer_comments=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(reviewer_id),
                    to_utc_naive(reviewed_at),
                    comments,
                    int(request_id),
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def approve(
        self,
        *,
        request_id: int,
        reviewer_id: int,
        reviewed_at: datetime,
        comments: Optional[str],
        expected: AttendanceSnapshot,
        change: AppliedCorrection,
        applied: AttendanceSnapshot,
    ) -> ApprovalOutcome:
        with db_cursor(self._conn_factory) as (conn, cur):
            cur.execute(
                "SELECT attendance_id, status FROM attendance_corrections WHERE request_id=%s FOR UPDATE",
                (int(request_id),),
            )
            row = fetchone(cur)
            if not row or row["status"] != RequestStatus.PENDING.value:
                return ApprovalOutcome.NOT_PENDING

            written = update_if_unchanged(
                cur,
                attendance_id=int(row["attendance_id"]),
                expected_check_in=expected.check_in,
                expected_check_out=expected.check_out,
                expected_status=expected.status,
                check_in=change.check_in,
                check_out=change.check_out,
                status=change.status,
                hours=change.hours,
                status_reason=change.status_reason,
                remarks=change.remarks,
            )
            if not written:
                conn.rollback()
                return ApprovalOutcome.RECORD_CHANGED

            cur.execute(
                """
                UPDATE attendance_corrections
                SET status=%s, reviewer_id=%s, reviewed_at=%s, reviewer_comments=%s,
                    applied_check_in=%s, applied_check_out=%s, applied_status=%s, applied_work_hours=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    RequestStatus.APPROVED.value,
                    int(reviewer_id),
                    to_utc_naive(reviewed_at),
                    comments,
                    to_utc_naive(applied.check_in),
                    to_utc_naive(applied.check_out),
                    applied.status.value,
                    applied.work_hours,
                    int(request_id),
                    RequestStatus.PENDING.value,
                ),
            )
            if cur.rowcount <= 0:
                conn.rollback()
                return ApprovalOutcome.NOT_PENDING
            return ApprovalOutcome.APPROVED
