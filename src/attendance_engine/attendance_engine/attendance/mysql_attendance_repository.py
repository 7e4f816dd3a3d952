from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, PunctualityStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_utc_naive, to_utc_naive
from ..geofence.model import Coordinate
from .calculator import WorkHours
from .classifier import StatusDecision
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, work_date, check_in_time, check_out_time, status,
    total_logged_hours, break_minutes, effective_work_hours, shrinkage_percentage,
    status_reason, is_manual_entry, remarks, check_in_status, check_out_status, geofence_validated,
    check_out_latitude, check_out_longitude, check_out_zone_name
"""


def _location(latitude, longitude) -> Optional[Coordinate]:
    if latitude is None or longitude is None:
        return None
    return Coordinate(latitude=float(latitude), longitude=float(longitude))


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        check_in=from_utc_naive(r.get("check_in_time")),
        check_out=from_utc_naive(r.get("check_out_time")),
        status=AttendanceStatus(r["status"]),
        total_logged_hours=float(r.get("total_logged_hours") or 0),
        break_minutes=float(r.get("break_minutes") or 0),
        effective_work_hours=float(r.get("effective_work_hours") or 0),
        shrinkage_percentage=float(r.get("shrinkage_percentage") or 0),
        status_reason=r.get("status_reason"),
        is_manual_entry=bool(r.get("is_manual_entry")),
        remarks=r.get("remarks"),
        check_in_status=PunctualityStatus(r["check_in_status"]) if r.get("check_in_status") else None,
        check_out_status=PunctualityStatus(r["check_out_status"]) if r.get("check_out_status") else None,
        geofence_validated=bool(r.get("geofence_validated")),
        check_out_location=_location(r.get("check_out_latitude"), r.get("check_out_longitude")),
        check_out_zone_name=r.get("check_out_zone_name"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE employee_id=%s AND work_date=%s",
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_range(self, employee_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date DESC
                """,
                (int(employee_id), start, end),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_in_progress_before(self, day: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE status=%s AND check_in_time IS NOT NULL AND check_out_time IS NULL AND work_date < %s
                ORDER BY work_date, employee_id
                """,
                (AttendanceStatus.IN_PROGRESS.value, day),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def create_open(
        self,
        *,
        employee_id: int,
        work_date: date,
        check_in: datetime,
        check_in_status: Optional[PunctualityStatus],
        geofence_validated: bool = False,
    ) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO attendance_records(
                    employee_id, work_date, check_in_time, status, check_in_status, geofence_validated
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    work_date,
                    to_utc_naive(check_in),
                    AttendanceStatus.IN_PROGRESS.value,
                    check_in_status.value if check_in_status else None,
                    int(bool(geofence_validated)),
                ),
            )
            if cur.rowcount <= 0:
                return None
            return int(cur.lastrowid)

    def fill_open(
        self,
        *,
        attendance_id: int,
        check_in: datetime,
        check_in_status: Optional[PunctualityStatus],
        geofence_validated: bool = False,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_in_time=%s, status=%s, check_in_status=%s, geofence_validated=%s
                WHERE attendance_id=%s AND check_in_time IS NULL
                """,
                (
                    to_utc_naive(check_in),
                    AttendanceStatus.IN_PROGRESS.value,
                    check_in_status.value if check_in_status else None,
                    int(bool(geofence_validated)),
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s, status=%s, status_reason=%s,
                    total_logged_hours=%s, break_minutes=%s, effective_work_hours=%s, shrinkage_percentage=%s,
                    check_out_status=%s, remarks=COALESCE(%s, remarks),
                    check_out_latitude=%s, check_out_longitude=%s, check_out_zone_name=%s
                WHERE attendance_id=%s AND status=%s AND check_out_time IS NULL
                """,
                (
                    to_utc_naive(check_out),
                    decision.status.value,
                    decision.reason,
                    hours.total_logged_hours,
                    hours.break_minutes,
                    hours.effective_work_hours,
                    hours.shrinkage_percentage,
                    check_out_status.value if check_out_status else None,
                    remarks,
                    location.latitude if location else None,
                    location.longitude if location else None,
                    zone_name,
                    int(attendance_id),
                    AttendanceStatus.IN_PROGRESS.value,
                ),
            )
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO attendance_records(
                    employee_id, work_date, status, status_reason, remarks, is_manual_entry
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    work_date,
                    status.value,
                    status_reason,
                    remarks,
                    int(bool(is_manual_entry)),
                ),
            )
            if cur.rowcount <= 0:
                return None
            return int(cur.lastrowid)


def update_if_unchanged(
    cur,
    *,
    attendance_id: int,
    expected_check_in: Optional[datetime],
    expected_check_out: Optional[datetime],
    expected_status: AttendanceStatus,
    check_in: Optional[datetime],
    check_out: Optional[datetime],
    status: AttendanceStatus,
    hours: Optional[WorkHours],
    status_reason: Optional[str],
    remarks: Optional[str],
) -> bool:
    """Write corrected values on the caller's cursor, guarded by the values read before.

    Runs inside the caller's transaction; False when the record changed meanwhile.
    """
    assignments = [
        "check_in_time=%s",
        "check_out_time=%s",
        "status=%s",
        "status_reason=COALESCE(%s, status_reason)",
        "remarks=%s",
        "is_manual_entry=1",
    ]
    params: list[object] = [to_utc_naive(check_in), to_utc_naive(check_out), status.value, status_reason, remarks]
    if hours is not None:
        assignments += [
            "total_logged_hours=%s",
            "break_minutes=%s",
            "effective_work_hours=%s",
            "shrinkage_percentage=%s",
        ]
        params += [
            hours.total_logged_hours,
            hours.break_minutes,
            hours.effective_work_hours,
            hours.shrinkage_percentage,
        ]
    params += [
        int(attendance_id),
        expected_status.value,
        to_utc_naive(expected_check_in),
        to_utc_naive(expected_check_out),
    ]

    cur.execute(
        f"""
        UPDATE attendance_records
        SET {', '.join(assignments)}
        WHERE attendance_id=%s AND status=%s AND check_in_time <=> %s AND check_out_time <=> %s
        """,
        tuple(params),
    )
    return cur.rowcount > 0
