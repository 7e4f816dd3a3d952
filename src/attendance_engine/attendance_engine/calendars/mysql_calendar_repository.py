from __future__ import annotations

from datetime import date
from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Holiday, LeaveInterval
from .repository import HolidayCalendar, LeaveCalendar


class MySQLHolidayCalendar(HolidayCalendar):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active(self, start: date, end: date) -> Sequence[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT name, start_date, end_date
                FROM holidays
                WHERE is_active=1 AND start_date <= %s AND COALESCE(end_date, start_date) >= %s
                ORDER BY start_date
                """,
                (end, start),
            )
            return [
                Holiday(name=r["name"], start_date=r["start_date"], end_date=r.get("end_date"))
                for r in fetchall(cur)
            ]


class MySQLLeaveCalendar(LeaveCalendar):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_approved(self, start: date, end: date) -> Sequence[LeaveInterval]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, start_date, end_date, work_from_home
                FROM leave_requests
                WHERE status='approved' AND start_date <= %s AND end_date >= %s
                """,
                (end, start),
            )
            return [
                LeaveInterval(
                    employee_id=int(r["employee_id"]),
                    start_date=r["start_date"],
                    end_date=r["end_date"],
                    work_from_home=bool(r.get("work_from_home")),
                )
                for r in fetchall(cur)
            ]
