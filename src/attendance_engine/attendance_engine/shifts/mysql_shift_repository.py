from __future__ import annotations

from typing import Optional

from ..core.constants import DEFAULT_TIMEZONE
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time, parse_int_set
from .model import BreakWindow, ShiftConfig
from .repository import ShiftConfigRepository


class MySQLShiftConfigRepository(ShiftConfigRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, default_timezone: str = DEFAULT_TIMEZONE):
        self._conn_factory = conn_factory
        self._default_timezone = default_timezone

    def get_active(self) -> Optional[ShiftConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT config_id, check_in_time, check_out_time, working_days,
                       full_day_hours, half_day_hours, late_grace_minutes, timezone
                FROM shift_configs
                WHERE is_active=1
                ORDER BY config_id DESC
                LIMIT 1
                """
            )
            r = fetchone(cur)
            if not r:
                return None

            cur.execute(
                """
                SELECT name, start_time, end_time, is_active, days
                FROM break_windows
                WHERE config_id=%s
                ORDER BY sort_order, break_id
                """,
                (int(r["config_id"]),),
            )
            breaks = tuple(
                BreakWindow(
                    name=b["name"],
                    start=normalize_mysql_time(b["start_time"]),
                    end=normalize_mysql_time(b["end_time"]),
                    is_active=bool(b.get("is_active", True)),
                    days=parse_int_set(b.get("days")),
                )
                for b in fetchall(cur)
            )

            return ShiftConfig(
                check_in_time=normalize_mysql_time(r["check_in_time"]),
                check_out_time=normalize_mysql_time(r["check_out_time"]),
                working_days=parse_int_set(r.get("working_days")),
                full_day_hours=float(r["full_day_hours"]),
                half_day_hours=float(r["half_day_hours"]),
                late_grace_minutes=int(r.get("late_grace_minutes") or 0),
                timezone=r.get("timezone") or self._default_timezone,
                break_windows=breaks,
            )
