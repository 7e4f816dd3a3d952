from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Department, Employee
from .repository import EmployeeDirectory

_COLUMNS = "employee_id, full_name, username, password_hash, role, dept_id, reporting_manager_id, join_date, is_active"


def _row_to_employee(row: dict) -> Employee:
    return Employee(
        employee_id=int(row["employee_id"]),
        full_name=row["full_name"],
        username=row["username"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        dept_id=row.get("dept_id"),
        reporting_manager_id=row.get("reporting_manager_id"),
        join_date=row.get("join_date"),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLEmployeeDirectory(EmployeeDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (int(employee_id),))
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def get_by_username(self, username: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE username=%s", (username,))
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def list_active(self) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE is_active=1 ORDER BY employee_id")
            return [_row_to_employee(r) for r in fetchall(cur)]

    def get_department(self, dept_id: int) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT dept_id, dept_name FROM departments WHERE dept_id=%s", (int(dept_id),))
            row = fetchone(cur)
            if not row:
                return None
            cur.execute("SELECT employee_id FROM department_heads WHERE dept_id=%s", (int(dept_id),))
            heads = frozenset(int(h["employee_id"]) for h in fetchall(cur))
            return Department(dept_id=int(row["dept_id"]), dept_name=row["dept_name"], head_ids=heads)

    def list_managed_employee_ids(self, manager_id: int) -> set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT e.employee_id
                FROM employees e
                JOIN department_heads dh ON dh.dept_id = e.dept_id
                WHERE dh.employee_id=%s
                UNION
                SELECT employee_id FROM employees WHERE reporting_manager_id=%s
                """,
                (int(manager_id), int(manager_id)),
            )
            return {int(r["employee_id"]) for r in fetchall(cur)}
