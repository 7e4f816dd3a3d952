from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash

from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from .repository import EmployeeDirectory


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    employee_id: int
    full_name: str
    role: Role
    dept_id: Optional[int]


class AuthService:
    """Use case: authenticate an employee (login)."""

    def __init__(self, directory: EmployeeDirectory):
        self._directory = directory

    def authenticate(self, username: str, password: str) -> SessionUser:
        employee = self._directory.get_by_username((username or "").strip())
        if not employee or not employee.is_active:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(employee.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid username or password")

        return SessionUser(
            employee_id=employee.employee_id,
            full_name=employee.full_name,
            role=employee.role,
            dept_id=employee.dept_id,
        )
