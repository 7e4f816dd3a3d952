from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Identity:
    """Who is calling, as established by the identity collaborator (session login)."""

    employee_id: int
    role: Role


@dataclass(frozen=True)
class Employee:
    """Domain entity: an employee as seen by the org-structure collaborator.

    Note: Plain data object (no DB access code here).
    """

    employee_id: int
    full_name: str
    username: str
    password_hash: str
    role: Role
    dept_id: Optional[int]
    reporting_manager_id: Optional[int] = None
    join_date: Optional[date] = None
    is_active: bool = True

    @property
    def identity(self) -> Identity:
        return Identity(employee_id=self.employee_id, role=self.role)


@dataclass(frozen=True)
class Department:
    dept_id: int
    dept_name: str
    head_ids: frozenset[int] = frozenset()
