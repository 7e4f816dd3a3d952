from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Department, Employee


class EmployeeDirectory(Protocol):
    """Org-structure collaborator.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[Employee]:
        raise NotImplementedError

    def list_active(self) -> Sequence[Employee]:
        raise NotImplementedError

    def get_department(self, dept_id: int) -> Optional[Department]:
        raise NotImplementedError

    def list_managed_employee_ids(self, manager_id: int) -> set[int]:
        """Employees in departments headed by, or reporting directly to, ``manager_id``."""

        raise NotImplementedError
