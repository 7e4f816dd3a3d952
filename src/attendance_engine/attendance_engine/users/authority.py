from __future__ import annotations

import logging

from ..core.exceptions import Unauthorized
from .model import Identity
from .repository import EmployeeDirectory

logger = logging.getLogger(__name__)


class ReviewerAuthority:
    """Who may approve/reject requests raised by (or for) an employee.

    Org-wide reviewers (god admin, admin, HR) may review anyone. Otherwise the
    actor must head the target's department or be the target's direct
    reporting manager. Nobody outside the org-wide roles reviews their own
    requests.

    Denials are logged with the precise reason; callers only ever see
    :class:`Unauthorized`, so the response does not leak org structure.
    """

    def __init__(self, directory: EmployeeDirectory):
        self._directory = directory

    def can_review(self, actor: Identity, target_employee_id: int) -> bool:
        if actor.role.is_org_wide_reviewer:
            return True

        if actor.employee_id == int(target_employee_id):
            logger.info("review denied: employee %s cannot review own request", actor.employee_id)
            return False

        target = self._directory.get_by_id(int(target_employee_id))
        if not target:
            logger.info("review denied: target employee %s not found (actor %s)", target_employee_id, actor.employee_id)
            return False

        if target.dept_id is not None:
            department = self._directory.get_department(target.dept_id)
            if department and actor.employee_id in department.head_ids:
                return True

        if target.reporting_manager_id == actor.employee_id:
            return True

        logger.info(
            "review denied: employee %s is neither department head nor manager of %s",
            actor.employee_id,
            target_employee_id,
        )
        return False

    def require(self, actor: Identity, target_employee_id: int) -> None:
        if not self.can_review(actor, target_employee_id):
            raise Unauthorized()
