from __future__ import annotations

from dataclasses import replace

import pytest
from werkzeug.security import generate_password_hash

from src.attendance_engine.attendance_engine.core.enums import Role
from src.attendance_engine.attendance_engine.core.exceptions import AuthenticationError, Unauthorized
from src.attendance_engine.attendance_engine.users.model import Identity
from src.attendance_engine.attendance_engine.users.service import AuthService
from tests.support import ADMIN_ID, EMPLOYEE_ID, HEAD_ID, MANAGER_ID, OTHER_ID


@pytest.mark.parametrize("role", [Role.GOD_ADMIN, Role.ADMIN, Role.HR])
def test_org_wide_roles_review_anyone(authority, role):
    assert authority.can_review(Identity(ADMIN_ID, role), OTHER_ID) is True


def test_department_head_and_reporting_manager(authority):
    assert authority.can_review(Identity(HEAD_ID, Role.MANAGER), EMPLOYEE_ID) is True
    assert authority.can_review(Identity(MANAGER_ID, Role.MANAGER), EMPLOYEE_ID) is True
    assert authority.can_review(Identity(MANAGER_ID, Role.MANAGER), OTHER_ID) is False


def test_nobody_else(authority):
    assert authority.can_review(Identity(OTHER_ID, Role.EMPLOYEE), EMPLOYEE_ID) is False
    assert authority.can_review(Identity(EMPLOYEE_ID, Role.EMPLOYEE), EMPLOYEE_ID) is False
    assert authority.can_review(Identity(MANAGER_ID, Role.MANAGER), 999) is False


def test_require_hides_the_reason(authority):
    with pytest.raises(Unauthorized) as excinfo:
        authority.require(Identity(OTHER_ID, Role.EMPLOYEE), EMPLOYEE_ID)

    assert str(excinfo.value) == "You are not allowed to perform this action"


class TestAuthService:
    @pytest.fixture
    def auth(self, directory):
        employee = directory.employees[EMPLOYEE_ID]
        directory.employees[EMPLOYEE_ID] = replace(employee, password_hash=generate_password_hash("secret"))
        return AuthService(directory)

    def test_valid_credentials(self, auth):
        user = auth.authenticate("asha.rao", "secret")

        assert user.employee_id == EMPLOYEE_ID
        assert user.role == Role.EMPLOYEE
        assert user.dept_id == 10

    def test_wrong_password(self, auth):
        with pytest.raises(AuthenticationError):
            auth.authenticate("asha.rao", "nope")

    def test_placeholder_hash_never_matches(self, auth):
        # make_employee stores a non-werkzeug hash
        with pytest.raises(AuthenticationError):
            auth.authenticate("ravi.kumar", "x")

    def test_unknown_user(self, auth):
        with pytest.raises(AuthenticationError):
            auth.authenticate("ghost", "secret")
