from __future__ import annotations

from datetime import date

import pytest

from src.attendance_engine.attendance_engine.attendance.service import AttendanceService
from src.attendance_engine.attendance_engine.corrections.service import CorrectionService
from src.attendance_engine.attendance_engine.core.enums import Role
from src.attendance_engine.attendance_engine.geofence.model import GeofenceSettings
from src.attendance_engine.attendance_engine.geofence.service import GeofenceService
from src.attendance_engine.attendance_engine.reconciliation.service import ReconciliationJob
from src.attendance_engine.attendance_engine.users.authority import ReviewerAuthority
from src.attendance_engine.attendance_engine.users.model import Department
from tests.support import (
    ADMIN_ID,
    EMPLOYEE_ID,
    ENGINEERING,
    HEAD_ID,
    MANAGER_ID,
    OTHER_ID,
    SALES,
    InMemoryAttendance,
    InMemoryCorrections,
    InMemoryDirectory,
    InMemoryHolidays,
    InMemoryLeaves,
    InMemoryObservations,
    InMemoryShifts,
    InMemoryZones,
    RecordingNotifier,
    make_employee,
    standard_shift,
)


@pytest.fixture
def directory() -> InMemoryDirectory:
    return InMemoryDirectory(
        employees=[
            make_employee(ADMIN_ID, "Hr Admin", Role.ADMIN, None),
            make_employee(HEAD_ID, "Dept Head", Role.MANAGER, ENGINEERING),
            make_employee(MANAGER_ID, "Line Manager", Role.MANAGER, SALES),
            make_employee(EMPLOYEE_ID, "Asha Rao", Role.EMPLOYEE, ENGINEERING, MANAGER_ID, join_date=date(2024, 1, 1)),
            make_employee(OTHER_ID, "Ravi Kumar", Role.EMPLOYEE, SALES),
        ],
        departments=[
            Department(ENGINEERING, "Engineering", frozenset({HEAD_ID})),
            Department(SALES, "Sales", frozenset()),
        ],
    )


@pytest.fixture
def shifts() -> InMemoryShifts:
    return InMemoryShifts(standard_shift())


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def authority(directory) -> ReviewerAuthority:
    return ReviewerAuthority(directory)


@pytest.fixture
def store(attendance_repo, shifts, notifier, leaves) -> AttendanceService:
    return AttendanceService(attendance_repo, shifts, notifier=notifier, leaves=leaves)


@pytest.fixture
def corrections_repo(attendance_repo) -> InMemoryCorrections:
    return InMemoryCorrections(attendance_repo)


@pytest.fixture
def correction_service(corrections_repo, attendance_repo, store, shifts, directory, authority, notifier):
    return CorrectionService(corrections_repo, attendance_repo, store, shifts, directory, authority, notifier)


@pytest.fixture
def zones_repo() -> InMemoryZones:
    return InMemoryZones(settings=GeofenceSettings(enabled=True, strict_check_in=False))


@pytest.fixture
def observations_repo() -> InMemoryObservations:
    return InMemoryObservations()


@pytest.fixture
def geofence_service(zones_repo, observations_repo, shifts, directory, authority, notifier) -> GeofenceService:
    return GeofenceService(zones_repo, observations_repo, shifts, directory, authority, notifier)


@pytest.fixture
def holidays() -> InMemoryHolidays:
    return InMemoryHolidays()


@pytest.fixture
def leaves() -> InMemoryLeaves:
    return InMemoryLeaves()


@pytest.fixture
def reconciliation_job(attendance_repo, store, shifts, directory, holidays, leaves, notifier) -> ReconciliationJob:
    return ReconciliationJob(attendance_repo, store, shifts, directory, holidays, leaves, notifier)
