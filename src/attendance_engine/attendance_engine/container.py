from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .calendars.mysql_calendar_repository import MySQLHolidayCalendar, MySQLLeaveCalendar
from .corrections.mysql_correction_repository import MySQLCorrectionRepository
from .corrections.service import CorrectionService
from .core.constants import DEFAULT_TIMEZONE
from .database.connection import DBConfig, DatabaseConnection
from .geofence.mysql_geofence_repository import MySQLGeofenceObservationRepository, MySQLGeofenceZoneRepository
from .geofence.service import GeofenceService
from .notifications.notifier import LoggingNotifier, Notifier
from .reconciliation.service import ReconciliationJob
from .shifts.mysql_shift_repository import MySQLShiftConfigRepository
from .users.authority import ReviewerAuthority
from .users.mysql_user_repository import MySQLEmployeeDirectory
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    directory: MySQLEmployeeDirectory
    shifts_repo: MySQLShiftConfigRepository
    attendance_repo: MySQLAttendanceRepository
    corrections_repo: MySQLCorrectionRepository
    zones_repo: MySQLGeofenceZoneRepository
    observations_repo: MySQLGeofenceObservationRepository

    notifier: Notifier
    authority: ReviewerAuthority
    auth_service: AuthService
    geofence_service: GeofenceService
    attendance_service: AttendanceService
    correction_service: CorrectionService
    reconciliation_job: ReconciliationJob


def build_container(
    *,
    db_config: dict,
    default_timezone: str = DEFAULT_TIMEZONE,
    notifier: Optional[Notifier] = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    notifier = notifier or LoggingNotifier()

    directory = MySQLEmployeeDirectory(conn)
    shifts_repo = MySQLShiftConfigRepository(conn, default_timezone=default_timezone)
    attendance_repo = MySQLAttendanceRepository(conn)
    holidays = MySQLHolidayCalendar(conn)
    leaves = MySQLLeaveCalendar(conn)
    corrections_repo = MySQLCorrectionRepository(conn)
    zones_repo = MySQLGeofenceZoneRepository(conn)
    observations_repo = MySQLGeofenceObservationRepository(conn)

    authority = ReviewerAuthority(directory)
    auth_service = AuthService(directory)
    geofence_service = GeofenceService(zones_repo, observations_repo, shifts_repo, directory, authority, notifier)
    attendance_service = AttendanceService(attendance_repo, shifts_repo, geofence_service, notifier, leaves)
    correction_service = CorrectionService(
        corrections_repo,
        attendance_repo,
        attendance_service,
        shifts_repo,
        directory,
        authority,
        notifier,
    )
    reconciliation_job = ReconciliationJob(
        attendance_repo,
        attendance_service,
        shifts_repo,
        directory,
        holidays,
        leaves,
        notifier,
    )

    return Container(
        conn=conn,
        directory=directory,
        shifts_repo=shifts_repo,
        attendance_repo=attendance_repo,
        corrections_repo=corrections_repo,
        zones_repo=zones_repo,
        observations_repo=observations_repo,
        notifier=notifier,
        authority=authority,
        auth_service=auth_service,
        geofence_service=geofence_service,
        attendance_service=attendance_service,
        correction_service=correction_service,
        reconciliation_job=reconciliation_job,
    )
