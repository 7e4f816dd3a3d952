from __future__ import annotations

import json
from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    format_int_set,
    from_utc_naive,
    parse_int_set,
    to_utc_naive,
)
from .model import Coordinate, GeofenceObservation, GeofenceSettings, GeofenceZone, OutOfPremisesRequest, ZoneCheck
from .repository import GeofenceObservationRepository, GeofenceZoneRepository

_ZONE_COLUMNS = """
    zone_id, name, latitude, longitude, radius_meters, is_active,
    allowed_department_ids, allowed_employee_ids, address
"""

_OBSERVATION_COLUMNS = """
    observation_id, employee_id, latitude, longitude, accuracy, observed_at, distance_meters,
    is_within, zone_id, zone_name, breakdown_json, during_work_hours, during_break, break_name,
    department_id, reporting_manager_id, request_reason, request_status, requested_at,
    reviewer_id, reviewed_at, reviewer_comments
"""


def _row_to_zone(r: dict) -> GeofenceZone:
    return GeofenceZone(
        zone_id=int(r["zone_id"]),
        name=r["name"],
        center=Coordinate(latitude=float(r["latitude"]), longitude=float(r["longitude"])),
        radius_meters=float(r["radius_meters"]),
        is_active=bool(r.get("is_active", True)),
        allowed_department_ids=parse_int_set(r.get("allowed_department_ids")),
        allowed_employee_ids=parse_int_set(r.get("allowed_employee_ids")),
        address=r.get("address"),
    )


def _row_to_observation(r: dict) -> GeofenceObservation:
    request = None
    if r.get("request_status"):
        request = OutOfPremisesRequest(
            reason=r["request_reason"],
            status=RequestStatus(r["request_status"]),
            requested_at=from_utc_naive(r["requested_at"]),
            reviewer_id=r.get("reviewer_id"),
            reviewed_at=from_utc_naive(r.get("reviewed_at")),
            comments=r.get("reviewer_comments"),
        )
    breakdown = tuple(
        ZoneCheck(
            zone_id=int(c["zone_id"]),
            zone_name=c["zone_name"],
            distance=float(c["distance"]),
            is_within=bool(c["is_within"]),
        )
        for c in json.loads(r.get("breakdown_json") or "[]")
    )
    return GeofenceObservation(
        observation_id=int(r["observation_id"]),
        employee_id=int(r["employee_id"]),
        coordinate=Coordinate(latitude=float(r["latitude"]), longitude=float(r["longitude"])),
        observed_at=from_utc_naive(r["observed_at"]),
        distance=float(r["distance_meters"]) if r.get("distance_meters") is not None else None,
        is_within=bool(r["is_within"]),
        zone_id=r.get("zone_id"),
        zone_name=r.get("zone_name"),
        breakdown=breakdown,
        accuracy=float(r["accuracy"]) if r.get("accuracy") is not None else None,
        during_work_hours=bool(r.get("during_work_hours")),
        during_break=bool(r.get("during_break")),
        break_name=r.get("break_name"),
        department_id=r.get("department_id"),
        reporting_manager_id=r.get("reporting_manager_id"),
        request=request,
    )


class MySQLGeofenceZoneRepository(GeofenceZoneRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_settings(self) -> Optional[GeofenceSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT enabled, strict_check_in, require_approval
                FROM geofence_settings
                ORDER BY settings_id DESC
                LIMIT 1
                """
            )
            r = fetchone(cur)
            if not r:
                return None
            return GeofenceSettings(
                enabled=bool(r["enabled"]),
                strict_check_in=bool(r["strict_check_in"]),
                require_approval=bool(r["require_approval"]),
            )

    def list_zones(self, *, active_only: bool = True) -> Sequence[GeofenceZone]:
        where = "WHERE is_active=1" if active_only else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ZONE_COLUMNS} FROM geofence_zones {where} ORDER BY zone_id")
            return [_row_to_zone(r) for r in fetchall(cur)]

    def get_zone(self, zone_id: int) -> Optional[GeofenceZone]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ZONE_COLUMNS} FROM geofence_zones WHERE zone_id=%s", (int(zone_id),))
            r = fetchone(cur)
            return _row_to_zone(r) if r else None

    def create_zone(self, zone: GeofenceZone) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO geofence_zones(
                    name, latitude, longitude, radius_meters, is_active,
                    allowed_department_ids, allowed_employee_ids, address
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    zone.name,
                    zone.center.latitude,
                    zone.center.longitude,
                    zone.radius_meters,
                    int(zone.is_active),
                    format_int_set(zone.allowed_department_ids),
                    format_int_set(zone.allowed_employee_ids),
                    zone.address,
                ),
            )
            return int(cur.lastrowid)

    def update_zone(self, zone: GeofenceZone) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE geofence_zones
                SET name=%s, latitude=%s, longitude=%s, radius_meters=%s, is_active=%s,
                    allowed_department_ids=%s, allowed_employee_ids=%s, address=%s
                WHERE zone_id=%s
                """,
                (
                    zone.name,
                    zone.center.latitude,
                    zone.center.longitude,
                    zone.radius_meters,
                    int(zone.is_active),
                    format_int_set(zone.allowed_department_ids),
                    format_int_set(zone.allowed_employee_ids),
                    zone.address,
                    int(zone.zone_id),
                ),
            )
            return cur.rowcount > 0


class MySQLGeofenceObservationRepository(GeofenceObservationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, observation: GeofenceObservation) -> int:
        req = observation.request
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO geofence_observations(
                    employee_id, latitude, longitude, accuracy, observed_at, distance_meters,
                    is_within, zone_id, zone_name, breakdown_json, during_work_hours, during_break,
                    break_name, department_id, reporting_manager_id,
                    request_reason, request_status, requested_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(observation.employee_id),
                    observation.coordinate.latitude,
                    observation.coordinate.longitude,
                    observation.accuracy,
                    to_utc_naive(observation.observed_at),
                    round(observation.distance, 2) if observation.distance is not None else None,
                    int(observation.is_within),
                    observation.zone_id,
                    observation.zone_name,
                    json.dumps([c.to_dict() for c in observation.breakdown]),
                    int(observation.during_work_hours),
                    int(observation.during_break),
                    observation.break_name,
                    observation.department_id,
                    observation.reporting_manager_id,
                    req.reason if req else None,
                    req.status.value if req else None,
                    to_utc_naive(req.requested_at) if req else None,
                ),
            )
            return int(cur.lastrowid)

    def get(self, observation_id: int) -> Optional[GeofenceObservation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_OBSERVATION_COLUMNS} FROM geofence_observations WHERE observation_id=%s",
                (int(observation_id),),
            )
            r = fetchone(cur)
            return _row_to_observation(r) if r else None

    def list(
        self,
        *,
        employee_ids: Optional[set[int]] = None,
        request_status: Optional[RequestStatus] = None,
        limit: int = 50,
    ) -> Sequence[GeofenceObservation]:
        clauses: list[str] = []
        params: list[object] = []

        if employee_ids is not None:
            if not employee_ids:
                return []
            clauses.append(f"employee_id IN ({', '.join(['%s'] * len(employee_ids))})")
            params.extend(sorted(employee_ids))
        if request_status is not None:
            clauses.append("request_status=%s")
            params.append(request_status.value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_OBSERVATION_COLUMNS}
                FROM geofence_observations
                {where}
                ORDER BY observed_at DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_row_to_observation(r) for r in fetchall(cur)]

    def decide_request(
        self,
        *,
        observation_id: int,
        status: RequestStatus,
        reviewer_id: int,
        reviewed_at: datetime,
        comments: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE geofence_observations
                SET request_status=%s, reviewer_id=%s, reviewed_at=%s, reviewer_comments=%s
                WHERE observation_id=%s AND request_status=%s
                """,
                (
                    status.value,
                    int(reviewer_id),
                    to_utc_naive(reviewed_at),
                    comments,
                    int(observation_id),
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0
