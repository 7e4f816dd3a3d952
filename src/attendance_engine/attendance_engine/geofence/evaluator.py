from __future__ import annotations

import math
from typing import Iterable, Optional

from ..core.constants import EARTH_RADIUS_METERS
from .model import Coordinate, GeofenceEvaluation, GeofenceZone, ZoneCheck


def haversine_distance(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in meters."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    delta_lat = math.radians(b.latitude - a.latitude)
    delta_lon = math.radians(b.longitude - a.longitude)

    h = math.sin(delta_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(delta_lon / 2) ** 2
    # Rounding can push h just past 1 for antipodal points.
    h = min(1.0, max(0.0, h))
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_METERS * c


def eligible_zones(
    zones: Iterable[GeofenceZone],
    employee_id: int,
    department_id: Optional[int],
) -> list[GeofenceZone]:
    return [z for z in zones if z.is_active and z.is_eligible(employee_id, department_id)]


def evaluate(
    coordinate: Coordinate,
    employee_id: int,
    department_id: Optional[int],
    zones: Iterable[GeofenceZone],
) -> GeofenceEvaluation:
    """Evaluate a coordinate against every zone the employee is eligible for.

    Inside any zone: the nearest containing zone wins (first one on ties).
    Outside all: the nearest eligible zone is reported for context.
    """
    checks: list[ZoneCheck] = []
    containing: Optional[tuple[GeofenceZone, float]] = None
    closest: Optional[tuple[GeofenceZone, float]] = None

    for zone in eligible_zones(zones, employee_id, department_id):
        distance = haversine_distance(coordinate, zone.center)
        inside = distance <= zone.radius_meters
        checks.append(ZoneCheck(zone_id=zone.zone_id, zone_name=zone.name, distance=distance, is_within=inside))

        if inside and (containing is None or distance < containing[1]):
            containing = (zone, distance)
        if closest is None or distance < closest[1]:
            closest = (zone, distance)

    best = containing or closest
    return GeofenceEvaluation(
        is_within=containing is not None,
        nearest_zone=best[0] if best else None,
        distance=best[1] if best else None,
        breakdown=tuple(checks),
    )
