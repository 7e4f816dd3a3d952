from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import RequestStatus


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class GeofenceZone:
    """A named circular zone.

    Empty allow-lists mean every employee may be evaluated against the zone.
    """

    zone_id: int
    name: str
    center: Coordinate
    radius_meters: float
    is_active: bool = True
    allowed_department_ids: frozenset[int] = frozenset()
    allowed_employee_ids: frozenset[int] = frozenset()
    address: Optional[str] = None

    def is_eligible(self, employee_id: int, department_id: Optional[int]) -> bool:
        if not self.allowed_department_ids and not self.allowed_employee_ids:
            return True
        if employee_id in self.allowed_employee_ids:
            return True
        return department_id is not None and department_id in self.allowed_department_ids

    def to_dict(self) -> dict:
        return {
            "zone_id": self.zone_id,
            "name": self.name,
            "latitude": self.center.latitude,
            "longitude": self.center.longitude,
            "radius_meters": self.radius_meters,
            "is_active": self.is_active,
            "allowed_department_ids": sorted(self.allowed_department_ids),
            "allowed_employee_ids": sorted(self.allowed_employee_ids),
            "address": self.address,
        }


@dataclass(frozen=True)
class GeofenceSettings:
    enabled: bool = False
    strict_check_in: bool = False
    require_approval: bool = True


@dataclass(frozen=True)
class ZoneCheck:
    zone_id: int
    zone_name: str
    distance: float
    is_within: bool

    def to_dict(self) -> dict:
        return {
            "zone_id": self.zone_id,
            "zone_name": self.zone_name,
            "distance": round(self.distance, 2),
            "is_within": self.is_within,
        }


@dataclass(frozen=True)
class GeofenceEvaluation:
    is_within: bool
    nearest_zone: Optional[GeofenceZone]
    distance: Optional[float]
    breakdown: tuple[ZoneCheck, ...] = ()


@dataclass(frozen=True)
class OutOfPremisesRequest:
    reason: str
    status: RequestStatus
    requested_at: datetime
    reviewer_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    comments: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "reason": self.reason,
            "status": self.status.value,
            "requested_at": self.requested_at.isoformat(),
            "reviewer_id": self.reviewer_id,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "comments": self.comments,
        }


@dataclass(frozen=True)
class GeofenceObservation:
    """One logged coordinate sample and its evaluation."""

    observation_id: int
    employee_id: int
    coordinate: Coordinate
    observed_at: datetime
    distance: Optional[float]
    is_within: bool
    zone_id: Optional[int] = None
    zone_name: Optional[str] = None
    breakdown: tuple[ZoneCheck, ...] = ()
    accuracy: Optional[float] = None
    during_work_hours: bool = False
    during_break: bool = False
    break_name: Optional[str] = None
    department_id: Optional[int] = None
    reporting_manager_id: Optional[int] = None
    request: Optional[OutOfPremisesRequest] = None

    def to_dict(self) -> dict:
        return {
            "observation_id": self.observation_id,
            "employee_id": self.employee_id,
            "latitude": self.coordinate.latitude,
            "longitude": self.coordinate.longitude,
            "accuracy": self.accuracy,
            "observed_at": self.observed_at.isoformat(),
            "distance": round(self.distance, 2) if self.distance is not None else None,
            "is_within": self.is_within,
            "zone_id": self.zone_id,
            "zone_name": self.zone_name,
            "breakdown": [c.to_dict() for c in self.breakdown],
            "during_work_hours": self.during_work_hours,
            "during_break": self.during_break,
            "break_name": self.break_name,
            "department_id": self.department_id,
            "reporting_manager_id": self.reporting_manager_id,
            "out_of_premises_request": self.request.to_dict() if self.request else None,
        }
