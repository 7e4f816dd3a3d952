from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..attendance.calculator import active_break_at
from ..common.validators import optional_text, require_latitude, require_longitude, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import RequestStatus, ReviewDecision
from ..core.exceptions import AlreadyProcessed, ConfigMissing, NotFound, OutsideGeofence, Unauthorized, ValidationError
from ..notifications.notifier import Notification, Notifier, notify_safely
from ..shifts.repository import ShiftConfigRepository
from ..shifts.service import load_shift_config
from ..users.authority import ReviewerAuthority
from ..users.model import Employee, Identity
from ..users.repository import EmployeeDirectory
from .evaluator import eligible_zones, evaluate
from .model import Coordinate, GeofenceEvaluation, GeofenceObservation, GeofenceSettings, GeofenceZone, OutOfPremisesRequest
from .repository import GeofenceObservationRepository, GeofenceZoneRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoggedObservation:
    observation: GeofenceObservation
    requires_approval: bool


class GeofenceService:
    """Geofence checks at check-in, observation logging and out-of-premises approvals."""

    def __init__(
        self,
        zones: GeofenceZoneRepository,
        observations: GeofenceObservationRepository,
        shifts: ShiftConfigRepository,
        directory: EmployeeDirectory,
        authority: ReviewerAuthority,
        notifier: Optional[Notifier] = None,
    ):
        self._zones = zones
        self._observations = observations
        self._shifts = shifts
        self._directory = directory
        self._authority = authority
        self._notifier = notifier

    def _settings(self) -> GeofenceSettings:
        return self._zones.get_settings() or GeofenceSettings()

    def _employee(self, employee_id: int) -> Employee:
        employee = self._directory.get_by_id(int(employee_id))
        if not employee:
            raise NotFound(f"Employee {employee_id} not found")
        return employee

    def validate_check_in(self, employee_id: int, coordinate: Optional[Coordinate]) -> bool:
        """Return whether the check-in location lies inside an eligible zone.

        With geofencing disabled, or no zone applying to the employee, nothing is
        validated and False is returned. In strict mode a check-in outside every
        eligible zone raises :class:`OutsideGeofence`.
        """
        settings = self._settings()
        if not settings.enabled:
            return False

        employee = self._employee(employee_id)
        zones = eligible_zones(self._zones.list_zones(active_only=True), employee.employee_id, employee.dept_id)
        if not zones:
            return False

        if coordinate is None:
            if settings.strict_check_in:
                raise ValidationError("Location is required to check in")
            return False

        evaluation = evaluate(coordinate, employee.employee_id, employee.dept_id, zones)
        if settings.strict_check_in and not evaluation.is_within:
            raise OutsideGeofence(self._outside_message(evaluation))
        return evaluation.is_within

    @staticmethod
    def _outside_message(evaluation: GeofenceEvaluation) -> str:
        if evaluation.nearest_zone is None or evaluation.distance is None:
            return "You are outside every allowed location"
        return (
            f"You are {round(evaluation.distance)}m away from {evaluation.nearest_zone.name}; "
            f"check-in is allowed within {round(evaluation.nearest_zone.radius_meters)}m"
        )

    def locate(self, employee_id: int, coordinate: Coordinate) -> Optional[GeofenceEvaluation]:
        """Evaluate a reported location; None when geofencing is off or no zone applies."""
        if not self._settings().enabled:
            return None
        employee = self._employee(employee_id)
        zones = eligible_zones(self._zones.list_zones(active_only=True), employee.employee_id, employee.dept_id)
        if not zones:
            return None
        return evaluate(coordinate, employee.employee_id, employee.dept_id, zones)

    def log_observation(
        self,
        identity: Identity,
        coordinate: Coordinate,
        at: datetime,
        reason: Optional[str] = None,
        accuracy: Optional[float] = None,
    ) -> LoggedObservation:
        settings = self._settings()
        if not settings.enabled:
            raise ConfigMissing("Geofencing is not enabled")

        employee = self._employee(identity.employee_id)
        zones = eligible_zones(self._zones.list_zones(active_only=True), employee.employee_id, employee.dept_id)
        if not zones:
            raise ConfigMissing("No active geofence zone applies to this employee")

        shift = load_shift_config(self._shifts)
        during_work_hours = shift.is_within_working_hours(at)
        active_break = active_break_at(shift.break_windows, at, shift.zone)
        evaluation = evaluate(coordinate, employee.employee_id, employee.dept_id, zones)

        outside_on_duty = not evaluation.is_within and during_work_hours and active_break is None
        reason = optional_text(reason)
        request = None
        if outside_on_duty and reason:
            request = OutOfPremisesRequest(reason=reason, status=RequestStatus.PENDING, requested_at=at)

        observation = GeofenceObservation(
            observation_id=0,
            employee_id=employee.employee_id,
            coordinate=coordinate,
            observed_at=at,
            distance=evaluation.distance,
            is_within=evaluation.is_within,
            zone_id=evaluation.nearest_zone.zone_id if evaluation.nearest_zone else None,
            zone_name=evaluation.nearest_zone.name if evaluation.nearest_zone else None,
            breakdown=evaluation.breakdown,
            accuracy=accuracy,
            during_work_hours=during_work_hours,
            during_break=active_break is not None,
            break_name=active_break.name if active_break else None,
            department_id=employee.dept_id,
            reporting_manager_id=employee.reporting_manager_id,
            request=request,
        )
        observation_id = self._observations.create(observation)
        observation = replace(observation, observation_id=observation_id)

        if request is not None and employee.reporting_manager_id is not None:
            notify_safely(
                self._notifier,
                Notification(
                    event="out_of_premises_requested",
                    title="Out-of-premises request",
                    body=f"{employee.full_name} is outside the office: {reason}",
                    employee_id=employee.reporting_manager_id,
                    data={"observation_id": observation_id, "employee_id": employee.employee_id},
                ),
            )

        return LoggedObservation(
            observation=observation,
            requires_approval=outside_on_duty and settings.require_approval,
        )

    def review_request(
        self,
        observation_id: int,
        identity: Identity,
        decision: ReviewDecision,
        comments: Optional[str] = None,
        *,
        at: datetime,
    ) -> GeofenceObservation:
        observation = self._observations.get(int(observation_id))
        if not observation or observation.request is None:
            raise NotFound("Out-of-premises request not found")
        if observation.request.status != RequestStatus.PENDING:
            raise AlreadyProcessed(f"Request already {observation.request.status.value}")

        self._authority.require(identity, observation.employee_id)

        status = decision.resulting_status
        decided = self._observations.decide_request(
            observation_id=observation.observation_id,
            status=status,
            reviewer_id=identity.employee_id,
            reviewed_at=at,
            comments=optional_text(comments),
        )
        if not decided:
            raise AlreadyProcessed("Request was processed by another reviewer")

        notify_safely(
            self._notifier,
            Notification(
                event=f"out_of_premises_{status.value}",
                title=f"Out-of-premises request {status.value}",
                body=optional_text(comments) or f"Your out-of-premises request was {status.value}",
                employee_id=observation.employee_id,
                data={"observation_id": observation.observation_id},
            ),
        )

        return replace(
            observation,
            request=replace(
                observation.request,
                status=status,
                reviewer_id=identity.employee_id,
                reviewed_at=at,
                comments=optional_text(comments),
            ),
        )

    def list_observations(
        self,
        identity: Identity,
        *,
        employee_id: Optional[int] = None,
        request_status: Optional[RequestStatus] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[GeofenceObservation]:
        """Org-wide reviewers see everyone; others see themselves and the people they manage."""
        if identity.role.is_org_wide_reviewer:
            scope = {int(employee_id)} if employee_id is not None else None
        else:
            visible = self._directory.list_managed_employee_ids(identity.employee_id) | {identity.employee_id}
            scope = visible & {int(employee_id)} if employee_id is not None else visible
        return self._observations.list(employee_ids=scope, request_status=request_status, limit=limit)

    # ---- zone administration ----

    @staticmethod
    def _require_zone_admin(identity: Identity) -> None:
        if not identity.role.is_org_wide_reviewer:
            raise Unauthorized()

    def list_zones(self, identity: Identity, *, include_inactive: bool = False) -> Sequence[GeofenceZone]:
        if include_inactive:
            self._require_zone_admin(identity)
        return self._zones.list_zones(active_only=not include_inactive)

    def create_zone(
        self,
        identity: Identity,
        *,
        name: str,
        latitude,
        longitude,
        radius_meters,
        allowed_department_ids: Iterable[int] = (),
        allowed_employee_ids: Iterable[int] = (),
        address: Optional[str] = None,
    ) -> GeofenceZone:
        self._require_zone_admin(identity)
        zone = GeofenceZone(
            zone_id=0,
            name=require_non_empty(name, "name"),
            center=Coordinate(latitude=require_latitude(latitude), longitude=require_longitude(longitude)),
            radius_meters=self._require_radius(radius_meters),
            allowed_department_ids=frozenset(int(x) for x in allowed_department_ids),
            allowed_employee_ids=frozenset(int(x) for x in allowed_employee_ids),
            address=optional_text(address),
        )
        zone_id = self._zones.create_zone(zone)
        logger.info("geofence zone %s (%s) created by %s", zone_id, zone.name, identity.employee_id)
        return replace(zone, zone_id=zone_id)

    def update_zone(self, identity: Identity, zone_id: int, **changes) -> GeofenceZone:
        self._require_zone_admin(identity)
        zone = self._zones.get_zone(int(zone_id))
        if not zone:
            raise NotFound(f"Geofence zone {zone_id} not found")

        if "name" in changes:
            zone = replace(zone, name=require_non_empty(changes["name"], "name"))
        if "latitude" in changes or "longitude" in changes:
            zone = replace(
                zone,
                center=Coordinate(
                    latitude=require_latitude(changes.get("latitude", zone.center.latitude)),
                    longitude=require_longitude(changes.get("longitude", zone.center.longitude)),
                ),
            )
        if "radius_meters" in changes:
            zone = replace(zone, radius_meters=self._require_radius(changes["radius_meters"]))
        if "is_active" in changes:
            zone = replace(zone, is_active=bool(changes["is_active"]))
        if "allowed_department_ids" in changes:
            zone = replace(zone, allowed_department_ids=frozenset(int(x) for x in changes["allowed_department_ids"] or ()))
        if "allowed_employee_ids" in changes:
            zone = replace(zone, allowed_employee_ids=frozenset(int(x) for x in changes["allowed_employee_ids"] or ()))
        if "address" in changes:
            zone = replace(zone, address=optional_text(changes["address"]))

        self._zones.update_zone(zone)
        logger.info("geofence zone %s updated by %s", zone.zone_id, identity.employee_id)
        return zone

    def deactivate_zone(self, identity: Identity, zone_id: int) -> GeofenceZone:
        return self.update_zone(identity, zone_id, is_active=False)

    @staticmethod
    def _require_radius(value) -> float:
        try:
            radius = float(value)
        except (TypeError, ValueError):
            raise ValidationError("radius_meters must be a number")
        if radius <= 0:
            raise ValidationError("radius_meters must be positive")
        return radius
