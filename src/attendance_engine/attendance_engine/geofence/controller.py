from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import now_in
from ..common.web import current_identity, json_body, login_required, ok, optional_coordinate, optional_int
from ..container import Container
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import RequestStatus, ReviewDecision
from ..core.exceptions import ValidationError
from ..shifts.service import load_shift_config

_ZONE_FIELDS = (
    "name",
    "latitude",
    "longitude",
    "radius_meters",
    "is_active",
    "allowed_department_ids",
    "allowed_employee_ids",
    "address",
)


def register(app: Flask, container: Container) -> None:
    def _now():
        return now_in(load_shift_config(container.shifts_repo).zone)

    @app.route("/api/geofence/log", methods=["POST"], endpoint="geofence_log")
    @login_required
    def geofence_log():
        data = json_body()
        coordinate = optional_coordinate(data)
        if coordinate is None:
            raise ValidationError("latitude and longitude are required")

        accuracy = data.get("accuracy")
        logged = container.geofence_service.log_observation(
            current_identity(),
            coordinate,
            _now(),
            reason=data.get("reason"),
            accuracy=float(accuracy) if accuracy is not None else None,
        )
        payload = logged.observation.to_dict()
        payload["requires_approval"] = logged.requires_approval
        return ok(payload, message="Location logged", status=201)

    @app.route("/api/geofence/logs", methods=["GET"], endpoint="geofence_logs")
    @login_required
    def geofence_logs():
        status = request.args.get("status")
        try:
            request_status = RequestStatus(status) if status else None
        except ValueError:
            raise ValidationError("status must be pending, approved or rejected")

        items = container.geofence_service.list_observations(
            current_identity(),
            employee_id=optional_int(request.args.get("employee_id"), "employee_id"),
            request_status=request_status,
            limit=optional_int(request.args.get("limit"), "limit") or DEFAULT_LIST_LIMIT,
        )
        return ok([o.to_dict() for o in items])

    @app.route("/api/geofence/logs/<int:observation_id>/review", methods=["POST"], endpoint="geofence_review")
    @login_required
    def geofence_review(observation_id: int):
        data = json_body()
        try:
            decision = ReviewDecision(data.get("action"))
        except ValueError:
            raise ValidationError("action must be approve or reject")

        reviewed = container.geofence_service.review_request(
            observation_id,
            current_identity(),
            decision,
            data.get("comments"),
            at=_now(),
        )
        return ok(reviewed.to_dict(), message=f"Request {decision.resulting_status.value}")

    @app.route("/api/geofence/zones", methods=["GET"], endpoint="geofence_zones")
    @login_required
    def geofence_zones():
        include_inactive = request.args.get("include_inactive") in {"1", "true", "yes"}
        zones = container.geofence_service.list_zones(current_identity(), include_inactive=include_inactive)
        return ok([z.to_dict() for z in zones])

    @app.route("/api/geofence/zones", methods=["POST"], endpoint="geofence_zone_create")
    @login_required
    def geofence_zone_create():
        data = json_body()
        zone = container.geofence_service.create_zone(
            current_identity(),
            name=data.get("name", ""),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            radius_meters=data.get("radius_meters"),
            allowed_department_ids=data.get("allowed_department_ids") or (),
            allowed_employee_ids=data.get("allowed_employee_ids") or (),
            address=data.get("address"),
        )
        return ok(zone.to_dict(), message="Zone created", status=201)

    @app.route("/api/geofence/zones/<int:zone_id>", methods=["PUT"], endpoint="geofence_zone_update")
    @login_required
    def geofence_zone_update(zone_id: int):
        data = json_body()
        changes = {k: data[k] for k in _ZONE_FIELDS if k in data}
        zone = container.geofence_service.update_zone(current_identity(), zone_id, **changes)
        return ok(zone.to_dict(), message="Zone updated")

    @app.route("/api/geofence/zones/<int:zone_id>", methods=["DELETE"], endpoint="geofence_zone_delete")
    @login_required
    def geofence_zone_delete(zone_id: int):
        zone = container.geofence_service.deactivate_zone(current_identity(), zone_id)
        return ok(zone.to_dict(), message="Zone deactivated")
