"""Flask helpers shared by the JSON controllers."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from flask import Flask, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AlreadyOpen,
    AlreadyProcessed,
    AuthenticationError,
    AuthorizationError,
    ConfigMissing,
    DomainError,
    DuplicatePending,
    NoOpenRecord,
    NotFound,
    OnLeave,
    OutsideGeofence,
    RecordChanged,
    ValidationError,
)
from ..geofence.model import Coordinate
from ..users.model import Identity
from .validators import require_latitude, require_longitude

logger = logging.getLogger(__name__)

# Checked in order; first match wins so subclasses must precede their bases.
_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFound, 404),
    (AlreadyOpen, 409),
    (NoOpenRecord, 409),
    (DuplicatePending, 409),
    (AlreadyProcessed, 409),
    (RecordChanged, 409),
    (OnLeave, 409),
    (OutsideGeofence, 403),
    (ConfigMissing, 503),
    (ValidationError, 400),
)


def status_for(error: DomainError) -> int:
    for kind, status in _STATUS_BY_ERROR:
        if isinstance(error, kind):
            return status
    return 400


def error_response(error: DomainError):
    return jsonify({"success": False, "code": error.code, "message": str(error)}), status_for(error)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        logger.debug("%s %s -> %s: %s", request.method, request.path, error.code, error)
        return error_response(error)


def current_identity() -> Identity:
    return Identity(employee_id=int(session["employee_id"]), role=Role(session["role"]))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "employee_id" not in session:
            return jsonify({"success": False, "code": "unauthenticated", "message": "Please log in"}), 401
        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON object expected")
    return data


def optional_coordinate(data: dict) -> Optional[Coordinate]:
    if data.get("latitude") is None and data.get("longitude") is None:
        return None
    return Coordinate(latitude=require_latitude(data.get("latitude")), longitude=require_longitude(data.get("longitude")))


def optional_int(value, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def ok(data=None, message: Optional[str] = None, status: int = 200):
    payload: dict = {"success": True}
    if message:
        payload["message"] = message
    if data is not None:
        payload["data"] = data
    return jsonify(payload), status
