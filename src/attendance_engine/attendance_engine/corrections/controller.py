from __future__ import annotations

from typing import Optional

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.web import current_identity, json_body, login_required, ok, optional_int
from ..container import Container
from ..core.enums import AttendanceStatus, CorrectionType, RequestStatus, ReviewDecision
from ..core.exceptions import ValidationError
from ..shifts.service import load_shift_config
from .model import CorrectionPatch


def _enum_value(enum_cls, value, field_name: str):
    if value is None or value == "":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


def register(app: Flask, container: Container) -> None:
    def _patch_from(data: dict) -> CorrectionPatch:
        tz = load_shift_config(container.shifts_repo).zone

        def ts(key: str):
            value = data.get(key)
            return parse_iso_datetime(value, tz) if value else None

        return CorrectionPatch(
            check_in=ts("requested_check_in"),
            check_out=ts("requested_check_out"),
            status=_enum_value(AttendanceStatus, data.get("requested_status"), "requested_status"),
        )

    @app.route("/api/attendance/corrections", methods=["GET"], endpoint="corrections_list")
    @login_required
    def corrections_list():
        identity = current_identity()
        scope = request.args.get("type", "my")
        status: Optional[RequestStatus] = _enum_value(RequestStatus, request.args.get("status"), "status")

        if scope == "pending":
            items = container.correction_service.list_pending_for(identity)
        elif scope == "my":
            items = container.correction_service.list_mine(identity, status=status)
        else:
            raise ValidationError("type must be 'my' or 'pending'")
        return ok([c.to_dict() for c in items])

    @app.route("/api/attendance/corrections", methods=["POST"], endpoint="corrections_submit")
    @login_required
    def corrections_submit():
        data = json_body()
        correction_type = _enum_value(CorrectionType, data.get("correction_type"), "correction_type")
        if correction_type is None:
            raise ValidationError("correction_type is required")

        created = container.correction_service.submit(
            current_identity(),
            employee_id=optional_int(data.get("employee_id"), "employee_id"),
            attendance_id=optional_int(data.get("attendance_id"), "attendance_id"),
            work_date=parse_iso_date(data["date"]) if data.get("date") else None,
            correction_type=correction_type,
            patch=_patch_from(data),
            reason=data.get("reason", ""),
        )
        return ok(created.to_dict(), message="Correction request submitted", status=201)

    @app.route("/api/attendance/corrections/<int:request_id>/review", methods=["POST"], endpoint="corrections_review")
    @login_required
    def corrections_review(request_id: int):
        data = json_body()
        decision = _enum_value(ReviewDecision, data.get("action"), "action")
        if decision is None:
            raise ValidationError("action is required")

        decided = container.correction_service.review(
            request_id,
            current_identity(),
            decision,
            data.get("comments"),
        )
        message = "Correction approved and applied" if decision == ReviewDecision.APPROVE else "Correction rejected"
        return ok(decided.to_dict(), message=message)
