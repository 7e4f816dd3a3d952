from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import now_in, parse_iso_date
from ..common.web import current_identity, json_body, login_required, ok, optional_coordinate, optional_int
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..shifts.service import load_shift_config


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="check_in")
    @login_required
    def check_in():
        data = json_body()
        record = container.attendance_service.check_in(current_identity(), coordinate=optional_coordinate(data))
        return ok(record.to_dict(), message="Checked in", status=201)

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="check_out")
    @login_required
    def check_out():
        data = json_body()
        record = container.attendance_service.check_out(current_identity(), coordinate=optional_coordinate(data))
        return ok(record.to_dict(), message="Checked out")

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    @login_required
    def attendance_list():
        identity = current_identity()
        employee_id = optional_int(request.args.get("employee_id"), "employee_id") or identity.employee_id
        if employee_id != identity.employee_id:
            container.authority.require(identity, employee_id)

        start_arg = request.args.get("start")
        end_arg = request.args.get("end")
        if start_arg and end_arg:
            start, end = parse_iso_date(start_arg), parse_iso_date(end_arg)
        else:
            today = now_in(load_shift_config(container.shifts_repo).zone).date()
            end = parse_iso_date(end_arg) if end_arg else today
            start = parse_iso_date(start_arg) if start_arg else end.fromordinal(end.toordinal() - DEFAULT_HISTORY_LIMIT + 1)

        records = container.attendance_service.list_range(employee_id, start, end)
        return ok([r.to_dict() for r in records])

    @app.route("/api/attendance/breaks", methods=["GET"], endpoint="break_status")
    @login_required
    def break_status():
        return ok(container.attendance_service.break_status().to_dict())
