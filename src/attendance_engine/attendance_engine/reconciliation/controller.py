from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import now_in, parse_iso_date
from ..common.web import current_identity, json_body, login_required, ok
from ..container import Container
from ..core.exceptions import Unauthorized
from ..shifts.service import load_shift_config
from .service import MONTH_TO_DATE, default_range


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/reconcile", methods=["POST"], endpoint="attendance_reconcile")
    @login_required
    def attendance_reconcile():
        if not current_identity().role.is_org_wide_reviewer:
            raise Unauthorized()

        data = json_body()
        today = now_in(load_shift_config(container.shifts_repo).zone).date()
        start, end = default_range(today, data.get("mode") or MONTH_TO_DATE)
        if data.get("start"):
            start = parse_iso_date(data["start"])
        if data.get("end"):
            end = parse_iso_date(data["end"])

        summary = container.reconciliation_job.run(start, end, today)
        return ok(summary.to_dict(), message="Reconciliation completed")
