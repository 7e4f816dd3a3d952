from __future__ import annotations

from datetime import date
from types import SimpleNamespace

import pytest
from flask import Flask

from src.attendance_engine.attendance_engine.attendance import controller as attendance_controller
from src.attendance_engine.attendance_engine.calendars.model import LeaveInterval
from src.attendance_engine.attendance_engine.common.web import register_error_handlers, status_for
from src.attendance_engine.attendance_engine.core.exceptions import (
    AlreadyProcessed,
    ConfigMissing,
    InvalidRange,
    NotFound,
    OnLeave,
    OutsideGeofence,
    RecordChanged,
    Unauthorized,
)
from tests.support import EMPLOYEE_ID, OTHER_ID


@pytest.fixture
def client(store, authority, shifts):
    app = Flask(__name__)
    app.config.update(SECRET_KEY="test", TESTING=True)
    register_error_handlers(app)
    container = SimpleNamespace(attendance_service=store, authority=authority, shifts_repo=shifts)
    attendance_controller.register(app, container)
    return app.test_client()


def login(client, employee_id=EMPLOYEE_ID, role="employee"):
    with client.session_transaction() as sess:
        sess["employee_id"] = employee_id
        sess["role"] = role


def test_requires_login(client):
    response = client.post("/api/attendance/check-in", json={})

    assert response.status_code == 401
    assert response.get_json()["code"] == "unauthenticated"


def test_second_check_in_is_a_conflict(client):
    login(client)

    first = client.post("/api/attendance/check-in", json={})
    second = client.post("/api/attendance/check-in", json={})

    assert first.status_code == 201
    assert first.get_json()["data"]["status"] == "in-progress"
    assert second.status_code == 409
    assert second.get_json() == {
        "success": False,
        "code": "already_open",
        "message": second.get_json()["message"],
    }


def test_check_out_without_check_in(client):
    login(client)

    response = client.post("/api/attendance/check-out", json={})

    assert response.status_code == 409
    assert response.get_json()["code"] == "no_open_record"


def test_listing_someone_elses_attendance_is_forbidden(client):
    login(client)

    response = client.get(f"/api/attendance?employee_id={OTHER_ID}")

    assert response.status_code == 403
    assert response.get_json()["code"] == "unauthorized"


def test_invalid_date_range(client):
    login(client)

    response = client.get("/api/attendance?start=2024-05-10&end=2024-05-01")

    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_missing_shift_configuration(client, shifts):
    shifts.config = None
    login(client)

    response = client.post("/api/attendance/check-in", json={})

    assert response.status_code == 503
    assert response.get_json()["code"] == "config_missing"



def test_break_status_route(client):
    login(client)

    response = client.get("/api/attendance/breaks")

    assert response.status_code == 200
    body = response.get_json()["data"]
    assert set(body) == {"on_break", "current", "upcoming"}


def test_check_in_on_leave_is_a_conflict(client, leaves):
    leaves.leaves.append(LeaveInterval(EMPLOYEE_ID, date.min, date.max))
    login(client)

    response = client.post("/api/attendance/check-in", json={})

    assert response.status_code == 409
    assert response.get_json()["code"] == "on_leave"


@pytest.mark.parametrize(
    "error, status",
    [
        (Unauthorized(), 403),
        (NotFound("x"), 404),
        (AlreadyProcessed("x"), 409),
        (OutsideGeofence("x"), 403),
        (ConfigMissing("x"), 503),
        (InvalidRange("x"), 400),
        (RecordChanged("x"), 409),
        (OnLeave("x"), 409),
    ],
)
def test_status_mapping(error, status):
    assert status_for(error) == status
