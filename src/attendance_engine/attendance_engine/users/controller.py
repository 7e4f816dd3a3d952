from __future__ import annotations

from flask import Flask, session

from ..common.web import current_identity, json_body, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""))

        session.clear()
        session["employee_id"] = user.employee_id
        session["name"] = user.full_name
        session["role"] = user.role.value
        session["dept_id"] = user.dept_id
        return ok(
            {"employee_id": user.employee_id, "full_name": user.full_name, "role": user.role.value},
            message="Logged in",
        )

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok(message="Logged out")

    @app.route("/api/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        identity = current_identity()
        return ok(
            {
                "employee_id": identity.employee_id,
                "full_name": session.get("name"),
                "role": identity.role.value,
                "dept_id": session.get("dept_id"),
            }
        )
