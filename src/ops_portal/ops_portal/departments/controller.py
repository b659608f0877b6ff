from __future__ import annotations

from flask import Flask

from ..common.web import current_user_id, json_body, login_required, ok, roles_required
from ..core.enums import Role
from ..core.exceptions import NotFoundError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.get("/api/departments/timings", endpoint="department_timings_list")
    @login_required
    def list_timings():
        return ok(container.department_service.list_timings())

    @app.get("/api/departments/<department>/timing", endpoint="department_timing_get")
    @login_required
    def get_timing(department: str):
        timing = container.department_service.get_timing(department)
        if not timing:
            raise NotFoundError("No active timing for this department")
        return ok(timing)

    @app.put("/api/departments/<department>/timing", endpoint="department_timing_update")
    @roles_required(Role.MASTER_ADMIN, Role.ADMIN)
    def update_timing(department: str):
        body = json_body()
        try:
            timing = container.department_service.update_timing(
                department=department,
                check_in_time=str(body.get("check_in_time", "")),
                check_out_time=str(body.get("check_out_time", "")),
                working_hours=float(body.get("working_hours", 8)),
                break_minutes=int(body.get("break_minutes", 0)),
                late_grace_minutes=int(body.get("late_grace_minutes", 5)),
                auto_checkout_grace_minutes=int(body.get("auto_checkout_grace_minutes", 5)),
                is_active=bool(body.get("is_active", True)),
                admin_id=current_user_id(),
            )
        except (TypeError, ValueError):
            raise ValidationError("Timing values must be numbers")
        return ok(timing, message="Timing updated")
