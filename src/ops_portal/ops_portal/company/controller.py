from __future__ import annotations

from flask import Flask, request

from ..common.web import current_role, current_user_id, json_body, login_required, ok, roles_required
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container

ADMINS = (Role.MASTER_ADMIN, Role.ADMIN)


def _int_arg(body: dict, name: str) -> int:
    try:
        return int(body.get(name))
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number")


def register(app: Flask, container: Container) -> None:
    calendar = container.calendar_service

    @app.get("/api/company/settings", endpoint="company_settings_get")
    @login_required
    def get_settings():
        return ok(calendar.get_settings())

    @app.put("/api/company/settings", endpoint="company_settings_update")
    @roles_required(*ADMINS)
    def update_settings():
        body = json_body()
        settings = calendar.update_settings(
            admin_id=current_user_id(),
            weekend_days=body.get("weekend_days"),
            default_ot_rate=body.get("default_ot_rate"),
            max_ot_hours_per_day=body.get("max_ot_hours_per_day"),
        )
        return ok(settings, message="Settings updated")

    @app.get("/api/holidays", endpoint="holidays_list")
    @login_required
    def list_holidays():
        year = request.args.get("year", type=int)
        return ok(calendar.list_holidays(year=year))

    @app.post("/api/holidays", endpoint="holidays_create")
    @roles_required(*ADMINS)
    def create_holiday():
        return ok(calendar.create_holiday(admin_id=current_user_id(), data=json_body()), status=201)

    @app.patch("/api/holidays/<int:holiday_id>", endpoint="holidays_update")
    @roles_required(*ADMINS)
    def update_holiday(holiday_id: int):
        return ok(calendar.update_holiday(holiday_id=holiday_id, data=json_body()))

    @app.delete("/api/holidays/<int:holiday_id>", endpoint="holidays_delete")
    @roles_required(*ADMINS)
    def delete_holiday(holiday_id: int):
        calendar.delete_holiday(holiday_id)
        return ok(message="Holiday deleted")

    @app.get("/api/payroll/periods/<int:year>/<int:month>", endpoint="payroll_period_get")
    @roles_required(*ADMINS)
    def get_period(year: int, month: int):
        return ok(calendar.get_period(month=month, year=year))

    @app.post("/api/payroll/lock", endpoint="payroll_lock")
    @roles_required(Role.MASTER_ADMIN)
    def lock_period():
        body = json_body()
        period = calendar.lock_period(
            month=_int_arg(body, "month"),
            year=_int_arg(body, "year"),
            admin_id=current_user_id(),
            admin_role=current_role(),
        )
        return ok(period, message=f"Payroll period {period.month}/{period.year} locked successfully")

    @app.post("/api/payroll/unlock", endpoint="payroll_unlock")
    @roles_required(Role.MASTER_ADMIN)
    def unlock_period():
        body = json_body()
        period = calendar.unlock_period(
            month=_int_arg(body, "month"),
            year=_int_arg(body, "year"),
            reason=body.get("reason", ""),
            admin_id=current_user_id(),
            admin_role=current_role(),
        )
        return ok(period, message=f"Payroll period {period.month}/{period.year} unlocked")
