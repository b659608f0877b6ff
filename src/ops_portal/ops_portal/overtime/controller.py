from __future__ import annotations

from datetime import timedelta

from flask import Flask

from ..common.datetime_utils import now_local
from ..common.web import (
    current_user_id,
    json_body,
    login_required,
    ok,
    query_date,
    query_department,
    roles_required,
)
from ..core.constants import DEFAULT_REPORT_DAYS
from ..core.enums import Role
from ..container import Container

OT_ADMINS = (Role.MASTER_ADMIN, Role.ADMIN)


def register(app: Flask, container: Container) -> None:
    @app.post("/api/ot/start", endpoint="ot_start")
    @login_required
    def start():
        body = json_body()
        session = container.ot_service.start_session(
            current_user_id(),
            location=body.get("location"),
            photo_url=body.get("photo_url"),
            reason=body.get("reason", ""),
        )
        return ok(session, message="OT session started", status=201)

    @app.post("/api/ot/end", endpoint="ot_end")
    @login_required
    def end():
        body = json_body()
        result = container.ot_service.end_session(
            current_user_id(),
            location=body.get("location"),
            photo_url=body.get("photo_url"),
        )
        return ok(result, message=result.message)

    @app.get("/api/ot/status", endpoint="ot_status")
    @login_required
    def status():
        return ok(container.ot_service.get_status(current_user_id()))

    @app.get("/api/ot/active", endpoint="ot_active_mine")
    @login_required
    def my_active():
        return ok(container.ot_service.get_active_session(current_user_id()))

    @app.get("/api/ot/sessions", endpoint="ot_sessions_for_date")
    @login_required
    def sessions_for_date():
        day = query_date("date") or now_local().date()
        return ok(container.ot_service.sessions_for_date(current_user_id(), day))

    @app.get("/api/admin/ot/pending", endpoint="ot_pending")
    @roles_required(*OT_ADMINS)
    def pending():
        return ok(
            container.ot_service.list_pending(
                start=query_date("start"),
                end=query_date("end"),
                department=query_department(),
            )
        )

    @app.get("/api/admin/ot/active", endpoint="ot_active_all")
    @roles_required(*OT_ADMINS)
    def active():
        return ok(container.ot_service.list_active(department=query_department()))

    @app.post("/api/admin/ot/<session_id>/review", endpoint="ot_review")
    @roles_required(*OT_ADMINS)
    def review(session_id: str):
        body = json_body()
        session = container.ot_service.review_session(
            session_id=session_id,
            action=body.get("action", ""),
            adjusted_hours=body.get("adjusted_hours"),
            notes=body.get("notes"),
            admin_id=current_user_id(),
        )
        return ok(session, message="OT session reviewed")

    @app.get("/api/admin/ot/report", endpoint="ot_report")
    @roles_required(*OT_ADMINS)
    def report():
        today = now_local().date()
        end = query_date("end") or today
        start = query_date("start") or end - timedelta(days=DEFAULT_REPORT_DAYS)
        return ok(container.ot_report_service.build(start=start, end=end, department=query_department()))

    @app.post("/api/admin/ot/auto-close/run", endpoint="ot_auto_close_run")
    @roles_required(Role.MASTER_ADMIN)
    def run_auto_close():
        return ok(container.ot_auto_close.process(), message="OT auto-close completed")
