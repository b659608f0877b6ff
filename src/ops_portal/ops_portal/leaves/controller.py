from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_role, current_user_id, json_body, login_required, ok, roles_required
from ..core.enums import Role
from ..container import Container

APPROVERS = (Role.MASTER_ADMIN, Role.ADMIN, Role.HR)


def register(app: Flask, container: Container) -> None:
    @app.post("/api/leaves", endpoint="leaves_apply")
    @login_required
    def apply():
        body = json_body()
        end_raw = body.get("end_date")
        leave_id = container.leave_service.apply(
            user_id=current_user_id(),
            leave_type=body.get("leave_type", ""),
            start_date=parse_iso_date(body.get("start_date", "")),
            end_date=parse_iso_date(end_raw) if end_raw else None,
            reason=body.get("reason", ""),
            permission_hours=body.get("permission_hours"),
        )
        return ok({"leave_id": leave_id}, message="Leave application submitted", status=201)

    @app.get("/api/leaves/me", endpoint="leaves_mine")
    @login_required
    def mine():
        return ok(container.leave_service.list_for_user(current_user_id()))

    @app.get("/api/leaves/pending", endpoint="leaves_pending")
    @roles_required(*APPROVERS)
    def pending():
        return ok(container.leave_service.list_pending())

    @app.post("/api/leaves/<int:leave_id>/approve", endpoint="leaves_approve")
    @roles_required(*APPROVERS)
    def approve(leave_id: int):
        container.leave_service.approve(
            current_role=current_role(),
            admin_user_id=current_user_id(),
            leave_id=leave_id,
            admin_note=json_body().get("admin_note", ""),
        )
        return ok(message="Leave approved")

    @app.post("/api/leaves/<int:leave_id>/reject", endpoint="leaves_reject")
    @roles_required(*APPROVERS)
    def reject(leave_id: int):
        container.leave_service.reject(
            current_role=current_role(),
            admin_user_id=current_user_id(),
            leave_id=leave_id,
            admin_note=json_body().get("admin_note", ""),
        )
        return ok(message="Leave rejected")
