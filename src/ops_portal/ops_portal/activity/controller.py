from __future__ import annotations

from flask import Flask, request

from ..common.web import current_user_id, login_required, ok, roles_required
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.get("/api/activity", endpoint="activity_recent")
    @roles_required(Role.MASTER_ADMIN, Role.ADMIN, Role.HR)
    def recent():
        return ok(container.activity_service.recent(limit=int(request.args.get("limit", 20))))

    @app.get("/api/activity/me", endpoint="activity_mine")
    @login_required
    def mine():
        return ok(container.activity_service.list_for_user(current_user_id()))

    @app.get("/api/notifications", endpoint="notifications_list")
    @login_required
    def notifications():
        unread_only = request.args.get("unread") in {"1", "true"}
        return ok(container.activity_service.notifications_for(current_user_id(), unread_only=unread_only))

    @app.post("/api/notifications/<int:notification_id>/read", endpoint="notifications_read")
    @login_required
    def mark_read(notification_id: int):
        container.activity_service.mark_read(notification_id=notification_id, user_id=current_user_id())
        return ok(message="Marked as read")
