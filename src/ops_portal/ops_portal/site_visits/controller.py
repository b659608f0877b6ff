from __future__ import annotations

from io import BytesIO

from flask import Flask, request, send_file

from ..common.datetime_utils import now_local
from ..common.web import (
    current_role,
    current_user_id,
    json_body,
    login_required,
    ok,
    query_date,
    query_department,
    roles_required,
)
from ..core.enums import Role
from ..container import Container
from .exporter import XLSX_MIMETYPE
from .grouping import combine_visits_and_follow_ups, filter_groups_by_outcome, group_visits_by_customer
from .service import MONITORS


def _truthy(name: str) -> bool:
    return (request.args.get(name) or "").lower() in {"1", "true", "yes"}


def register(app: Flask, container: Container) -> None:
    @app.post("/api/site-visits", endpoint="site_visits_start")
    @login_required
    def start():
        visit = container.site_visit_service.start_visit(current_user_id(), json_body())
        return ok(visit, message="Site visit started", status=201)

    @app.post("/api/site-visits/<int:visit_id>/checkout", endpoint="site_visits_checkout")
    @login_required
    def checkout(visit_id: int):
        visit = container.site_visit_service.checkout(visit_id, user_id=current_user_id(), payload=json_body())
        return ok(visit, message="Site visit checked out")

    @app.post("/api/site-visits/<int:visit_id>/photos", endpoint="site_visits_photos")
    @login_required
    def add_photos(visit_id: int):
        photos = json_body().get("photos") or []
        visit = container.site_visit_service.add_photos(
            visit_id, photos, user_id=current_user_id(), actor_role=current_role()
        )
        return ok(visit, message="Photos added")

    @app.post("/api/site-visits/<int:visit_id>/quick-update", endpoint="site_visits_quick_update")
    @login_required
    def quick_update(visit_id: int):
        body = json_body()
        visit = container.site_visit_service.quick_update(
            visit_id,
            body.get("action"),
            user_id=current_user_id(),
            actor_role=current_role(),
            scheduled_follow_up_date=body.get("scheduled_follow_up_date"),
            outcome_notes=body.get("outcome_notes"),
            reason=body.get("reason"),
        )
        return ok(visit, message="Site visit updated")

    @app.get("/api/site-visits", endpoint="site_visits_list")
    @login_required
    def list_visits():
        role = current_role()
        user_id = None if role in MONITORS else current_user_id()
        visits = container.site_visit_service.list(
            user_id=user_id,
            department=query_department(),
            status=request.args.get("status"),
            visit_outcome=request.args.get("outcome"),
            start=query_date("start"),
            end=query_date("end"),
        )
        if _truthy("include_follow_ups"):
            follow_ups = (
                container.follow_up_service.list_all()
                if user_id is None
                else container.follow_up_service.list_for_user(user_id)
            )
            visits = combine_visits_and_follow_ups(visits, follow_ups)
        return ok(visits)

    @app.get("/api/site-visits/customers", endpoint="site_visits_by_customer")
    @login_required
    def by_customer():
        user_id = None if current_role() in MONITORS else current_user_id()
        visits = container.site_visit_service.list(user_id=user_id, department=query_department())
        follow_ups = (
            container.follow_up_service.list_all()
            if user_id is None
            else container.follow_up_service.list_for_user(user_id)
        )
        groups = group_visits_by_customer(
            combine_visits_and_follow_ups(visits, follow_ups),
            preserve_priority_order=_truthy("priority"),
        )
        return ok(filter_groups_by_outcome(groups, request.args.get("outcome")))

    @app.get("/api/site-visits/mine", endpoint="site_visits_mine")
    @login_required
    def mine():
        limit = request.args.get("limit", default=50, type=int)
        return ok(container.site_visit_service.list_for_user(current_user_id(), limit=limit))

    @app.get("/api/site-visits/active", endpoint="site_visits_active")
    @roles_required(*MONITORS)
    def active():
        return ok(container.site_visit_service.list_active(department=query_department()))

    @app.get("/api/site-visits/stats", endpoint="site_visits_stats")
    @roles_required(*MONITORS)
    def stats():
        return ok(
            container.site_visit_service.stats(
                department=query_department(),
                start=query_date("start"),
                end=query_date("end"),
            )
        )

    @app.get("/api/site-visits/export", endpoint="site_visits_export")
    @roles_required(*MONITORS)
    def export():
        visits = container.site_visit_service.list(
            department=query_department(),
            status=request.args.get("status"),
            start=query_date("start"),
            end=query_date("end"),
            limit=10000,
        )
        content = container.site_visit_exporter.to_xlsx(visits)
        return send_file(
            BytesIO(content),
            as_attachment=True,
            download_name=f"site-visits-{now_local():%Y-%m-%d}.xlsx",
            mimetype=XLSX_MIMETYPE,
        )

    @app.post("/api/site-visits/auto-close/run", endpoint="site_visits_auto_close_run")
    @roles_required(Role.MASTER_ADMIN)
    def run_auto_close():
        return ok(container.site_visit_auto_close.process(), message="Site visit auto-close completed")

    @app.get("/api/site-visits/<int:visit_id>", endpoint="site_visits_get")
    @login_required
    def get(visit_id: int):
        return ok(container.site_visit_service.get(visit_id))

    @app.delete("/api/site-visits/<int:visit_id>", endpoint="site_visits_delete")
    @login_required
    def delete(visit_id: int):
        container.site_visit_service.delete(visit_id, actor_role=current_role())
        return ok(message="Site visit deleted")

    @app.get("/api/site-visits/<int:visit_id>/follow-ups", endpoint="site_visits_follow_ups")
    @login_required
    def follow_ups_for_visit(visit_id: int):
        return ok(container.follow_up_service.list_for_visit(visit_id))

    @app.post("/api/follow-ups", endpoint="follow_ups_create")
    @login_required
    def create_follow_up():
        follow_up = container.follow_up_service.create_follow_up(current_user_id(), json_body())
        return ok(follow_up, message="Follow-up visit started", status=201)

    @app.post("/api/follow-ups/<int:follow_up_id>/checkout", endpoint="follow_ups_checkout")
    @login_required
    def checkout_follow_up(follow_up_id: int):
        follow_up = container.follow_up_service.checkout_follow_up(
            follow_up_id, user_id=current_user_id(), payload=json_body()
        )
        return ok(follow_up, message="Follow-up visit checked out")

    @app.get("/api/follow-ups", endpoint="follow_ups_mine")
    @login_required
    def my_follow_ups():
        return ok(
            container.follow_up_service.list_for_user(
                current_user_id(),
                department=query_department(),
                status=request.args.get("status"),
            )
        )

    @app.get("/api/admin/follow-ups", endpoint="follow_ups_all")
    @roles_required(*MONITORS)
    def all_follow_ups():
        return ok(container.follow_up_service.list_all())
