from __future__ import annotations

from flask import Flask, Response, request

from ..common.web import current_user_id, json_body, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.get("/api/quotations", endpoint="quotations_list")
    @login_required
    def list_quotations():
        return ok(
            container.quotation_service.list(
                status=request.args.get("status"),
                customer_id=request.args.get("customer_id", type=int),
                limit=request.args.get("limit", default=100, type=int),
            )
        )

    @app.post("/api/quotations", endpoint="quotations_create")
    @login_required
    def create():
        quotation = container.quotation_service.create(json_body(), created_by=current_user_id())
        return ok(quotation, message="Quotation created", status=201)

    @app.post("/api/quotations/from-site-visit/<int:visit_id>", endpoint="quotations_from_visit")
    @login_required
    def from_site_visit(visit_id: int):
        quotation = container.quotation_service.create_from_site_visit(visit_id, created_by=current_user_id())
        return ok(quotation, message="Quotation created from site visit", status=201)

    @app.get("/api/quotations/<int:quotation_id>", endpoint="quotations_get")
    @login_required
    def get(quotation_id: int):
        quotation = container.quotation_service.get(quotation_id)
        return ok({"quotation": quotation, "totals": container.quotation_service.totals(quotation)})

    @app.patch("/api/quotations/<int:quotation_id>/status", endpoint="quotations_status")
    @login_required
    def update_status(quotation_id: int):
        status = json_body().get("status")
        return ok(container.quotation_service.update_status(quotation_id, status), message="Quotation updated")

    @app.get("/api/quotations/<int:quotation_id>/preview", endpoint="quotations_preview")
    @login_required
    def preview(quotation_id: int):
        html = container.quotation_service.render_html(quotation_id)
        return Response(html, mimetype="text/html")
