from __future__ import annotations

from flask import Flask, request

from ..common.web import json_body, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.get("/api/customers", endpoint="customers_list")
    @login_required
    def list_customers():
        term = request.args.get("q")
        if term:
            return ok(container.customer_service.search(term))
        return ok(
            container.customer_service.list(
                limit=request.args.get("limit", default=100, type=int),
                offset=request.args.get("offset", default=0, type=int),
            )
        )

    @app.post("/api/customers", endpoint="customers_create")
    @login_required
    def create():
        customer = container.customer_service.create(json_body())
        return ok(customer, message="Customer created", status=201)

    @app.get("/api/customers/<int:customer_id>", endpoint="customers_get")
    @login_required
    def get(customer_id: int):
        return ok(container.customer_service.get(customer_id))

    @app.patch("/api/customers/<int:customer_id>", endpoint="customers_update")
    @login_required
    def update(customer_id: int):
        return ok(container.customer_service.update(customer_id, json_body()), message="Customer updated")
