from __future__ import annotations

from datetime import timedelta

from flask import Flask, request, session

from ..common.web import current_role, current_user_id, json_body, login_required, ok, roles_required
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..container import Container

HR_ROLES = (Role.MASTER_ADMIN, Role.ADMIN, Role.HR)


def register(app: Flask, container: Container) -> None:
    @app.post("/api/auth/login", endpoint="auth_login")
    def login():
        body = json_body()
        s_user = container.auth_service.authenticate(body.get("username", ""), body.get("password", ""))

        session.clear()
        session.permanent = bool(body.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=7)
        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value
        session["department"] = s_user.department.value if s_user.department else None
        return ok(s_user, message="Signed in")

    @app.post("/api/auth/logout", endpoint="auth_logout")
    def logout():
        session.clear()
        return ok(message="Signed out")

    @app.get("/api/auth/me", endpoint="auth_me")
    @login_required
    def me():
        return ok(container.employee_service.get_employee(current_user_id()))

    @app.post("/api/auth/password", endpoint="auth_change_password")
    @login_required
    def change_password():
        body = json_body()
        container.employee_service.change_password(user_id=current_user_id(), new_password=body.get("password", ""))
        return ok(message="Password updated")

    @app.get("/api/employees", endpoint="employees_list")
    @roles_required(*HR_ROLES)
    def list_employees():
        employees = container.employee_service.list_employees(
            department=request.args.get("department"),
            active_only=request.args.get("active") in {"1", "true"},
            search=request.args.get("search"),
        )
        return ok(employees)

    @app.post("/api/employees", endpoint="employees_create")
    @roles_required(*HR_ROLES)
    def create_employee():
        body = dict(json_body())
        role_s = body.pop("role", Role.EMPLOYEE.value)
        try:
            role = Role(role_s)
        except ValueError:
            raise ValidationError("Invalid role")

        user_id = container.employee_service.create_employee(
            current_role=current_role(),
            username=body.pop("username", ""),
            password=body.pop("password", ""),
            full_name=body.pop("full_name", ""),
            role=role,
            details=body,
        )
        return ok(container.employee_service.get_employee(user_id), message="Employee created", status=201)

    @app.get("/api/employees/<int:user_id>", endpoint="employees_get")
    @login_required
    def get_employee(user_id: int):
        if user_id != current_user_id() and current_role() not in HR_ROLES:
            raise AuthorizationError("You do not have permission for this action")
        return ok(container.employee_service.get_employee(user_id))

    @app.patch("/api/employees/<int:user_id>", endpoint="employees_update")
    @roles_required(*HR_ROLES)
    def update_employee(user_id: int):
        return ok(container.employee_service.update_employee(user_id=user_id, changes=json_body()))

    @app.post("/api/employees/<int:user_id>/active", endpoint="employees_set_active")
    @roles_required(*HR_ROLES)
    def set_active(user_id: int):
        container.employee_service.set_active(user_id=user_id, is_active=bool(json_body().get("is_active", True)))
        return ok(message="Status updated")

    @app.delete("/api/employees/<int:user_id>", endpoint="employees_delete")
    @roles_required(Role.MASTER_ADMIN, Role.ADMIN)
    def delete_employee(user_id: int):
        container.employee_service.delete_employee(current_role=current_role(), user_id=user_id)
        return ok(message="Employee deleted")
