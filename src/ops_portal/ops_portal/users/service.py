from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import parse_iso_date
from ..common.form_sanitizer import sanitize_form_data
from ..common.validators import require_min_length, require_non_empty
from ..core.enums import Department, EmploymentType, Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import EmployeeView, User
from .repository import UserRepository

logger = logging.getLogger(__name__)

# Optional HR fields that may be cleared by sending ""
NULLABLE_FIELDS = ("designation", "employee_code", "email", "phone", "join_date", "department", "employment_type")


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    full_name: str
    role: Role
    department: Optional[Department]


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> SessionUser:
        user = self._users.get_by_username((username or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            logger.info("Failed login for %r", username)
            raise AuthenticationError("Invalid username or password")

        return SessionUser(
            user_id=user.user_id,
            full_name=user.full_name,
            role=user.role,
            department=user.department,
        )


def _coerce_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in fields.items():
        if value is None:
            out[key] = None
        elif key == "department":
            try:
                out[key] = Department.normalize(value)
            except ValueError:
                raise ValidationError(f"Unknown department: {value}")
        elif key == "employment_type":
            try:
                out[key] = EmploymentType(value)
            except ValueError:
                raise ValidationError(f"Unknown employment type: {value}")
        elif key == "join_date":
            out[key] = parse_iso_date(value) if isinstance(value, str) else value
        elif key == "full_name":
            out[key] = require_non_empty(value, "Full name")
        else:
            out[key] = value.strip() if isinstance(value, str) else value
    return out


class EmployeeService:
    """Use case: HR employee records (admin / HR)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def create_employee(
        self,
        *,
        current_role: Role,
        username: str,
        password: str,
        full_name: str,
        role: Role = Role.EMPLOYEE,
        details: Optional[Mapping[str, Any]] = None,
    ) -> int:
        full_name = require_non_empty(full_name, "Full name")
        username = require_non_empty(username, "Username")
        require_min_length(password, "Password", 6)

        if role.is_admin and current_role != Role.MASTER_ADMIN:
            raise AuthorizationError("Only the master admin can create admin accounts")

        if self._users.get_by_username(username):
            raise ValidationError("Username already exists")

        fields = _coerce_fields(sanitize_form_data(details or {}))
        fields.pop("full_name", None)
        fields.pop("role", None)

        user_id = self._users.create_user(
            username=username,
            password_hash=generate_password_hash(password),
            full_name=full_name,
            role=role,
            fields=fields,
        )
        logger.info("Created employee %s (%s, role=%s)", user_id, username, role.value)
        return user_id

    def update_employee(self, *, user_id: int, changes: Mapping[str, Any]) -> EmployeeView:
        user = self._require(user_id)
        fields = _coerce_fields(sanitize_form_data(changes, NULLABLE_FIELDS))
        # credentials and role go through dedicated paths
        for key in ("username", "password", "password_hash", "role", "is_active"):
            fields.pop(key, None)
        if not fields:
            return EmployeeView.from_user(user)

        self._users.update_user(user.user_id, fields=fields)
        return EmployeeView.from_user(self._require(user_id))

    def change_password(self, *, user_id: int, new_password: str) -> None:
        require_min_length(new_password, "Password", 6)
        self._require(user_id)
        if not self._users.update_user(int(user_id), fields={"password_hash": generate_password_hash(new_password)}):
            raise ValidationError("Password update failed")

    def set_active(self, *, user_id: int, is_active: bool) -> None:
        self._require(user_id)
        if not self._users.set_active(int(user_id), is_active=bool(is_active)):
            raise ValidationError("Status update failed")

    def get_employee(self, user_id: int) -> EmployeeView:
        return EmployeeView.from_user(self._require(user_id))

    def get_user(self, user_id: int) -> User:
        return self._require(user_id)

    def list_employees(
        self,
        *,
        department: Optional[str] = None,
        active_only: bool = False,
        search: Optional[str] = None,
    ) -> Sequence[EmployeeView]:
        dept = None
        if department:
            try:
                dept = Department.normalize(department)
            except ValueError:
                raise ValidationError(f"Unknown department: {department}")
        users = self._users.list_users(department=dept, active_only=active_only, search=(search or "").strip() or None)
        return [EmployeeView.from_user(u) for u in users]

    def delete_employee(self, *, current_role: Role, user_id: int) -> None:
        if not current_role.is_admin:
            raise AuthorizationError("You do not have permission for this action")

        user = self._require(user_id)
        if user.role.is_admin:
            raise ValidationError("Admin accounts cannot be deleted")

        if not self._users.delete_by_id(user.user_id):
            raise ValidationError("Deleting employee failed")
        logger.info("Deleted employee %s", user.user_id)

    def _require(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Employee not found")
        return user
