from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..core.enums import Department, EmploymentType, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, username, password_hash, full_name, role, department, designation,
    employee_code, employment_type, email, phone, join_date, is_active, created_at
"""

# Columns accepted by create_user/update_user
_WRITABLE = (
    "full_name",
    "department",
    "designation",
    "employee_code",
    "employment_type",
    "email",
    "phone",
    "join_date",
    "role",
    "password_hash",
)


def _row_to_user(r: dict) -> User:
    return User(
        user_id=int(r["user_id"]),
        username=r["username"],
        password_hash=r["password_hash"],
        full_name=r["full_name"],
        role=Role(r["role"]),
        department=Department(r["department"]) if r.get("department") else None,
        designation=r.get("designation"),
        employee_code=r.get("employee_code"),
        employment_type=EmploymentType(r["employment_type"]) if r.get("employment_type") else None,
        email=r.get("email"),
        phone=r.get("phone"),
        join_date=r.get("join_date"),
        is_active=bool(r.get("is_active", True)),
        created_at=r.get("created_at"),
    )


def _db_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_username(self, username: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE username=%s", (username,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def create_user(self, *, username: str, password_hash: str, full_name: str, role: Role, fields: Mapping[str, Any]) -> int:
        data = {k: _db_value(v) for k, v in fields.items() if k in _WRITABLE}
        data.update(username=username, password_hash=password_hash, full_name=full_name, role=role.value)
        cols = list(data.keys())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO users({', '.join(cols)}, is_active) VALUES({in_clause(cols)}, 1)",
                tuple(data[c] for c in cols),
            )
            return int(cur.lastrowid)

    def update_user(self, user_id: int, *, fields: Mapping[str, Any]) -> bool:
        data = {k: _db_value(v) for k, v in fields.items() if k in _WRITABLE}
        if not data:
            return False
        assignments = ", ".join(f"{c}=%s" for c in data)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE users SET {assignments} WHERE user_id=%s",
                (*data.values(), int(user_id)),
            )
            return cur.rowcount > 0

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE user_id=%s", (1 if is_active else 0, int(user_id)))
            return cur.rowcount > 0

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    def list_users(
        self,
        *,
        department: Optional[Department] = None,
        active_only: bool = False,
        search: Optional[str] = None,
    ) -> Sequence[User]:
        clauses: list[str] = []
        params: list[object] = []
        if department is not None:
            clauses.append("department=%s")
            params.append(department.value)
        if active_only:
            clauses.append("is_active=1")
        if search:
            like = f"%{search.strip()}%"
            clauses.append("(full_name LIKE %s OR username LIKE %s OR employee_code LIKE %s)")
            params.extend([like, like, like])

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users {where} ORDER BY full_name", tuple(params))
            return [_row_to_user(r) for r in fetchall(cur)]

    def list_ids_by_roles(self, roles: Iterable[Role]) -> Sequence[int]:
        values = [r.value for r in roles]
        if not values:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT user_id FROM users WHERE is_active=1 AND role IN ({in_clause(values)})",
                tuple(values),
            )
            return [int(r["user_id"]) for r in fetchall(cur)]
