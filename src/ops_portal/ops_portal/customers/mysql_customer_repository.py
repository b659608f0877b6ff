from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import PropertyType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Customer
from .repository import CustomerRepository

_COLUMNS = """
    customer_id, name, mobile, address, email, eb_service_number, property_type,
    location, source, created_from, created_at, updated_at
"""

_WRITABLE = (
    "name",
    "mobile",
    "address",
    "email",
    "eb_service_number",
    "property_type",
    "location",
    "source",
    "created_from",
    "created_at",
    "updated_at",
)


def _row_to_customer(r: dict) -> Customer:
    return Customer(
        customer_id=int(r["customer_id"]),
        name=r["name"],
        mobile=r["mobile"],
        address=r.get("address"),
        email=r.get("email"),
        eb_service_number=r.get("eb_service_number"),
        property_type=PropertyType(r["property_type"]) if r.get("property_type") else None,
        location=r.get("location"),
        source=r.get("source"),
        created_from=r.get("created_from") or "customers_page",
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _db_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class MySQLCustomerRepository(CustomerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, customer_id: int) -> Optional[Customer]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM customers WHERE customer_id=%s", (int(customer_id),))
            r = fetchone(cur)
            return _row_to_customer(r) if r else None

    def find_by_mobile(self, mobile: str) -> Sequence[Customer]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM customers WHERE mobile=%s ORDER BY customer_id", (mobile,))
            return [_row_to_customer(r) for r in fetchall(cur)]

    def create(self, *, fields: Mapping[str, Any]) -> int:
        data = {k: _db_value(v) for k, v in fields.items() if k in _WRITABLE}
        cols = list(data.keys())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO customers({', '.join(cols)}) VALUES({in_clause(cols)})",
                tuple(data[c] for c in cols),
            )
            return int(cur.lastrowid)

    def update(self, customer_id: int, *, fields: Mapping[str, Any]) -> bool:
        data = {k: _db_value(v) for k, v in fields.items() if k in _WRITABLE}
        if not data:
            return False
        assignments = ", ".join(f"{c}=%s" for c in data)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE customers SET {assignments} WHERE customer_id=%s",
                (*data.values(), int(customer_id)),
            )
            return cur.rowcount > 0

    def search(self, term: str, *, limit: int = 20) -> Sequence[Customer]:
        like = f"%{term.lower()}%"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM customers
                WHERE LOWER(name) LIKE %s OR mobile LIKE %s OR LOWER(COALESCE(address, '')) LIKE %s
                ORDER BY name
                LIMIT %s
                """,
                (like, like, like, int(limit)),
            )
            return [_row_to_customer(r) for r in fetchall(cur)]

    def list_customers(self, *, limit: int = 100, offset: int = 0) -> Sequence[Customer]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM customers ORDER BY created_at DESC, customer_id DESC LIMIT %s OFFSET %s",
                (int(limit), int(offset)),
            )
            return [_row_to_customer(r) for r in fetchall(cur)]
