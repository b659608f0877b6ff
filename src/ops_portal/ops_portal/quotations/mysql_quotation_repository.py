from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import MarketingProjectType, QuotationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import Quotation, QuotationItem
from .repository import QuotationRepository

_SELECT = """
    SELECT q.*, c.name AS customer_name
    FROM quotations q
    LEFT JOIN customers c ON c.customer_id = q.customer_id
"""


def _row_to_quotation(r: dict) -> Quotation:
    items = tuple(
        QuotationItem(
            description=i["description"],
            quantity=float(i["quantity"]),
            unit_price=float(i["unit_price"]),
        )
        for i in load_json(r.get("items"), default=[])
    )
    ptype = r.get("project_type")
    return Quotation(
        quotation_id=int(r["quotation_id"]),
        quotation_number=r["quotation_number"],
        customer_id=int(r["customer_id"]),
        items=items,
        gst_percent=float(r["gst_percent"]),
        discount=float(r.get("discount") or 0),
        site_visit_id=r.get("site_visit_id"),
        project_type=MarketingProjectType(ptype) if ptype else None,
        system_kw=float(r["system_kw"]) if r.get("system_kw") is not None else None,
        status=QuotationStatus(r["status"]),
        notes=r.get("notes"),
        created_by=r.get("created_by"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        customer_name=r.get("customer_name"),
    )


class MySQLQuotationRepository(QuotationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, quotation_id: int) -> Optional[Quotation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE q.quotation_id=%s", (int(quotation_id),))
            r = fetchone(cur)
            return _row_to_quotation(r) if r else None

    def create(self, quotation: Quotation) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO quotations(
                    quotation_number, customer_id, site_visit_id, project_type, system_kw, items,
                    gst_percent, discount, status, notes, created_by, created_at, updated_at
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    quotation.quotation_number,
                    quotation.customer_id,
                    quotation.site_visit_id,
                    quotation.project_type.value if quotation.project_type else None,
                    quotation.system_kw,
                    dump_json([i.to_dict() for i in quotation.items]),
                    quotation.gst_percent,
                    quotation.discount,
                    quotation.status.value,
                    quotation.notes,
                    quotation.created_by,
                    quotation.created_at,
                    quotation.updated_at,
                ),
            )
            return int(cur.lastrowid)

    def set_status(self, quotation_id: int, *, status: QuotationStatus, updated_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE quotations SET status=%s, updated_at=%s WHERE quotation_id=%s",
                (status.value, updated_at, int(quotation_id)),
            )
            return cur.rowcount > 0

    def list_quotations(
        self,
        *,
        status: Optional[QuotationStatus] = None,
        customer_id: Optional[int] = None,
        limit: int = 100,
    ) -> Sequence[Quotation]:
        clauses: list[str] = []
        params: list[object] = []
        if status is not None:
            clauses.append("q.status=%s")
            params.append(status.value)
        if customer_id is not None:
            clauses.append("q.customer_id=%s")
            params.append(int(customer_id))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} {where} ORDER BY q.created_at DESC, q.quotation_id DESC LIMIT %s",
                (*params, int(limit)),
            )
            return [_row_to_quotation(r) for r in fetchall(cur)]
