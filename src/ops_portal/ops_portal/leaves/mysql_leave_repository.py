from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import LeaveType, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveApplication
from .repository import LeaveRepository


def _row_to_leave(r: dict) -> LeaveApplication:
    return LeaveApplication(
        leave_id=int(r["leave_id"]),
        user_id=int(r["user_id"]),
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        permission_hours=float(r["permission_hours"]) if r.get("permission_hours") is not None else None,
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
        admin_note=r.get("admin_note"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_leave(
        self,
        *,
        user_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
        permission_hours: Optional[float],
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_applications(user_id, leave_type, start_date, end_date, reason, permission_hours, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,'PENDING',%s)
                """,
                (int(user_id), leave_type.value, start_date, end_date, reason, permission_hours, created_at),
            )
            return int(cur.lastrowid)

    def get_leave(self, leave_id: int) -> Optional[LeaveApplication]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM leave_applications WHERE leave_id=%s", (int(leave_id),))
            r = fetchone(cur)
            return _row_to_leave(r) if r else None

    def decide_leave(
        self,
        *,
        leave_id: int,
        status: RequestStatus,
        decided_by: int,
        decided_at: datetime,
        admin_note: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_applications
                SET status=%s, decided_by=%s, decided_at=%s, admin_note=%s
                WHERE leave_id=%s AND status='PENDING'
                """,
                (status.value, int(decided_by), decided_at, admin_note, int(leave_id)),
            )
            return cur.rowcount > 0

    def list_leaves(
        self,
        *,
        user_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[LeaveApplication]:
        clauses: list[str] = []
        params: list[object] = []
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT * FROM leave_applications {where} ORDER BY created_at DESC LIMIT %s",
                tuple(params),
            )
            return [_row_to_leave(r) for r in fetchall(cur)]

    def list_approved_covering(self, *, user_id: int, day: date) -> Sequence[LeaveApplication]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT * FROM leave_applications
                WHERE user_id=%s AND status='APPROVED' AND start_date<=%s AND end_date>=%s
                """,
                (int(user_id), day, day),
            )
            return [_row_to_leave(r) for r in fetchall(cur)]
