from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..common.location import Location
from ..core.enums import Department, OTSessionStatus, OTType, ReviewAction
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, in_clause, load_json
from .model import OTSession
from .repository import OTSessionRepository

_SELECT = """
    SELECT s.*, u.full_name AS employee_name, u.department AS user_department
    FROM ot_sessions s
    JOIN users u ON u.user_id = s.user_id
"""

_WRITE_COLUMNS = (
    "session_id",
    "session_number",
    "attendance_id",
    "user_id",
    "ot_type",
    "start_time",
    "status",
    "end_time",
    "ot_hours",
    "start_location",
    "end_location",
    "start_photo_url",
    "end_photo_url",
    "reason",
    "auto_closed_at",
    "auto_close_note",
    "reviewed_by",
    "reviewed_at",
    "review_action",
    "review_notes",
    "original_ot_hours",
    "adjusted_ot_hours",
    "created_at",
    "updated_at",
)


def _location(value) -> Optional[Location]:
    data = load_json(value)
    return Location.from_dict(data, required=False) if data else None


def _row_to_session(r: dict) -> OTSession:
    dept = r.get("user_department")
    action = r.get("review_action")
    return OTSession(
        session_id=r["session_id"],
        session_number=int(r["session_number"]),
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        ot_type=OTType(r["ot_type"]),
        start_time=r["start_time"],
        status=OTSessionStatus(r["status"]),
        end_time=r.get("end_time"),
        ot_hours=float(r.get("ot_hours") or 0),
        start_location=_location(r.get("start_location")),
        end_location=_location(r.get("end_location")),
        start_photo_url=r.get("start_photo_url"),
        end_photo_url=r.get("end_photo_url"),
        reason=r.get("reason") or "",
        auto_closed_at=r.get("auto_closed_at"),
        auto_close_note=r.get("auto_close_note"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        review_action=ReviewAction(action) if action else None,
        review_notes=r.get("review_notes"),
        original_ot_hours=float(r["original_ot_hours"]) if r.get("original_ot_hours") is not None else None,
        adjusted_ot_hours=float(r["adjusted_ot_hours"]) if r.get("adjusted_ot_hours") is not None else None,
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        employee_name=r.get("employee_name"),
        department=Department(dept) if dept else None,
    )


def _session_params(s: OTSession) -> tuple:
    return (
        s.session_id,
        s.session_number,
        s.attendance_id,
        s.user_id,
        s.ot_type.value,
        s.start_time,
        s.status.value,
        s.end_time,
        s.ot_hours,
        dump_json(s.start_location.to_dict()) if s.start_location else None,
        dump_json(s.end_location.to_dict()) if s.end_location else None,
        s.start_photo_url,
        s.end_photo_url,
        s.reason,
        s.auto_closed_at,
        s.auto_close_note,
        s.reviewed_by,
        s.reviewed_at,
        s.review_action.value if s.review_action else None,
        s.review_notes,
        s.original_ot_hours,
        s.adjusted_ot_hours,
        s.created_at,
        s.updated_at,
    )


class MySQLOTSessionRepository(OTSessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, session_id: str) -> Optional[OTSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE s.session_id=%s", (session_id,))
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def create_if_no_active(self, session: OTSession) -> bool:
        cols = ", ".join(_WRITE_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock on the user serializes concurrent starts for the same employee.
            cur.execute("SELECT user_id FROM users WHERE user_id=%s FOR UPDATE", (session.user_id,))
            cur.fetchall()
            cur.execute(
                "SELECT COUNT(*) AS n FROM ot_sessions WHERE user_id=%s AND status='in_progress'",
                (session.user_id,),
            )
            if int(fetchone(cur)["n"]) > 0:
                return False
            cur.execute(
                f"INSERT INTO ot_sessions({cols}) VALUES({in_clause(list(_WRITE_COLUMNS))})",
                _session_params(session),
            )
            return True

    def update(self, session: OTSession) -> bool:
        assignments = ", ".join(f"{c}=%s" for c in _WRITE_COLUMNS[1:])
        params = _session_params(session)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE ot_sessions SET {assignments} WHERE session_id=%s",
                (*params[1:], params[0]),
            )
            return cur.rowcount > 0

    def count_for_attendance(self, attendance_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM ot_sessions WHERE attendance_id=%s", (int(attendance_id),))
            return int(fetchone(cur)["n"])

    def list_for_attendance(self, attendance_id: int) -> Sequence[OTSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE s.attendance_id=%s ORDER BY s.session_number", (int(attendance_id),))
            return [_row_to_session(r) for r in fetchall(cur)]

    def find_in_progress_for_user(self, user_id: int) -> Optional[OTSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE s.user_id=%s AND s.status='in_progress' ORDER BY s.start_time DESC LIMIT 1",
                (int(user_id),),
            )
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def has_in_progress_for_attendance(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM ot_sessions WHERE attendance_id=%s AND status='in_progress'",
                (int(attendance_id),),
            )
            return int(fetchone(cur)["n"]) > 0

    def list_in_progress(
        self,
        *,
        department: Optional[Department] = None,
    ) -> Sequence[OTSession]:
        clauses = ["s.status='in_progress'"]
        params: list[object] = []
        if department is not None:
            clauses.append("u.department=%s")
            params.append(department.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {' AND '.join(clauses)} ORDER BY s.start_time", tuple(params))
            return [_row_to_session(r) for r in fetchall(cur)]

    def list_between(
        self,
        *,
        start: datetime,
        end: datetime,
        statuses: Optional[Iterable[OTSessionStatus]] = None,
        department: Optional[Department] = None,
    ) -> Sequence[OTSession]:
        clauses = ["s.start_time>=%s", "s.start_time<%s"]
        params: list[object] = [start, end]
        status_values = [s.value for s in statuses] if statuses is not None else None
        if status_values:
            clauses.append(f"s.status IN ({in_clause(status_values)})")
            params.extend(status_values)
        if department is not None:
            clauses.append("u.department=%s")
            params.append(department.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE {' AND '.join(clauses)} ORDER BY s.start_time DESC",
                tuple(params),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def lock_completed_between(self, *, start: datetime, end: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE ot_sessions SET status='locked'
                WHERE status IN ('completed','APPROVED') AND start_time>=%s AND start_time<%s
                """,
                (start, end),
            )
            return int(cur.rowcount)
