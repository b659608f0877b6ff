from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..common.location import Location
from ..core.enums import AdminReviewStatus, AttendanceStatus, AttendanceType, Department
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import AttendanceRecord, AttendanceReportRow
from .repository import AttendanceRepository

_SELECT = """
    SELECT ar.*, u.department AS user_department
    FROM attendance_records ar
    JOIN users u ON u.user_id = ar.user_id
"""


def _location(value) -> Optional[Location]:
    data = load_json(value)
    return Location.from_dict(data, required=False) if data else None


def _dump_location(location: Optional[Location]) -> Optional[str]:
    return dump_json(location.to_dict()) if location else None


def _row_to_record(r: dict) -> AttendanceRecord:
    review = r.get("admin_review_status")
    dept = r.get("user_department")
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        check_in_time=r.get("check_in_time"),
        check_out_time=r.get("check_out_time"),
        status=AttendanceStatus(r["status"]),
        attendance_type=AttendanceType(r.get("attendance_type") or AttendanceType.OFFICE.value),
        check_in_location=_location(r.get("check_in_location")),
        check_out_location=_location(r.get("check_out_location")),
        check_in_photo_url=r.get("check_in_photo_url"),
        check_out_photo_url=r.get("check_out_photo_url"),
        is_late=bool(r.get("is_late")),
        late_minutes=int(r.get("late_minutes") or 0),
        working_hours=float(r.get("working_hours") or 0),
        total_ot_hours=float(r.get("total_ot_hours") or 0),
        is_ot_only=bool(r.get("is_ot_only")),
        auto_corrected=bool(r.get("auto_corrected")),
        auto_corrected_at=r.get("auto_corrected_at"),
        auto_correction_reason=r.get("auto_correction_reason"),
        admin_review_status=AdminReviewStatus(review) if review else None,
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        review_notes=r.get("review_notes"),
        note=r.get("note"),
        department=Department(dept) if dept else None,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE ar.attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE ar.user_id=%s ORDER BY ar.work_date DESC LIMIT %s",
                (int(user_id), int(limit)),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE ar.user_id=%s AND ar.work_date=%s", (int(user_id), work_date))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def create_checkin(
        self,
        *,
        user_id: int,
        work_date: date,
        check_in_time: Optional[datetime],
        status: AttendanceStatus,
        attendance_type: AttendanceType = AttendanceType.OFFICE,
        location: Optional[Location] = None,
        photo_url: Optional[str] = None,
        is_late: bool = False,
        late_minutes: int = 0,
        is_ot_only: bool = False,
        note: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    user_id, work_date, check_in_time, status, attendance_type, check_in_location,
                    check_in_photo_url, is_late, late_minutes, is_ot_only, note
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    work_date,
                    check_in_time,
                    status.value,
                    attendance_type.value,
                    _dump_location(location),
                    photo_url,
                    1 if is_late else 0,
                    int(late_minutes),
                    1 if is_ot_only else 0,
                    note,
                ),
            )
            return int(cur.lastrowid)

    def upgrade_ot_only_checkin(
        self,
        *,
        attendance_id: int,
        check_in_time: datetime,
        status: AttendanceStatus,
        attendance_type: AttendanceType,
        location: Location,
        photo_url: Optional[str],
        is_late: bool,
        late_minutes: int,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_in_time=%s, status=%s, attendance_type=%s, check_in_location=%s,
                    check_in_photo_url=%s, is_late=%s, late_minutes=%s, is_ot_only=0
                WHERE attendance_id=%s AND check_in_time IS NULL
                """,
                (
                    check_in_time,
                    status.value,
                    attendance_type.value,
                    _dump_location(location),
                    photo_url,
                    1 if is_late else 0,
                    int(late_minutes),
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def update_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        status: AttendanceStatus,
        location: Optional[Location],
        photo_url: Optional[str],
        working_hours: float,
        note: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s, status=%s, check_out_location=%s, check_out_photo_url=%s,
                    working_hours=%s, note=%s
                WHERE attendance_id=%s
                """,
                (
                    check_out_time,
                    status.value,
                    _dump_location(location),
                    photo_url,
                    float(working_hours),
                    note,
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def apply_auto_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        working_hours: float,
        corrected_at: datetime,
        reason: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s, working_hours=%s, auto_corrected=1, auto_corrected_at=%s,
                    auto_correction_reason=%s, admin_review_status='pending'
                WHERE attendance_id=%s AND check_out_time IS NULL
                """,
                (check_out_time, float(working_hours), corrected_at, reason, int(attendance_id)),
            )
            return cur.rowcount > 0

    def apply_review(
        self,
        *,
        attendance_id: int,
        review_status: AdminReviewStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        notes: Optional[str],
        check_out_time: Optional[datetime],
        working_hours: float,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET admin_review_status=%s, reviewed_by=%s, reviewed_at=%s, review_notes=%s,
                    check_out_time=%s, working_hours=%s
                WHERE attendance_id=%s
                """,
                (
                    review_status.value,
                    int(reviewed_by),
                    reviewed_at,
                    notes,
                    check_out_time,
                    float(working_hours),
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def set_total_ot_hours(self, attendance_id: int, hours: float) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_records SET total_ot_hours=%s WHERE attendance_id=%s",
                (round(float(hours), 2), int(attendance_id)),
            )
            return cur.rowcount > 0

    def list_incomplete(self, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_SELECT}
                WHERE ar.work_date=%s AND ar.check_in_time IS NOT NULL AND ar.check_out_time IS NULL
                ORDER BY ar.check_in_time
                """,
                (work_date,),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_pending_reviews(self) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE ar.admin_review_status='pending' ORDER BY ar.work_date DESC")
            return [_row_to_record(r) for r in fetchall(cur)]

    def get_report_rows(
        self,
        *,
        start_date: date,
        end_date: date,
        department: Optional[Department] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        clauses = ["ar.work_date BETWEEN %s AND %s"]
        params: list[object] = [start_date, end_date]

        if department is not None:
            clauses.append("u.department=%s")
            params.append(department.value)
        if user_id is not None:
            clauses.append("u.user_id=%s")
            params.append(int(user_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    u.user_id, u.full_name, u.username, u.department,
                    COALESCE(dt.break_minutes, 0) AS break_minutes,
                    ar.work_date, ar.check_in_time, ar.check_out_time, ar.status,
                    ar.total_ot_hours, ar.admin_review_status, ar.note
                FROM attendance_records ar
                JOIN users u ON u.user_id = ar.user_id
                LEFT JOIN department_timings dt ON dt.department = u.department
                WHERE {where}
                ORDER BY ar.work_date DESC, u.user_id ASC
                """,
                tuple(params),
            )
            rows = fetchall(cur)

            return [
                AttendanceReportRow(
                    user_id=int(r["user_id"]),
                    full_name=r["full_name"],
                    username=r["username"],
                    department=Department(r["department"]) if r.get("department") else None,
                    break_minutes=int(r.get("break_minutes") or 0),
                    work_date=r["work_date"],
                    check_in_time=r.get("check_in_time"),
                    check_out_time=r.get("check_out_time"),
                    status=AttendanceStatus(r["status"]),
                    total_ot_hours=float(r.get("total_ot_hours") or 0),
                    admin_review_status=(
                        AdminReviewStatus(r["admin_review_status"]) if r.get("admin_review_status") else None
                    ),
                    note=r.get("note"),
                )
                for r in rows
            ]
