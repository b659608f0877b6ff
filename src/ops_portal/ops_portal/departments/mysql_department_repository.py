from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Department
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import DepartmentTiming
from .repository import DepartmentTimingRepository


def _row_to_timing(r: dict) -> DepartmentTiming:
    return DepartmentTiming(
        department=Department(r["department"]),
        check_in_time=r["check_in_time"],
        check_out_time=r["check_out_time"],
        working_hours=float(r.get("working_hours") or 0),
        break_minutes=int(r.get("break_minutes") or 0),
        late_grace_minutes=int(r.get("late_grace_minutes") or 0),
        auto_checkout_grace_minutes=int(r.get("auto_checkout_grace_minutes") or 0),
        is_active=bool(r.get("is_active", True)),
        updated_by=r.get("updated_by"),
        updated_at=r.get("updated_at"),
    )


class MySQLDepartmentTimingRepository(DepartmentTimingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, department: Department) -> Optional[DepartmentTiming]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM department_timings WHERE department=%s", (department.value,))
            r = fetchone(cur)
            return _row_to_timing(r) if r else None

    def list_all(self) -> Sequence[DepartmentTiming]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM department_timings ORDER BY department")
            return [_row_to_timing(r) for r in fetchall(cur)]

    def upsert(self, timing: DepartmentTiming) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO department_timings(
                    department, check_in_time, check_out_time, working_hours, break_minutes,
                    late_grace_minutes, auto_checkout_grace_minutes, is_active, updated_by, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    check_in_time=VALUES(check_in_time),
                    check_out_time=VALUES(check_out_time),
                    working_hours=VALUES(working_hours),
                    break_minutes=VALUES(break_minutes),
                    late_grace_minutes=VALUES(late_grace_minutes),
                    auto_checkout_grace_minutes=VALUES(auto_checkout_grace_minutes),
                    is_active=VALUES(is_active),
                    updated_by=VALUES(updated_by),
                    updated_at=VALUES(updated_at)
                """,
                (
                    timing.department.value,
                    timing.check_in_time,
                    timing.check_out_time,
                    timing.working_hours,
                    timing.break_minutes,
                    timing.late_grace_minutes,
                    timing.auto_checkout_grace_minutes,
                    1 if timing.is_active else 0,
                    timing.updated_by,
                    timing.updated_at,
                ),
            )
