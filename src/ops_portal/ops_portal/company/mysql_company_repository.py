from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import Department, HolidayType, PayrollPeriodStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import CompanySettings, Holiday, PayrollPeriod
from .repository import CompanyRepository


def _row_to_holiday(r: dict) -> Holiday:
    depts = load_json(r.get("applicable_departments"))
    return Holiday(
        holiday_id=int(r["holiday_id"]),
        name=r["name"],
        holiday_date=r["holiday_date"],
        type=HolidayType(r.get("type") or HolidayType.NATIONAL.value),
        allow_ot=bool(r.get("allow_ot")),
        is_active=bool(r.get("is_active", True)),
        applicable_departments=tuple(Department(d) for d in depts) if depts is not None else None,
        description=r.get("description"),
        created_by=r.get("created_by"),
    )


def _holiday_params(h: Holiday) -> tuple:
    depts = [d.value for d in h.applicable_departments] if h.applicable_departments is not None else None
    return (
        h.name,
        h.holiday_date,
        h.type.value,
        1 if h.allow_ot else 0,
        1 if h.is_active else 0,
        dump_json(depts),
        h.description,
    )


class MySQLCompanyRepository(CompanyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_settings(self) -> Optional[CompanySettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM company_settings WHERE settings_id=1")
            r = fetchone(cur)
            if not r:
                return None
            return CompanySettings(
                weekend_days=tuple(int(d) for d in load_json(r.get("weekend_days"), [])),
                default_ot_rate=float(r["default_ot_rate"]),
                max_ot_hours_per_day=float(r["max_ot_hours_per_day"]),
                updated_by=r.get("updated_by"),
                updated_at=r.get("updated_at"),
            )

    def save_settings(self, settings: CompanySettings) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO company_settings(settings_id, weekend_days, default_ot_rate, max_ot_hours_per_day, updated_by, updated_at)
                VALUES(1,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    weekend_days=VALUES(weekend_days),
                    default_ot_rate=VALUES(default_ot_rate),
                    max_ot_hours_per_day=VALUES(max_ot_hours_per_day),
                    updated_by=VALUES(updated_by),
                    updated_at=VALUES(updated_at)
                """,
                (
                    dump_json(list(settings.weekend_days)),
                    settings.default_ot_rate,
                    settings.max_ot_hours_per_day,
                    settings.updated_by,
                    settings.updated_at,
                ),
            )

    def list_holidays(self, *, year: Optional[int] = None) -> Sequence[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            if year is None:
                cur.execute("SELECT * FROM holidays ORDER BY holiday_date")
            else:
                cur.execute("SELECT * FROM holidays WHERE YEAR(holiday_date)=%s ORDER BY holiday_date", (int(year),))
            return [_row_to_holiday(r) for r in fetchall(cur)]

    def holidays_on(self, day: date) -> Sequence[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM holidays WHERE holiday_date=%s AND is_active=1", (day,))
            return [_row_to_holiday(r) for r in fetchall(cur)]

    def get_holiday(self, holiday_id: int) -> Optional[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM holidays WHERE holiday_id=%s", (int(holiday_id),))
            r = fetchone(cur)
            return _row_to_holiday(r) if r else None

    def create_holiday(self, holiday: Holiday) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO holidays(name, holiday_date, type, allow_ot, is_active, applicable_departments, description, created_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (*_holiday_params(holiday), holiday.created_by),
            )
            return int(cur.lastrowid)

    def update_holiday(self, holiday: Holiday) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE holidays
                SET name=%s, holiday_date=%s, type=%s, allow_ot=%s, is_active=%s, applicable_departments=%s, description=%s
                WHERE holiday_id=%s
                """,
                (*_holiday_params(holiday), int(holiday.holiday_id)),
            )
            return cur.rowcount > 0

    def delete_holiday(self, holiday_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM holidays WHERE holiday_id=%s", (int(holiday_id),))
            return cur.rowcount > 0

    def get_payroll_period(self, *, month: int, year: int) -> Optional[PayrollPeriod]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM payroll_periods WHERE month=%s AND year=%s", (int(month), int(year)))
            r = fetchone(cur)
            if not r:
                return None
            return PayrollPeriod(
                month=int(r["month"]),
                year=int(r["year"]),
                status=PayrollPeriodStatus(r["status"]),
                locked_at=r.get("locked_at"),
                locked_by=r.get("locked_by"),
                notes=list(load_json(r.get("notes"), [])),
            )

    def save_payroll_period(self, period: PayrollPeriod) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payroll_periods(period_id, month, year, status, locked_at, locked_by, notes)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    locked_at=VALUES(locked_at),
                    locked_by=VALUES(locked_by),
                    notes=VALUES(notes)
                """,
                (
                    period.period_id,
                    period.month,
                    period.year,
                    period.status.value,
                    period.locked_at,
                    period.locked_by,
                    dump_json(period.notes),
                ),
            )
