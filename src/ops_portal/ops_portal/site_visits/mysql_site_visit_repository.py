from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.location import Location
from ..core.enums import (
    ActivityType,
    Department,
    FollowUpOutcome,
    FollowUpReason,
    SiteVisitStatus,
    VisitOutcome,
    VisitPurpose,
)
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, in_clause, load_json
from .model import (
    AdminVisitData,
    CustomerDetails,
    FollowUpVisit,
    MarketingVisitData,
    SitePhoto,
    SiteVisit,
    TechnicalVisitData,
)
from .repository import FollowUpRepository, SiteVisitRepository

_VISIT_SELECT = """
    SELECT v.*, u.full_name AS employee_name
    FROM site_visits v
    LEFT JOIN users u ON u.user_id = v.user_id
"""

_VISIT_COLUMNS = (
    "user_id",
    "department",
    "visit_purpose",
    "site_in_time",
    "site_in_location",
    "site_in_photo_url",
    "site_out_time",
    "site_out_location",
    "site_out_photo_url",
    "customer",
    "customer_id",
    "technical_data",
    "marketing_data",
    "admin_data",
    "site_photos",
    "site_out_photos",
    "is_follow_up",
    "follow_up_of",
    "has_follow_ups",
    "follow_up_count",
    "follow_up_reason",
    "status",
    "auto_corrected",
    "auto_closed_at",
    "auto_correction_reason",
    "visit_outcome",
    "outcome_notes",
    "scheduled_follow_up_date",
    "outcome_selected_at",
    "outcome_selected_by",
    "customer_current_status",
    "last_activity_type",
    "last_activity_date",
    "active_follow_up_id",
    "notes",
    "created_at",
    "updated_at",
)

_FOLLOW_UP_COLUMNS = (
    "original_visit_id",
    "user_id",
    "department",
    "site_in_time",
    "site_in_location",
    "site_in_photo_url",
    "site_out_time",
    "site_out_location",
    "site_out_photo_url",
    "customer",
    "follow_up_reason",
    "description",
    "site_photos",
    "site_out_photos",
    "status",
    "visit_outcome",
    "outcome_notes",
    "scheduled_follow_up_date",
    "outcome_selected_at",
    "outcome_selected_by",
    "original_customer_status",
    "new_customer_status",
    "notes",
    "created_at",
    "updated_at",
)


def _location(value: Any) -> Optional[Location]:
    data = load_json(value)
    return Location.from_dict(data, required=False) if data else None


def _location_json(loc: Optional[Location]) -> Optional[str]:
    return dump_json(loc.to_dict()) if loc else None


def _photos(value: Any) -> tuple[SitePhoto, ...]:
    photos = (SitePhoto.from_value(p) for p in load_json(value, default=[]))
    return tuple(p for p in photos if p is not None)


def _photo_urls(value: Any) -> tuple[str, ...]:
    return tuple(p.url for p in _photos(value))


def _opt_enum(enum_cls, value):
    return enum_cls(value) if value else None


def _row_to_visit(r: dict) -> SiteVisit:
    technical = load_json(r.get("technical_data"))
    marketing = load_json(r.get("marketing_data"))
    admin = load_json(r.get("admin_data"))
    return SiteVisit(
        visit_id=int(r["visit_id"]),
        user_id=int(r["user_id"]),
        department=Department(r["department"]),
        visit_purpose=VisitPurpose(r["visit_purpose"]),
        site_in_time=r["site_in_time"],
        site_in_location=_location(r.get("site_in_location")),
        customer=CustomerDetails.from_dict(load_json(r.get("customer"), default={})),
        site_in_photo_url=r.get("site_in_photo_url"),
        site_out_time=r.get("site_out_time"),
        site_out_location=_location(r.get("site_out_location")),
        site_out_photo_url=r.get("site_out_photo_url"),
        customer_id=r.get("customer_id"),
        technical_data=TechnicalVisitData.from_dict(technical) if technical else None,
        marketing_data=MarketingVisitData.from_dict(marketing) if marketing else None,
        admin_data=AdminVisitData.from_dict(admin) if admin else None,
        site_photos=_photos(r.get("site_photos")),
        site_out_photos=_photos(r.get("site_out_photos")),
        is_follow_up=bool(r.get("is_follow_up")),
        follow_up_of=r.get("follow_up_of"),
        has_follow_ups=bool(r.get("has_follow_ups")),
        follow_up_count=int(r.get("follow_up_count") or 0),
        follow_up_reason=r.get("follow_up_reason"),
        status=SiteVisitStatus(r["status"]),
        auto_corrected=bool(r.get("auto_corrected")),
        auto_closed_at=r.get("auto_closed_at"),
        auto_correction_reason=r.get("auto_correction_reason"),
        visit_outcome=_opt_enum(VisitOutcome, r.get("visit_outcome")),
        outcome_notes=r.get("outcome_notes"),
        scheduled_follow_up_date=r.get("scheduled_follow_up_date"),
        outcome_selected_at=r.get("outcome_selected_at"),
        outcome_selected_by=r.get("outcome_selected_by"),
        customer_current_status=_opt_enum(VisitOutcome, r.get("customer_current_status")),
        last_activity_type=ActivityType(r.get("last_activity_type") or ActivityType.INITIAL_VISIT.value),
        last_activity_date=r.get("last_activity_date"),
        active_follow_up_id=r.get("active_follow_up_id"),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        employee_name=r.get("employee_name"),
    )


def _visit_params(v: SiteVisit) -> tuple:
    return (
        v.user_id,
        v.department.value,
        v.visit_purpose.value,
        v.site_in_time,
        _location_json(v.site_in_location),
        v.site_in_photo_url,
        v.site_out_time,
        _location_json(v.site_out_location),
        v.site_out_photo_url,
        dump_json(v.customer.to_dict()),
        v.customer_id,
        dump_json(v.technical_data.to_dict()) if v.technical_data else None,
        dump_json(v.marketing_data.to_dict()) if v.marketing_data else None,
        dump_json(v.admin_data.to_dict()) if v.admin_data else None,
        dump_json([p.to_dict() for p in v.site_photos]),
        dump_json([p.to_dict() for p in v.site_out_photos]),
        int(v.is_follow_up),
        v.follow_up_of,
        int(v.has_follow_ups),
        v.follow_up_count,
        v.follow_up_reason,
        v.status.value,
        int(v.auto_corrected),
        v.auto_closed_at,
        v.auto_correction_reason,
        v.visit_outcome.value if v.visit_outcome else None,
        v.outcome_notes,
        v.scheduled_follow_up_date,
        v.outcome_selected_at,
        v.outcome_selected_by,
        v.customer_current_status.value if v.customer_current_status else None,
        v.last_activity_type.value,
        v.last_activity_date,
        v.active_follow_up_id,
        v.notes,
        v.created_at,
        v.updated_at,
    )


def _row_to_follow_up(r: dict) -> FollowUpVisit:
    return FollowUpVisit(
        follow_up_id=int(r["follow_up_id"]),
        original_visit_id=int(r["original_visit_id"]),
        user_id=int(r["user_id"]),
        department=Department(r["department"]),
        site_in_time=r["site_in_time"],
        site_in_location=_location(r.get("site_in_location")),
        customer=CustomerDetails.from_dict(load_json(r.get("customer"), default={})),
        description=r.get("description") or "",
        follow_up_reason=FollowUpReason(r["follow_up_reason"]),
        site_in_photo_url=r.get("site_in_photo_url"),
        site_out_time=r.get("site_out_time"),
        site_out_location=_location(r.get("site_out_location")),
        site_out_photo_url=r.get("site_out_photo_url"),
        site_photos=_photo_urls(r.get("site_photos")),
        site_out_photos=_photo_urls(r.get("site_out_photos")),
        status=SiteVisitStatus(r["status"]),
        visit_outcome=_opt_enum(FollowUpOutcome, r.get("visit_outcome")),
        outcome_notes=r.get("outcome_notes"),
        scheduled_follow_up_date=r.get("scheduled_follow_up_date"),
        outcome_selected_at=r.get("outcome_selected_at"),
        outcome_selected_by=r.get("outcome_selected_by"),
        original_customer_status=_opt_enum(VisitOutcome, r.get("original_customer_status")),
        new_customer_status=_opt_enum(VisitOutcome, r.get("new_customer_status")),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _follow_up_params(f: FollowUpVisit) -> tuple:
    return (
        f.original_visit_id,
        f.user_id,
        f.department.value,
        f.site_in_time,
        _location_json(f.site_in_location),
        f.site_in_photo_url,
        f.site_out_time,
        _location_json(f.site_out_location),
        f.site_out_photo_url,
        dump_json(f.customer.to_dict()),
        f.follow_up_reason.value,
        f.description,
        dump_json(list(f.site_photos)),
        dump_json(list(f.site_out_photos)),
        f.status.value,
        f.visit_outcome.value if f.visit_outcome else None,
        f.outcome_notes,
        f.scheduled_follow_up_date,
        f.outcome_selected_at,
        f.outcome_selected_by,
        f.original_customer_status.value if f.original_customer_status else None,
        f.new_customer_status.value if f.new_customer_status else None,
        f.notes,
        f.created_at,
        f.updated_at,
    )


class MySQLSiteVisitRepository(SiteVisitRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, visit_id: int) -> Optional[SiteVisit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_VISIT_SELECT} WHERE v.visit_id=%s", (int(visit_id),))
            r = fetchone(cur)
            return _row_to_visit(r) if r else None

    def create(self, visit: SiteVisit) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO site_visits({', '.join(_VISIT_COLUMNS)}) "
                f"VALUES({in_clause(list(_VISIT_COLUMNS))})",
                _visit_params(visit),
            )
            return int(cur.lastrowid)

    def update(self, visit: SiteVisit) -> bool:
        assignments = ", ".join(f"{c}=%s" for c in _VISIT_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE site_visits SET {assignments} WHERE visit_id=%s",
                (*_visit_params(visit), int(visit.visit_id)),
            )
            return cur.rowcount > 0

    def delete(self, visit_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM follow_up_visits WHERE original_visit_id=%s", (int(visit_id),))
            cur.execute("DELETE FROM site_visits WHERE visit_id=%s", (int(visit_id),))
            return cur.rowcount > 0

    def find_active_for_user(self, user_id: int) -> Optional[SiteVisit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_VISIT_SELECT} WHERE v.user_id=%s AND v.status='in_progress' "
                "ORDER BY v.site_in_time DESC LIMIT 1",
                (int(user_id),),
            )
            r = fetchone(cur)
            return _row_to_visit(r) if r else None

    def list_visits(
        self,
        *,
        user_id: Optional[int] = None,
        department: Optional[Department] = None,
        status: Optional[SiteVisitStatus] = None,
        visit_outcome: Optional[VisitOutcome] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 500,
    ) -> Sequence[SiteVisit]:
        clauses: list[str] = []
        params: list[object] = []
        if user_id is not None:
            clauses.append("v.user_id=%s")
            params.append(int(user_id))
        if department is not None:
            clauses.append("v.department=%s")
            params.append(department.value)
        if status is not None:
            clauses.append("v.status=%s")
            params.append(status.value)
        if visit_outcome is not None:
            clauses.append("v.visit_outcome=%s")
            params.append(visit_outcome.value)
        if start is not None:
            clauses.append("v.site_in_time>=%s")
            params.append(start)
        if end is not None:
            clauses.append("v.site_in_time<%s")
            params.append(end)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_VISIT_SELECT} {where} ORDER BY v.site_in_time DESC LIMIT %s",
                (*params, int(limit)),
            )
            return [_row_to_visit(r) for r in fetchall(cur)]

    def list_in_progress_started_before(self, cutoff: datetime) -> Sequence[SiteVisit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_VISIT_SELECT} WHERE v.status='in_progress' AND v.site_in_time<%s ORDER BY v.site_in_time",
                (cutoff,),
            )
            return [_row_to_visit(r) for r in fetchall(cur)]


class MySQLFollowUpRepository(FollowUpRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, follow_up_id: int) -> Optional[FollowUpVisit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM follow_up_visits WHERE follow_up_id=%s", (int(follow_up_id),))
            r = fetchone(cur)
            return _row_to_follow_up(r) if r else None

    def create(self, follow_up: FollowUpVisit) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO follow_up_visits({', '.join(_FOLLOW_UP_COLUMNS)}) "
                f"VALUES({in_clause(list(_FOLLOW_UP_COLUMNS))})",
                _follow_up_params(follow_up),
            )
            return int(cur.lastrowid)

    def update(self, follow_up: FollowUpVisit) -> bool:
        assignments = ", ".join(f"{c}=%s" for c in _FOLLOW_UP_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE follow_up_visits SET {assignments} WHERE follow_up_id=%s",
                (*_follow_up_params(follow_up), int(follow_up.follow_up_id)),
            )
            return cur.rowcount > 0

    def delete(self, follow_up_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM follow_up_visits WHERE follow_up_id=%s", (int(follow_up_id),))
            return cur.rowcount > 0

    def list_for_visit(self, original_visit_id: int) -> Sequence[FollowUpVisit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM follow_up_visits WHERE original_visit_id=%s ORDER BY created_at DESC",
                (int(original_visit_id),),
            )
            return [_row_to_follow_up(r) for r in fetchall(cur)]

    def list_follow_ups(
        self,
        *,
        user_id: Optional[int] = None,
        department: Optional[Department] = None,
        status: Optional[SiteVisitStatus] = None,
    ) -> Sequence[FollowUpVisit]:
        clauses: list[str] = []
        params: list[object] = []
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        if department is not None:
            clauses.append("department=%s")
            params.append(department.value)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT * FROM follow_up_visits {where} ORDER BY created_at DESC", tuple(params))
            return [_row_to_follow_up(r) for r in fetchall(cur)]
