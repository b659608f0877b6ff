"""In-memory repositories shared by the service tests."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional, Sequence

from werkzeug.security import generate_password_hash

from ops_portal.activity.model import ActivityLog, Notification
from ops_portal.activity.service import ActivityService
from ops_portal.attendance.auto_checkout import AutoCheckoutService
from ops_portal.attendance.model import AttendanceRecord, AttendanceReportRow
from ops_portal.attendance.review_service import AttendanceReviewService
from ops_portal.attendance.service import AttendanceService
from ops_portal.company.model import CompanySettings, Holiday, PayrollPeriod
from ops_portal.company.service import CompanyCalendarService
from ops_portal.container import Container
from ops_portal.core.enums import (
    AdminReviewStatus,
    AttendanceStatus,
    AttendanceType,
    Department,
    OTSessionStatus,
    RequestStatus,
    Role,
    SiteVisitStatus,
)
from ops_portal.customers.model import Customer
from ops_portal.customers.service import CustomerService
from ops_portal.departments.model import DepartmentTiming
from ops_portal.departments.service import DepartmentTimingService
from ops_portal.leaves.model import LeaveApplication
from ops_portal.leaves.service import LeaveService
from ops_portal.overtime.auto_close import OTAutoCloseService
from ops_portal.overtime.model import OTSession
from ops_portal.overtime.report import OTReportService
from ops_portal.overtime.service import OTSessionService
from ops_portal.quotations.model import Quotation
from ops_portal.quotations.service import QuotationService
from ops_portal.site_visits.auto_close import SiteVisitAutoCloseService
from ops_portal.site_visits.exporter import SiteVisitExporter
from ops_portal.site_visits.follow_up_service import FollowUpService
from ops_portal.site_visits.model import FollowUpVisit, SiteVisit
from ops_portal.site_visits.service import SiteVisitService
from ops_portal.users.model import User
from ops_portal.users.service import AuthService, EmployeeService


def make_user(
    user_id: int,
    *,
    department: Optional[Department] = Department.TECHNICAL,
    role: Role = Role.EMPLOYEE,
    username: Optional[str] = None,
    password: str = "secret123",
    full_name: Optional[str] = None,
) -> User:
    return User(
        user_id=user_id,
        username=username or f"user{user_id}",
        password_hash=generate_password_hash(password),
        full_name=full_name or f"Employee {user_id}",
        role=role,
        department=department,
    )


class InMemoryUsers:
    def __init__(self, users: Iterable[User] = ()):
        self.users: dict[int, User] = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(int(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.username == username), None)

    def create_user(self, *, username, password_hash, full_name, role, fields) -> int:
        user_id = max(self.users, default=0) + 1
        self.users[user_id] = User(
            user_id=user_id, username=username, password_hash=password_hash, full_name=full_name, role=role, **fields
        )
        return user_id

    def update_user(self, user_id: int, *, fields: Mapping[str, Any]) -> bool:
        user = self.users.get(int(user_id))
        if not user:
            return False
        self.users[user.user_id] = replace(user, **fields)
        return True

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        return self.update_user(user_id, fields={"is_active": is_active})

    def delete_by_id(self, user_id: int) -> bool:
        return self.users.pop(int(user_id), None) is not None

    def list_users(self, *, department=None, active_only=False, search=None) -> Sequence[User]:
        out = list(self.users.values())
        if department:
            out = [u for u in out if u.department == department]
        if active_only:
            out = [u for u in out if u.is_active]
        if search:
            out = [u for u in out if search.lower() in u.full_name.lower()]
        return out

    def list_ids_by_roles(self, roles: Iterable[Role]) -> Sequence[int]:
        wanted = set(roles)
        return [u.user_id for u in self.users.values() if u.role in wanted and u.is_active]


class InMemoryActivity:
    def __init__(self):
        self.activities: list[ActivityLog] = []
        self.notifications: list[Notification] = []

    def create_activity(self, *, type, title, description, entity_id, entity_type, user_id, created_at) -> int:
        activity_id = len(self.activities) + 1
        self.activities.append(
            ActivityLog(activity_id, type, title, description, entity_id, entity_type, user_id, created_at)
        )
        return activity_id

    def list_recent(self, *, limit: int) -> Sequence[ActivityLog]:
        return sorted(self.activities, key=lambda a: a.created_at, reverse=True)[:limit]

    def list_for_user(self, user_id: int, *, limit: int) -> Sequence[ActivityLog]:
        return [a for a in self.list_recent(limit=len(self.activities)) if a.user_id == user_id][:limit]

    def create_notification(self, *, user_id, type, title, message, created_at) -> int:
        notification_id = len(self.notifications) + 1
        self.notifications.append(Notification(notification_id, user_id, type, title, message, False, created_at))
        return notification_id

    def list_notifications(self, user_id: int, *, unread_only: bool, limit: int) -> Sequence[Notification]:
        out = [n for n in self.notifications if n.user_id == user_id and not (unread_only and n.is_read)]
        return out[:limit]

    def mark_read(self, *, notification_id: int, user_id: int) -> bool:
        for idx, n in enumerate(self.notifications):
            if n.notification_id == notification_id and n.user_id == user_id:
                self.notifications[idx] = replace(n, is_read=True)
                return True
        return False

    def titles(self) -> list[str]:
        return [a.title for a in self.activities]

    def notification_titles(self, user_id: Optional[int] = None) -> list[str]:
        return [n.title for n in self.notifications if user_id is None or n.user_id == user_id]


class InMemoryTimings:
    def __init__(self, timings: Iterable[DepartmentTiming] = ()):
        self.timings: dict[Department, DepartmentTiming] = {t.department: t for t in timings}

    def get(self, department: Department) -> Optional[DepartmentTiming]:
        return self.timings.get(department)

    def list_all(self) -> Sequence[DepartmentTiming]:
        return list(self.timings.values())

    def upsert(self, timing: DepartmentTiming) -> None:
        self.timings[timing.department] = timing


class InMemoryCompany:
    def __init__(self, settings: Optional[CompanySettings] = None):
        self.settings = settings
        self.holidays: dict[int, Holiday] = {}
        self.periods: dict[tuple[int, int], PayrollPeriod] = {}

    def get_settings(self) -> Optional[CompanySettings]:
        return self.settings

    def save_settings(self, settings: CompanySettings) -> None:
        self.settings = settings

    def list_holidays(self, *, year: Optional[int] = None) -> Sequence[Holiday]:
        out = sorted(self.holidays.values(), key=lambda h: h.holiday_date)
        return [h for h in out if year is None or h.holiday_date.year == year]

    def holidays_on(self, day: date) -> Sequence[Holiday]:
        return [h for h in self.holidays.values() if h.holiday_date == day and h.is_active]

    def get_holiday(self, holiday_id: int) -> Optional[Holiday]:
        return self.holidays.get(int(holiday_id))

    def create_holiday(self, holiday: Holiday) -> int:
        holiday_id = max(self.holidays, default=0) + 1
        self.holidays[holiday_id] = replace(holiday, holiday_id=holiday_id)
        return holiday_id

    def update_holiday(self, holiday: Holiday) -> bool:
        if holiday.holiday_id not in self.holidays:
            return False
        self.holidays[holiday.holiday_id] = holiday
        return True

    def delete_holiday(self, holiday_id: int) -> bool:
        return self.holidays.pop(int(holiday_id), None) is not None

    def get_payroll_period(self, *, month: int, year: int) -> Optional[PayrollPeriod]:
        return self.periods.get((int(month), int(year)))

    def save_payroll_period(self, period: PayrollPeriod) -> None:
        self.periods[(period.month, period.year)] = period


class InMemoryLeaves:
    def __init__(self):
        self.leaves: dict[int, LeaveApplication] = {}

    def create_leave(self, *, user_id, leave_type, start_date, end_date, reason, permission_hours, created_at) -> int:
        leave_id = len(self.leaves) + 1
        self.leaves[leave_id] = LeaveApplication(
            leave_id=leave_id,
            user_id=user_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=created_at,
            permission_hours=permission_hours,
        )
        return leave_id

    def get_leave(self, leave_id: int) -> Optional[LeaveApplication]:
        return self.leaves.get(int(leave_id))

    def decide_leave(self, *, leave_id, status, decided_by, decided_at, admin_note=None) -> bool:
        leave = self.leaves.get(int(leave_id))
        if not leave or leave.status != RequestStatus.PENDING:
            return False
        self.leaves[leave.leave_id] = replace(
            leave, status=status, decided_by=decided_by, decided_at=decided_at, admin_note=admin_note
        )
        return True

    def list_leaves(self, *, user_id=None, status=None, limit=200) -> Sequence[LeaveApplication]:
        out = [
            lv
            for lv in self.leaves.values()
            if (user_id is None or lv.user_id == user_id) and (status is None or lv.status == status)
        ]
        return out[:limit]

    def list_approved_covering(self, *, user_id: int, day: date) -> Sequence[LeaveApplication]:
        return [
            lv
            for lv in self.leaves.values()
            if lv.user_id == user_id and lv.status == RequestStatus.APPROVED and lv.covers(day)
        ]


class InMemoryAttendance:
    def __init__(self, users: Optional[InMemoryUsers] = None):
        self.records: dict[int, AttendanceRecord] = {}
        self._users = users

    def _with_department(self, record: AttendanceRecord) -> AttendanceRecord:
        user = self._users.get_by_id(record.user_id) if self._users else None
        return replace(record, department=user.department) if user else record

    def add(self, record: AttendanceRecord) -> AttendanceRecord:
        self.records[record.attendance_id] = record
        return record

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        record = self.records.get(int(attendance_id))
        return self._with_department(record) if record else None

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        items = [r for r in self.records.values() if r.user_id == user_id]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items[:limit]

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return next((r for r in self.records.values() if r.user_id == user_id and r.work_date == work_date), None)

    def create_checkin(
        self,
        *,
        user_id,
        work_date,
        check_in_time,
        status,
        attendance_type=AttendanceType.OFFICE,
        location=None,
        photo_url=None,
        is_late=False,
        late_minutes=0,
        is_ot_only=False,
        note=None,
    ) -> int:
        attendance_id = max(self.records, default=0) + 1
        self.records[attendance_id] = AttendanceRecord(
            attendance_id=attendance_id,
            user_id=user_id,
            work_date=work_date,
            check_in_time=check_in_time,
            check_out_time=None,
            status=status,
            attendance_type=attendance_type,
            check_in_location=location,
            check_in_photo_url=photo_url,
            is_late=is_late,
            late_minutes=late_minutes,
            is_ot_only=is_ot_only,
            note=note,
        )
        return attendance_id

    def upgrade_ot_only_checkin(
        self, *, attendance_id, check_in_time, status, attendance_type, location, photo_url, is_late, late_minutes
    ) -> bool:
        record = self.records[attendance_id]
        self.records[attendance_id] = replace(
            record,
            check_in_time=check_in_time,
            status=status,
            attendance_type=attendance_type,
            check_in_location=location,
            check_in_photo_url=photo_url,
            is_late=is_late,
            late_minutes=late_minutes,
            is_ot_only=False,
        )
        return True

    def update_checkout(self, *, attendance_id, check_out_time, status, location, photo_url, working_hours, note=None) -> bool:
        record = self.records[attendance_id]
        self.records[attendance_id] = replace(
            record,
            check_out_time=check_out_time,
            status=status,
            check_out_location=location,
            check_out_photo_url=photo_url,
            working_hours=working_hours,
            note=note,
        )
        return True

    def apply_auto_checkout(self, *, attendance_id, check_out_time, working_hours, corrected_at, reason) -> bool:
        record = self.records[attendance_id]
        if record.check_out_time is not None:
            return False
        self.records[attendance_id] = replace(
            record,
            check_out_time=check_out_time,
            working_hours=working_hours,
            auto_corrected=True,
            auto_corrected_at=corrected_at,
            auto_correction_reason=reason,
            admin_review_status=AdminReviewStatus.PENDING,
        )
        return True

    def apply_review(self, *, attendance_id, review_status, reviewed_by, reviewed_at, notes, check_out_time, working_hours) -> bool:
        record = self.records[attendance_id]
        self.records[attendance_id] = replace(
            record,
            admin_review_status=review_status,
            reviewed_by=reviewed_by,
            reviewed_at=reviewed_at,
            review_notes=notes,
            check_out_time=check_out_time,
            working_hours=working_hours,
        )
        return True

    def set_total_ot_hours(self, attendance_id: int, hours: float) -> bool:
        self.records[attendance_id] = replace(self.records[attendance_id], total_ot_hours=hours)
        return True

    def list_incomplete(self, work_date: date) -> Sequence[AttendanceRecord]:
        return [
            self._with_department(r)
            for r in self.records.values()
            if r.work_date == work_date and r.check_in_time is not None and r.check_out_time is None
        ]

    def list_pending_reviews(self) -> Sequence[AttendanceRecord]:
        return [r for r in self.records.values() if r.admin_review_status == AdminReviewStatus.PENDING]

    def get_report_rows(self, *, start_date, end_date, department=None, user_id=None) -> Sequence[AttendanceReportRow]:
        rows = []
        for r in sorted(self.records.values(), key=lambda x: x.work_date, reverse=True):
            if not start_date <= r.work_date <= end_date or (user_id is not None and r.user_id != user_id):
                continue
            user = self._users.get_by_id(r.user_id) if self._users else None
            if department is not None and (user is None or user.department != department):
                continue
            rows.append(
                AttendanceReportRow(
                    user_id=r.user_id,
                    full_name=user.full_name if user else "",
                    username=user.username if user else "",
                    department=user.department if user else None,
                    break_minutes=0,
                    work_date=r.work_date,
                    check_in_time=r.check_in_time,
                    check_out_time=r.check_out_time,
                    status=r.status,
                    total_ot_hours=r.total_ot_hours,
                    admin_review_status=r.admin_review_status,
                    note=r.note,
                )
            )
        return rows


class InMemoryOTSessions:
    def __init__(self, users: Optional[InMemoryUsers] = None):
        self.sessions: dict[str, OTSession] = {}
        self._users = users

    def _joined(self, s: OTSession) -> OTSession:
        user = self._users.get_by_id(s.user_id) if self._users else None
        if not user:
            return s
        return replace(s, employee_name=user.full_name, department=user.department)

    def add(self, session: OTSession) -> OTSession:
        self.sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> Optional[OTSession]:
        s = self.sessions.get(session_id)
        return self._joined(s) if s else None

    def create_if_no_active(self, session: OTSession) -> bool:
        if self.find_in_progress_for_user(session.user_id):
            return False
        self.sessions[session.session_id] = session
        return True

    def update(self, session: OTSession) -> bool:
        if session.session_id not in self.sessions:
            return False
        self.sessions[session.session_id] = session
        return True

    def count_for_attendance(self, attendance_id: int) -> int:
        return len(self.list_for_attendance(attendance_id))

    def list_for_attendance(self, attendance_id: int) -> Sequence[OTSession]:
        out = [self._joined(s) for s in self.sessions.values() if s.attendance_id == attendance_id]
        return sorted(out, key=lambda s: s.start_time)

    def find_in_progress_for_user(self, user_id: int) -> Optional[OTSession]:
        return next(
            (self._joined(s) for s in self.sessions.values() if s.user_id == user_id and s.status == OTSessionStatus.IN_PROGRESS),
            None,
        )

    def has_in_progress_for_attendance(self, attendance_id: int) -> bool:
        return any(
            s.attendance_id == attendance_id and s.status == OTSessionStatus.IN_PROGRESS for s in self.sessions.values()
        )

    def list_in_progress(self, *, department: Optional[Department] = None) -> Sequence[OTSession]:
        out = [self._joined(s) for s in self.sessions.values() if s.status == OTSessionStatus.IN_PROGRESS]
        return [s for s in out if department is None or s.department == department]

    def list_between(self, *, start, end, statuses=None, department=None) -> Sequence[OTSession]:
        wanted = set(statuses) if statuses is not None else None
        out = []
        for s in map(self._joined, self.sessions.values()):
            if not start <= s.start_time < end:
                continue
            if wanted is not None and s.status not in wanted:
                continue
            if department is not None and s.department != department:
                continue
            out.append(s)
        return sorted(out, key=lambda s: s.start_time)

    def lock_completed_between(self, *, start: datetime, end: datetime) -> int:
        count = 0
        for sid, s in list(self.sessions.items()):
            if start <= s.start_time < end and s.status.counts_as_approved:
                self.sessions[sid] = replace(s, status=OTSessionStatus.LOCKED)
                count += 1
        return count


class InMemoryCustomers:
    def __init__(self):
        self.customers: dict[int, Customer] = {}

    def get(self, customer_id: int) -> Optional[Customer]:
        return self.customers.get(int(customer_id))

    def find_by_mobile(self, mobile: str) -> Sequence[Customer]:
        return [c for c in self.customers.values() if c.mobile == mobile]

    def create(self, *, fields: Mapping[str, Any]) -> int:
        customer_id = max(self.customers, default=0) + 1
        known = {k: v for k, v in fields.items() if k in Customer.__dataclass_fields__}
        self.customers[customer_id] = Customer(customer_id=customer_id, **known)
        return customer_id

    def update(self, customer_id: int, *, fields: Mapping[str, Any]) -> bool:
        customer = self.customers.get(int(customer_id))
        if not customer:
            return False
        known = {k: v for k, v in fields.items() if k in Customer.__dataclass_fields__}
        self.customers[customer.customer_id] = replace(customer, **known)
        return True

    def search(self, term: str, *, limit: int = 20) -> Sequence[Customer]:
        t = term.lower()
        out = [
            c
            for c in self.customers.values()
            if t in c.name.lower() or t in c.mobile or (c.address and t in c.address.lower())
        ]
        return out[:limit]

    def list_customers(self, *, limit: int = 100, offset: int = 0) -> Sequence[Customer]:
        return list(self.customers.values())[offset : offset + limit]


class InMemorySiteVisits:
    def __init__(self, users: Optional[InMemoryUsers] = None):
        self.visits: dict[int, SiteVisit] = {}
        self._users = users
        self.fail_updates = False

    def _joined(self, v: SiteVisit) -> SiteVisit:
        user = self._users.get_by_id(v.user_id) if self._users else None
        return replace(v, employee_name=user.full_name) if user else v

    def get(self, visit_id: int) -> Optional[SiteVisit]:
        v = self.visits.get(int(visit_id))
        return self._joined(v) if v else None

    def add(self, visit: SiteVisit) -> SiteVisit:
        self.visits[visit.visit_id] = visit
        return visit

    def create(self, visit: SiteVisit) -> int:
        visit_id = max(self.visits, default=0) + 1
        self.visits[visit_id] = replace(visit, visit_id=visit_id)
        return visit_id

    def update(self, visit: SiteVisit) -> bool:
        if self.fail_updates:
            raise RuntimeError("database unavailable")
        if visit.visit_id not in self.visits:
            return False
        self.visits[visit.visit_id] = visit
        return True

    def delete(self, visit_id: int) -> bool:
        return self.visits.pop(int(visit_id), None) is not None

    def find_active_for_user(self, user_id: int) -> Optional[SiteVisit]:
        return next(
            (v for v in self.visits.values() if v.user_id == user_id and v.status == SiteVisitStatus.IN_PROGRESS),
            None,
        )

    def list_visits(
        self, *, user_id=None, department=None, status=None, visit_outcome=None, start=None, end=None, limit=500
    ) -> Sequence[SiteVisit]:
        out = []
        for v in self.visits.values():
            if user_id is not None and v.user_id != user_id:
                continue
            if department is not None and v.department != department:
                continue
            if status is not None and v.status != status:
                continue
            if visit_outcome is not None and v.visit_outcome != visit_outcome:
                continue
            if start is not None and v.site_in_time < start:
                continue
            if end is not None and v.site_in_time >= end:
                continue
            out.append(self._joined(v))
        out.sort(key=lambda v: v.site_in_time, reverse=True)
        return out[:limit]

    def list_in_progress_started_before(self, cutoff: datetime) -> Sequence[SiteVisit]:
        return [
            v for v in self.visits.values() if v.status == SiteVisitStatus.IN_PROGRESS and v.site_in_time < cutoff
        ]


class InMemoryFollowUps:
    def __init__(self):
        self.follow_ups: dict[int, FollowUpVisit] = {}
        self.deleted: list[int] = []

    def get(self, follow_up_id: int) -> Optional[FollowUpVisit]:
        return self.follow_ups.get(int(follow_up_id))

    def create(self, follow_up: FollowUpVisit) -> int:
        follow_up_id = max(self.follow_ups, default=0) + 1
        self.follow_ups[follow_up_id] = replace(follow_up, follow_up_id=follow_up_id)
        return follow_up_id

    def update(self, follow_up: FollowUpVisit) -> bool:
        self.follow_ups[follow_up.follow_up_id] = follow_up
        return True

    def delete(self, follow_up_id: int) -> bool:
        self.deleted.append(int(follow_up_id))
        return self.follow_ups.pop(int(follow_up_id), None) is not None

    def list_for_visit(self, original_visit_id: int) -> Sequence[FollowUpVisit]:
        return [f for f in self.follow_ups.values() if f.original_visit_id == original_visit_id]

    def list_follow_ups(self, *, user_id=None, department=None, status=None) -> Sequence[FollowUpVisit]:
        return [
            f
            for f in self.follow_ups.values()
            if (user_id is None or f.user_id == user_id)
            and (department is None or f.department == department)
            and (status is None or f.status == status)
        ]


class InMemoryQuotations:
    def __init__(self):
        self.quotations: dict[int, Quotation] = {}

    def get(self, quotation_id: int) -> Optional[Quotation]:
        return self.quotations.get(int(quotation_id))

    def create(self, quotation: Quotation) -> int:
        quotation_id = max(self.quotations, default=0) + 1
        self.quotations[quotation_id] = replace(quotation, quotation_id=quotation_id)
        return quotation_id

    def set_status(self, quotation_id: int, *, status, updated_at) -> bool:
        q = self.quotations[int(quotation_id)]
        self.quotations[q.quotation_id] = replace(q, status=status, updated_at=updated_at)
        return True

    def list_quotations(self, *, status=None, customer_id=None, limit=100) -> Sequence[Quotation]:
        out = [
            q
            for q in self.quotations.values()
            if (status is None or q.status == status) and (customer_id is None or q.customer_id == customer_id)
        ]
        return out[:limit]


@dataclass
class Repos:
    users: InMemoryUsers
    activity: InMemoryActivity = field(default_factory=InMemoryActivity)
    timings: InMemoryTimings = field(default_factory=InMemoryTimings)
    company: InMemoryCompany = field(default_factory=InMemoryCompany)
    leaves: InMemoryLeaves = field(default_factory=InMemoryLeaves)
    customers: InMemoryCustomers = field(default_factory=InMemoryCustomers)
    follow_ups: InMemoryFollowUps = field(default_factory=InMemoryFollowUps)
    quotations: InMemoryQuotations = field(default_factory=InMemoryQuotations)
    attendance: Optional[InMemoryAttendance] = None
    ot: Optional[InMemoryOTSessions] = None
    visits: Optional[InMemorySiteVisits] = None

    def __post_init__(self):
        self.attendance = self.attendance or InMemoryAttendance(self.users)
        self.ot = self.ot or InMemoryOTSessions(self.users)
        self.visits = self.visits or InMemorySiteVisits(self.users)


def build_fake_container(repos: Repos) -> Container:
    """Same wiring as ``build_container`` on top of in-memory repositories."""

    activity = ActivityService(repos.activity, repos.users)
    departments = DepartmentTimingService(repos.timings)
    calendar = CompanyCalendarService(repos.company, activity)
    leaves = LeaveService(repos.leaves, activity)
    ot_service = OTSessionService(repos.ot, repos.attendance, repos.users, calendar, departments, leaves, activity)
    calendar.add_lock_listener(ot_service.lock_sessions_for_period)
    customers = CustomerService(repos.customers)
    site_visits = SiteVisitService(repos.visits, customers, repos.users, activity)

    return Container(
        conn=None,
        auth_service=AuthService(repos.users),
        employee_service=EmployeeService(repos.users),
        activity_service=activity,
        department_service=departments,
        calendar_service=calendar,
        leave_service=leaves,
        attendance_service=AttendanceService(repos.attendance, repos.users, departments, leaves),
        attendance_review_service=AttendanceReviewService(repos.attendance, departments, calendar, activity),
        auto_checkout_service=AutoCheckoutService(
            repos.attendance, repos.users, departments, calendar, leaves, repos.ot, activity
        ),
        ot_service=ot_service,
        ot_report_service=OTReportService(repos.ot),
        ot_auto_close=OTAutoCloseService(repos.ot, departments, activity),
        customer_service=customers,
        site_visit_service=site_visits,
        follow_up_service=FollowUpService(repos.follow_ups, repos.visits, activity),
        site_visit_auto_close=SiteVisitAutoCloseService(repos.visits, activity),
        site_visit_exporter=SiteVisitExporter(),
        quotation_service=QuotationService(repos.quotations, customers, site_visits),
    )


def visit_payload(**overrides: Any) -> dict:
    """Start-visit request body as the mobile client sends it."""

    payload: dict[str, Any] = {
        "site_in_location": {"latitude": 11.0168, "longitude": 76.9558, "address": "Gandhipuram, Coimbatore"},
        "visit_purpose": "visit",
        "customer": {
            "name": "Lakshmi Traders",
            "mobile": "9876543210",
            "address": "12 Main Road, Coimbatore",
            "propertyType": "commercial",
            "source": "referral",
        },
        "technical_data": {"work_type": "installation", "team_members": ["Ravi", "Karthik"]},
        "marketingData": {
            "projectType": "on_grid",
            "onGridConfig": {
                "panelWatts": "540W",
                "panelCount": 6,
                "panelType": "bifacial",
                "inverterKW": 3,
                "inverterPhase": "single_phase",
                "structureType": "gp_structure",
                "gpStructure": {"lowerEndHeight": 3, "higherEndHeight": 5},
            },
        },
        "admin_data": {"purchase": "DC cables", "others": "Collect invoice"},
        "notes": "Roof survey done",
    }
    payload.update(overrides)
    return payload
