from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .activity.mysql_activity_repository import MySQLActivityRepository
from .activity.service import ActivityService
from .attendance.auto_checkout import AutoCheckoutService
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.review_service import AttendanceReviewService
from .attendance.service import AttendanceService
from .company.mysql_company_repository import MySQLCompanyRepository
from .company.service import CompanyCalendarService
from .core.constants import (
    DEFAULT_GST_PERCENT,
    DEFAULT_LATE_GRACE_MINUTES,
    OT_AUTO_CLOSE_HOURS,
    SITE_VISIT_AUTO_CLOSE_HOURS,
)
from .customers.mysql_customer_repository import MySQLCustomerRepository
from .customers.service import CustomerService
from .database.connection import DBConfig, DatabaseConnection
from .departments.mysql_department_repository import MySQLDepartmentTimingRepository
from .departments.service import DepartmentTimingService
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.service import LeaveService
from .overtime.auto_close import OTAutoCloseService
from .overtime.mysql_ot_repository import MySQLOTSessionRepository
from .overtime.report import OTReportService
from .overtime.service import OTSessionService
from .quotations.mysql_quotation_repository import MySQLQuotationRepository
from .quotations.service import QuotationService
from .site_visits.auto_close import SiteVisitAutoCloseService
from .site_visits.exporter import SiteVisitExporter
from .site_visits.follow_up_service import FollowUpService
from .site_visits.mysql_site_visit_repository import MySQLFollowUpRepository, MySQLSiteVisitRepository
from .site_visits.service import SiteVisitService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, EmployeeService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    auth_service: AuthService
    employee_service: EmployeeService
    activity_service: ActivityService
    department_service: DepartmentTimingService
    calendar_service: CompanyCalendarService
    leave_service: LeaveService

    attendance_service: AttendanceService
    attendance_review_service: AttendanceReviewService
    auto_checkout_service: AutoCheckoutService

    ot_service: OTSessionService
    ot_report_service: OTReportService
    ot_auto_close: OTAutoCloseService

    customer_service: CustomerService
    site_visit_service: SiteVisitService
    follow_up_service: FollowUpService
    site_visit_auto_close: SiteVisitAutoCloseService
    site_visit_exporter: SiteVisitExporter
    quotation_service: QuotationService


def build_container(*, db_config: dict, settings: Optional[Any] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    def setting(name: str, default):
        return getattr(settings, name, default) if settings is not None else default

    users_repo = MySQLUserRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    ot_repo = MySQLOTSessionRepository(conn)
    visits_repo = MySQLSiteVisitRepository(conn)

    activity_service = ActivityService(MySQLActivityRepository(conn), users_repo)
    department_service = DepartmentTimingService(MySQLDepartmentTimingRepository(conn))
    calendar_service = CompanyCalendarService(MySQLCompanyRepository(conn), activity_service)
    leave_service = LeaveService(MySQLLeaveRepository(conn), activity_service)

    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        department_service,
        leave_service,
        strategy_factory=AttendanceStrategyFactory(),
        default_grace_minutes=int(setting("LATE_GRACE_MINUTES", DEFAULT_LATE_GRACE_MINUTES)),
    )
    attendance_review_service = AttendanceReviewService(
        attendance_repo, department_service, calendar_service, activity_service
    )
    auto_checkout_service = AutoCheckoutService(
        attendance_repo,
        users_repo,
        department_service,
        calendar_service,
        leave_service,
        ot_repo,
        activity_service,
    )

    ot_service = OTSessionService(
        ot_repo,
        attendance_repo,
        users_repo,
        calendar_service,
        department_service,
        leave_service,
        activity_service,
    )
    calendar_service.add_lock_listener(ot_service.lock_sessions_for_period)
    ot_auto_close = OTAutoCloseService(
        ot_repo,
        department_service,
        activity_service,
        threshold_hours=float(setting("OT_AUTO_CLOSE_HOURS", OT_AUTO_CLOSE_HOURS)),
    )

    customer_service = CustomerService(MySQLCustomerRepository(conn))
    site_visit_service = SiteVisitService(visits_repo, customer_service, users_repo, activity_service)
    follow_up_service = FollowUpService(MySQLFollowUpRepository(conn), visits_repo, activity_service)
    site_visit_auto_close = SiteVisitAutoCloseService(
        visits_repo,
        activity_service,
        threshold_hours=float(setting("SITE_VISIT_AUTO_CLOSE_HOURS", SITE_VISIT_AUTO_CLOSE_HOURS)),
    )
    quotation_service = QuotationService(
        MySQLQuotationRepository(conn),
        customer_service,
        site_visit_service,
        default_gst_percent=float(setting("GST_PERCENT", DEFAULT_GST_PERCENT)),
    )

    return Container(
        conn=conn,
        auth_service=AuthService(users_repo),
        employee_service=EmployeeService(users_repo),
        activity_service=activity_service,
        department_service=department_service,
        calendar_service=calendar_service,
        leave_service=leave_service,
        attendance_service=attendance_service,
        attendance_review_service=attendance_review_service,
        auto_checkout_service=auto_checkout_service,
        ot_service=ot_service,
        ot_report_service=OTReportService(ot_repo),
        ot_auto_close=ot_auto_close,
        customer_service=customer_service,
        site_visit_service=site_visit_service,
        follow_up_service=follow_up_service,
        site_visit_auto_close=site_visit_auto_close,
        site_visit_exporter=SiteVisitExporter(),
        quotation_service=quotation_service,
    )
