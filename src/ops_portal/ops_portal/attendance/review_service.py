from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..activity.service import ActivityService
from ..common.datetime_utils import now_local
from ..company.service import CompanyCalendarService
from ..core.enums import AdminReviewStatus, ReviewAction
from ..core.exceptions import NotFoundError, PayrollLockedError, ValidationError
from ..departments.service import DepartmentTimingService
from .hours.base import WorkingHoursCalculator
from .hours.standard_calculator import StandardWorkingHoursCalculator
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_STATUS_FOR_ACTION = {
    ReviewAction.APPROVED: AdminReviewStatus.APPROVED,
    ReviewAction.ADJUSTED: AdminReviewStatus.ADJUSTED,
    ReviewAction.REJECTED: AdminReviewStatus.REJECTED,
}


class AttendanceReviewService:
    """Admin decisions on auto-corrected attendance records."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        timings: DepartmentTimingService,
        calendar: CompanyCalendarService,
        activity: Optional[ActivityService] = None,
        *,
        calculator: Optional[WorkingHoursCalculator] = None,
    ):
        self._attendance = attendance
        self._timings = timings
        self._calendar = calendar
        self._activity = activity
        self._calculator = calculator or StandardWorkingHoursCalculator()

    def list_pending_reviews(self) -> Sequence[AttendanceRecord]:
        return self._attendance.list_pending_reviews()

    def review(
        self,
        *,
        attendance_id: int,
        action: str,
        admin_id: int,
        adjusted_checkout: Optional[datetime] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """APPROVED keeps the auto time, ADJUSTED replaces it, REJECTED zeroes the hours."""

        now = now or now_local()
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        if self._calendar.is_payroll_locked(record.work_date):
            raise PayrollLockedError("Payroll period is locked. Cannot review attendance.")

        try:
            review_action = ReviewAction(str(action or "").upper())
        except ValueError:
            raise ValidationError("Action must be APPROVED, ADJUSTED or REJECTED")

        check_out = record.check_out_time
        hours = record.working_hours
        if review_action == ReviewAction.ADJUSTED:
            if adjusted_checkout is None:
                raise ValidationError("Adjusted checkout time is required")
            if record.check_in_time is None or adjusted_checkout <= record.check_in_time:
                raise ValidationError("Adjusted checkout must be after check-in")
            timing = self._timings.get_timing(record.department)
            check_out = adjusted_checkout
            hours = self._calculator.worked_hours(record.check_in_time, check_out, timing.break_minutes if timing else 0)
        elif review_action == ReviewAction.REJECTED:
            hours = 0.0

        self._attendance.apply_review(
            attendance_id=record.attendance_id,
            review_status=_STATUS_FOR_ACTION[review_action],
            reviewed_by=int(admin_id),
            reviewed_at=now,
            notes=(notes or "").strip() or None,
            check_out_time=check_out,
            working_hours=hours,
        )
        logger.info("Attendance %s reviewed by %s: %s", record.attendance_id, admin_id, review_action.value)

        if self._activity:
            verb = review_action.value.lower()
            self._activity.notify(
                user_id=record.user_id,
                type="attendance_review",
                title=f"Attendance {verb.capitalize()}",
                message=f"Your auto-corrected attendance for {record.work_date:%Y-%m-%d} was {verb} by an admin.",
                now=now,
            )

        updated = self._attendance.get_by_id(record.attendance_id)
        if not updated:
            raise NotFoundError("Attendance record not found")
        return updated
