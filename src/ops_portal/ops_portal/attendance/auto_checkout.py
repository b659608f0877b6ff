"""Fills in forgotten checkouts.

A record that is still open once the department closing time plus the grace
period has passed gets the closing time as its checkout. The record is marked
auto-corrected and queued for admin review.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..activity.service import ActivityService
from ..common.datetime_utils import expected_checkout_at, format_time_12h, is_checkout_overdue, now_local
from ..company.service import CompanyCalendarService
from ..core.exceptions import ValidationError
from ..departments.service import DepartmentTimingService
from ..leaves.service import LeaveService
from ..overtime.repository import OTSessionRepository
from ..users.repository import UserRepository
from .hours.base import WorkingHoursCalculator
from .hours.standard_calculator import StandardWorkingHoursCalculator
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AutoCheckoutResult:
    checked: int
    corrected: int
    skipped: int
    errors: int


class AutoCheckoutService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        timings: DepartmentTimingService,
        calendar: CompanyCalendarService,
        leaves: LeaveService,
        ot_sessions: OTSessionRepository,
        activity: Optional[ActivityService] = None,
        *,
        calculator: Optional[WorkingHoursCalculator] = None,
    ):
        self._attendance = attendance
        self._users = users
        self._timings = timings
        self._calendar = calendar
        self._leaves = leaves
        self._ot_sessions = ot_sessions
        self._activity = activity
        self._calculator = calculator or StandardWorkingHoursCalculator()

    def process(self, now: Optional[datetime] = None) -> AutoCheckoutResult:
        now = now or now_local()
        today = now.date()

        checked = corrected = skipped = errors = 0
        for day in (today, today - timedelta(days=1)):
            for record in self._attendance.list_incomplete(day):
                checked += 1
                try:
                    if self._process_record(record, now):
                        corrected += 1
                    else:
                        skipped += 1
                except Exception:
                    errors += 1
                    logger.exception("Auto-checkout failed for attendance %s", record.attendance_id)

        logger.info(
            "Auto-checkout: %s checked, %s corrected, %s skipped, %s errors", checked, corrected, skipped, errors
        )
        return AutoCheckoutResult(checked=checked, corrected=corrected, skipped=skipped, errors=errors)

    def _process_record(self, record: AttendanceRecord, now: datetime) -> bool:
        if record.check_in_time is None or record.department is None:
            return False
        if self._leaves.has_full_day_leave_on(record.user_id, record.work_date):
            return False
        if self._calendar.holiday_for(record.work_date, record.department):
            return False
        if self._calendar.is_weekend(record.work_date):
            return False
        if self._ot_sessions.has_in_progress_for_attendance(record.attendance_id):
            logger.debug("Attendance %s has OT in progress; not auto-closing", record.attendance_id)
            return False

        timing = self._timings.get_timing(record.department)
        if not timing:
            return False
        grace = int(timing.auto_checkout_grace_minutes)
        if not is_checkout_overdue(record.check_in_time, timing.check_out_time, grace, now):
            return False
        try:
            expected = expected_checkout_at(record.check_in_time, timing.check_out_time)
        except ValidationError:
            logger.warning("Attendance %s is overdue but closing time %r is invalid", record.attendance_id, timing.check_out_time)
            return False

        hours = self._calculator.worked_hours(record.check_in_time, expected, timing.break_minutes)
        reason = (
            f"Forgotten checkout (system auto-corrected after {grace} minutes past {timing.check_out_time})"
        )
        if not self._attendance.apply_auto_checkout(
            attendance_id=record.attendance_id,
            check_out_time=expected,
            working_hours=hours,
            corrected_at=now,
            reason=reason,
        ):
            return False

        logger.info("Auto checkout for user %s on %s at %s", record.user_id, record.work_date, expected)
        self._notify(record, expected, now)
        return True

    def _notify(self, record: AttendanceRecord, checkout: datetime, now: datetime) -> None:
        if not self._activity:
            return
        day = record.work_date.strftime("%Y-%m-%d")
        self._activity.notify(
            user_id=record.user_id,
            type="auto_checkout",
            title="Checkout Auto-Completed",
            message=(
                f"Your attendance for {day} was automatically recorded at "
                f"{format_time_12h(checkout)} as you did not check out."
            ),
            now=now,
        )
        user = self._users.get_by_id(record.user_id)
        name = user.full_name if user else "An employee"
        self._activity.notify_admins(
            type="admin_review",
            title="Attendance Review Required",
            message=f"{name} has an auto-corrected attendance record for {day} that needs your review.",
            now=now,
        )
