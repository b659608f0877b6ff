from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.location import Location
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_LATE_GRACE_MINUTES
from ..core.enums import AttendanceType, Department
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..departments.service import DepartmentTimingService
from ..leaves.service import LeaveService
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .hours.base import WorkingHoursCalculator
from .hours.standard_calculator import StandardWorkingHoursCalculator
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


def _hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        timings: DepartmentTimingService,
        leaves: LeaveService,
        *,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
        calculator: Optional[WorkingHoursCalculator] = None,
        default_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    ):
        self._attendance = attendance
        self._users = users
        self._timings = timings
        self._leaves = leaves
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._calculator = calculator or StandardWorkingHoursCalculator()
        self._default_grace = int(default_grace_minutes)

    def check_in(
        self,
        user_id: int,
        *,
        location: Optional[dict],
        photo_url: Optional[str] = None,
        attendance_type: str = AttendanceType.OFFICE.value,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("Employee not found")

        try:
            a_type = AttendanceType(attendance_type or AttendanceType.OFFICE.value)
        except ValueError:
            raise ValidationError("Invalid attendance type")
        loc = Location.from_dict(location)

        if self._leaves.has_full_day_leave_on(user_id, today):
            raise ValidationError("You are on approved leave today")

        timing = self._timings.get_timing(user.department)
        grace = timing.late_grace_minutes if timing else self._default_grace
        strategy = self._factory.for_checkin(now=now, today=today, timing=timing, grace_minutes=grace)
        decision = strategy.decide_checkin(now=now, today=today, timing=timing, grace_minutes=grace)

        existing = self._attendance.get_for_user_and_date(user_id, today)
        if existing:
            if not (existing.is_ot_only and existing.check_in_time is None):
                raise ConflictError("You have already checked in today")
            self._attendance.upgrade_ot_only_checkin(
                attendance_id=existing.attendance_id,
                check_in_time=now,
                status=decision.status,
                attendance_type=a_type,
                location=loc,
                photo_url=photo_url,
                is_late=decision.is_late,
                late_minutes=decision.late_minutes,
            )
            attendance_id = existing.attendance_id
        else:
            attendance_id = self._attendance.create_checkin(
                user_id=user_id,
                work_date=today,
                check_in_time=now,
                status=decision.status,
                attendance_type=a_type,
                location=loc,
                photo_url=photo_url,
                is_late=decision.is_late,
                late_minutes=decision.late_minutes,
                note=decision.note,
            )

        logger.info("User %s checked in (%s, %s)", user_id, decision.status.value, a_type.value)
        return self._require(attendance_id)

    def check_out(
        self,
        user_id: int,
        *,
        location: Optional[dict],
        photo_url: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()

        record = self._attendance.get_for_user_and_date(user_id, today)
        if not record or record.check_in_time is None:
            raise ValidationError("You have not checked in today")
        if record.check_out_time is not None:
            raise ConflictError("You have already checked out today")

        loc = Location.from_dict(location)
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("Employee not found")

        timing = self._timings.get_timing(user.department)
        strategy = self._factory.for_checkout(now=now, work_date=record.work_date, timing=timing, current_status=record.status)
        decision = strategy.decide_checkout(now=now, today=today, timing=timing, current=record.status)

        hours = self._calculator.worked_hours(record.check_in_time, now, timing.break_minutes if timing else 0)
        self._attendance.update_checkout(
            attendance_id=record.attendance_id,
            check_out_time=now,
            status=decision.status,
            location=loc,
            photo_url=photo_url,
            working_hours=hours,
            note=decision.note or record.note,
        )
        logger.info("User %s checked out (%.2fh)", user_id, hours)
        return self._require(record.attendance_id)

    def get_today(self, user_id: int, *, today: Optional[date] = None) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_user_and_date(user_id, today or now_local().date())

    def get_history(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        return self._attendance.get_recent_for_user(user_id, limit)

    def get_record(self, attendance_id: int) -> AttendanceRecord:
        return self._require(attendance_id)

    def get_report(
        self,
        *,
        start: date,
        end: date,
        user_id: Optional[int] = None,
        department: Optional[Department] = None,
    ) -> ReportData:
        if end < start:
            raise ValidationError("End date must be on or after start date")

        query_rows = self._attendance.get_report_rows(
            start_date=start, end_date=end, user_id=user_id, department=department
        )

        summary_map: dict[int, dict] = {}
        out_rows: list[dict] = []

        for r in query_rows:
            minutes = self._calculator.worked_minutes(r.check_in_time, r.check_out_time, r.break_minutes)

            out_rows.append(
                {
                    "user_id": r.user_id,
                    "full_name": r.full_name,
                    "username": r.username,
                    "department": r.department.value if r.department else "-",
                    "work_date": r.work_date.strftime("%Y-%m-%d"),
                    "check_in": r.check_in_time.strftime("%H:%M") if r.check_in_time else "-",
                    "check_out": r.check_out_time.strftime("%H:%M") if r.check_out_time else "-",
                    "worked_hours": _hhmm(minutes),
                    "ot_hours": round(r.total_ot_hours, 2),
                    "status": r.status.value,
                    "review": r.admin_review_status.value if r.admin_review_status else None,
                    "note": r.note or "",
                }
            )

            s = summary_map.get(r.user_id)
            if not s:
                s = {
                    "user_id": r.user_id,
                    "full_name": r.full_name,
                    "username": r.username,
                    "days": 0,
                    "total_minutes": 0,
                    "ot_hours": 0.0,
                }
                summary_map[r.user_id] = s
            s["days"] += 1 if r.check_in_time else 0
            s["total_minutes"] += minutes
            s["ot_hours"] += r.total_ot_hours

        summary = [
            {
                "user_id": s["user_id"],
                "full_name": s["full_name"],
                "username": s["username"],
                "days_present": s["days"],
                "total_minutes": s["total_minutes"],
                "total_hours": _hhmm(int(s["total_minutes"])),
                "total_ot_hours": round(s["ot_hours"], 2),
            }
            for s in summary_map.values()
        ]
        summary.sort(key=lambda x: x["total_minutes"], reverse=True)
        return ReportData(rows=out_rows, summary=summary)

    def _require(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        return record
