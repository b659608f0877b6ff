from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from ..activity.service import ActivityService
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_bounds, now_local
from ..common.location import Location
from ..company.service import CompanyCalendarService
from ..core.constants import DEFAULT_REPORT_DAYS
from ..core.enums import AttendanceStatus, Department, OTSessionStatus, OTType, ReviewAction
from ..core.exceptions import ConflictError, NotFoundError, PayrollLockedError, ValidationError
from ..departments.service import DepartmentTimingService
from ..leaves.service import LeaveService
from ..users.repository import UserRepository
from .model import ActiveSessionView, EndSessionResult, OTSession, OTStatus
from .repository import OTSessionRepository
from .rules import OTTypeResolver, calculate_ot_hours

logger = logging.getLogger(__name__)

ACTIVE_SESSION_MESSAGE = "You already have an active OT session. Please end it first."


def approved_total(sessions: Sequence[OTSession], *, exclude: Optional[str] = None) -> float:
    """Sum of hours that count towards the day's OT (APPROVED or legacy completed)."""

    return round(
        sum(s.ot_hours for s in sessions if s.status.counts_as_approved and s.session_id != exclude),
        2,
    )


class OTSessionService:
    def __init__(
        self,
        sessions: OTSessionRepository,
        attendance: AttendanceRepository,
        users: UserRepository,
        calendar: CompanyCalendarService,
        timings: DepartmentTimingService,
        leaves: LeaveService,
        activity: Optional[ActivityService] = None,
        *,
        type_resolver: Optional[OTTypeResolver] = None,
    ):
        self._sessions = sessions
        self._attendance = attendance
        self._users = users
        self._calendar = calendar
        self._leaves = leaves
        self._activity = activity
        self._resolver = type_resolver or OTTypeResolver(calendar, timings)

    # Employee actions -----------------------------------------------------

    def start_session(
        self,
        user_id: int,
        *,
        location: Optional[dict] = None,
        photo_url: Optional[str] = None,
        reason: str = "",
        now: Optional[datetime] = None,
    ) -> OTSession:
        now = now or now_local()
        today = now.date()

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("Employee not found")

        if self._leaves.has_full_day_leave_on(user_id, today):
            raise ValidationError("Cannot start OT while on approved leave")
        if self._calendar.is_payroll_locked(today):
            raise PayrollLockedError("Payroll period is locked. Cannot start OT.")

        holiday = self._calendar.holiday_for(today, user.department)
        if holiday and not holiday.allow_ot:
            raise ValidationError(f"OT submissions are not allowed on {holiday.name}. This is a strict holiday.")

        if self._sessions.find_in_progress_for_user(user_id):
            raise ConflictError(ACTIVE_SESSION_MESSAGE)

        loc = Location.from_dict(location, required=False)
        ot_type = self._resolver.determine(user.department, now)

        record = self._attendance.get_for_user_and_date(user_id, today)
        if not record:
            if ot_type == OTType.LATE_DEPARTURE:
                raise ValidationError(
                    "No attendance record found for today. Please check in first before starting late departure OT."
                )
            attendance_id = self._attendance.create_checkin(
                user_id=user_id,
                work_date=today,
                check_in_time=None,
                status=AttendanceStatus.ABSENT,
                is_ot_only=True,
                note=f"OT-only attendance ({ot_type.value})",
            )
        else:
            attendance_id = record.attendance_id

        session = OTSession(
            session_id=f"ot_{user_id}_{int(now.timestamp() * 1000)}",
            session_number=self._sessions.count_for_attendance(attendance_id) + 1,
            attendance_id=attendance_id,
            user_id=int(user_id),
            ot_type=ot_type,
            start_time=now,
            start_location=loc,
            start_photo_url=photo_url,
            reason=(reason or "").strip(),
            created_at=now,
            updated_at=now,
        )
        if not self._sessions.create_if_no_active(session):
            raise ConflictError(ACTIVE_SESSION_MESSAGE)

        logger.info("OT session %s started for user %s (%s)", session.session_id, user_id, ot_type.value)
        if self._activity:
            self._activity.log(
                type="ot",
                title=f"OT Session Started ({ot_type.value})",
                description=f"{user.full_name} started OT session #{session.session_number}",
                entity_id=session.session_id,
                entity_type="ot_session",
                user_id=int(user_id),
                now=now,
            )
        return session

    def end_session(
        self,
        user_id: int,
        *,
        location: Optional[dict] = None,
        photo_url: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EndSessionResult:
        now = now or now_local()

        active = self._sessions.find_in_progress_for_user(user_id)
        if not active:
            raise NotFoundError("No active OT session found")
        if self._calendar.is_payroll_locked(active.start_time.date()):
            raise PayrollLockedError("Payroll period is locked. Cannot end OT.")

        loc = Location.from_dict(location, required=False)
        hours = round(calculate_ot_hours(active.start_time, now), 2)
        max_hours = self._calendar.get_settings().max_ot_hours_per_day

        already = approved_total(self._sessions.list_for_attendance(active.attendance_id), exclude=active.session_id)
        total = round(already + hours, 2)
        exceeds = total > max_hours

        ended = replace(
            active,
            end_time=now,
            ot_hours=hours,
            end_location=loc,
            end_photo_url=photo_url,
            status=OTSessionStatus.PENDING_REVIEW if exceeds else OTSessionStatus.APPROVED,
            updated_at=now,
        )
        self._sessions.update(ended)
        total_today = self._refresh_attendance_total(active.attendance_id)

        if exceeds:
            message = (
                f"Daily OT limit exceeded ({max_hours:g}h). Session saved but requires admin approval. "
                f"Total: {total:g}h."
            )
            if self._activity:
                self._activity.notify(
                    user_id=int(user_id),
                    type="ot_review",
                    title="OT Requires Review",
                    message=message,
                    now=now,
                )
        else:
            message = f"OT session completed and approved. {hours:g} hours recorded."

        logger.info("OT session %s ended (%.2fh, %s)", ended.session_id, hours, ended.status.value)
        if self._activity:
            self._activity.log(
                type="ot",
                title="OT Session Ended",
                description=f"OT session #{ended.session_number}: {hours:g}h ({ended.status.value})",
                entity_id=ended.session_id,
                entity_type="ot_session",
                user_id=int(user_id),
                now=now,
            )
        return EndSessionResult(session=ended, total_ot_today=total_today, exceeds_daily_limit=exceeds, message=message)

    def get_active_session(self, user_id: int, *, now: Optional[datetime] = None) -> Optional[ActiveSessionView]:
        active = self._sessions.find_in_progress_for_user(user_id)
        if not active:
            return None
        return ActiveSessionView(session=active, current_hours=round(calculate_ot_hours(active.start_time, now or now_local()), 2))

    def sessions_for_date(self, user_id: int, day: date) -> Sequence[OTSession]:
        record = self._attendance.get_for_user_and_date(user_id, day)
        if not record:
            return []
        return self._sessions.list_for_attendance(record.attendance_id)

    def get_status(self, user_id: int, *, now: Optional[datetime] = None) -> OTStatus:
        now = now or now_local()
        active = self._sessions.find_in_progress_for_user(user_id)
        if active:
            return OTStatus(
                ot_status="in_progress",
                has_active_ot=True,
                can_start_ot=False,
                can_end_ot=True,
                active_session=active,
                ot_type=active.ot_type,
                current_ot_hours=round(calculate_ot_hours(active.start_time, now), 2),
            )

        todays = self.sessions_for_date(user_id, now.date())
        if todays:
            return OTStatus(
                ot_status="completed",
                has_active_ot=False,
                can_start_ot=True,
                can_end_ot=False,
                ot_type=todays[-1].ot_type,
                current_ot_hours=approved_total(todays),
            )
        return OTStatus(ot_status="not_started", has_active_ot=False, can_start_ot=True, can_end_ot=False)

    # Admin actions --------------------------------------------------------

    def review_session(
        self,
        *,
        session_id: str,
        action: str,
        admin_id: int,
        adjusted_hours: Optional[float] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> OTSession:
        now = now or now_local()
        session = self._sessions.get(session_id)
        if not session:
            raise NotFoundError("OT session not found")
        if session.status in {OTSessionStatus.IN_PROGRESS, OTSessionStatus.LOCKED}:
            raise ValidationError(f"Cannot review an OT session with status {session.status.value}")
        if self._calendar.is_payroll_locked(session.start_time.date()):
            raise PayrollLockedError("Payroll period is locked. Cannot review OT.")

        try:
            review_action = ReviewAction(str(action or "").upper())
        except ValueError:
            raise ValidationError("Action must be APPROVED, ADJUSTED or REJECTED")

        notes = (notes or "").strip()
        changes: dict = {}
        if review_action == ReviewAction.APPROVED:
            changes["status"] = OTSessionStatus.APPROVED
            notes = notes or "Approved by admin"
        elif review_action == ReviewAction.ADJUSTED:
            if adjusted_hours is None:
                raise ValidationError("Adjusted hours are required")
            try:
                adjusted = round(float(adjusted_hours), 2)
            except (TypeError, ValueError):
                raise ValidationError("Adjusted hours must be a number")
            if adjusted < 0:
                raise ValidationError("Adjusted hours cannot be negative")
            changes.update(
                status=OTSessionStatus.APPROVED,
                original_ot_hours=session.ot_hours,
                adjusted_ot_hours=adjusted,
                ot_hours=adjusted,
            )
            notes = notes or f"Hours adjusted from {session.ot_hours:g}h to {adjusted:g}h"
        else:
            changes["status"] = OTSessionStatus.REJECTED
            notes = notes or "Rejected by admin"

        reviewed = replace(
            session,
            reviewed_by=int(admin_id),
            reviewed_at=now,
            review_action=review_action,
            review_notes=notes,
            updated_at=now,
            **changes,
        )
        self._sessions.update(reviewed)
        self._refresh_attendance_total(session.attendance_id)

        logger.info("OT session %s reviewed by %s: %s", session_id, admin_id, review_action.value)
        if self._activity:
            verb = review_action.value.lower()
            self._activity.notify(
                user_id=session.user_id,
                type="ot_review",
                title=f"OT Session {verb.capitalize()}",
                message=f"Your OT session on {session.start_time:%Y-%m-%d} was {verb}. {notes}",
                now=now,
            )
            self._activity.log(
                type="ot",
                title=f"OT Session {verb.capitalize()}",
                description=f"OT session {session_id} {verb} ({reviewed.ot_hours:g}h)",
                entity_id=session_id,
                entity_type="ot_session",
                user_id=int(admin_id),
                now=now,
            )
        return reviewed

    def list_pending(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        department: Optional[Department] = None,
        now: Optional[datetime] = None,
    ) -> Sequence[OTSession]:
        """Sessions awaiting review, newest first."""

        today = (now or now_local()).date()
        end = end or today
        start = start or end - timedelta(days=DEFAULT_REPORT_DAYS)
        if end < start:
            raise ValidationError("End date must be on or after start date")

        pending = self._sessions.list_between(
            start=datetime.combine(start, time.min),
            end=datetime.combine(end + timedelta(days=1), time.min),
            statuses=[OTSessionStatus.PENDING_REVIEW],
            department=department,
        )
        return sorted(pending, key=lambda s: s.start_time, reverse=True)

    def list_active(
        self,
        *,
        department: Optional[Department] = None,
        now: Optional[datetime] = None,
    ) -> Sequence[ActiveSessionView]:
        now = now or now_local()
        return [
            ActiveSessionView(session=s, current_hours=round(calculate_ot_hours(s.start_time, now), 2))
            for s in self._sessions.list_in_progress(department=department)
        ]

    def lock_sessions_for_period(self, month: int, year: int) -> int:
        first, last = month_bounds(month, year)
        locked = self._sessions.lock_completed_between(
            start=datetime.combine(first, time.min),
            end=datetime.combine(last + timedelta(days=1), time.min),
        )
        logger.info("Locked %s OT sessions for %02d/%s", locked, int(month), year)
        return locked

    def _refresh_attendance_total(self, attendance_id: int) -> float:
        total = approved_total(self._sessions.list_for_attendance(attendance_id))
        self._attendance.set_total_ot_hours(attendance_id, total)
        return total
