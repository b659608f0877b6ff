from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..activity.service import ActivityService
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.enums import LeaveType, RequestStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import LeaveApplication
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

APPROVER_ROLES = {Role.MASTER_ADMIN, Role.ADMIN, Role.HR}
MAX_PERMISSION_HOURS = 2.0


class LeaveService:
    def __init__(self, leaves: LeaveRepository, activity: Optional[ActivityService] = None):
        self._leaves = leaves
        self._activity = activity

    def apply(
        self,
        *,
        user_id: int,
        leave_type: str,
        start_date: date,
        end_date: Optional[date] = None,
        reason: str,
        permission_hours: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> int:
        try:
            ltype = LeaveType(leave_type)
        except ValueError:
            raise ValidationError("Invalid leave type")

        end_date = end_date or start_date
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date")
        reason = require_non_empty(reason, "Reason")

        hours = None
        if ltype == LeaveType.PERMISSION:
            if end_date != start_date:
                raise ValidationError("Permission must be for a single day")
            try:
                hours = float(permission_hours or 0)
            except (TypeError, ValueError):
                raise ValidationError("Permission hours must be a number")
            if hours <= 0 or hours > MAX_PERMISSION_HOURS:
                raise ValidationError(f"Permission hours must be between 0 and {MAX_PERMISSION_HOURS:g}")

        leave_id = self._leaves.create_leave(
            user_id=int(user_id),
            leave_type=ltype,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            permission_hours=hours,
            created_at=now or now_local(),
        )
        logger.info("Leave %s applied by user %s (%s %s..%s)", leave_id, user_id, ltype.value, start_date, end_date)
        if self._activity:
            self._activity.notify_admins(
                type="leave",
                title="New Leave Application",
                message=f"Leave request ({ltype.value}) from {start_date} to {end_date}",
            )
        return leave_id

    def approve(self, *, current_role: Role, admin_user_id: int, leave_id: int, admin_note: str = "") -> None:
        self._decide(current_role, admin_user_id, leave_id, RequestStatus.APPROVED, admin_note)

    def reject(self, *, current_role: Role, admin_user_id: int, leave_id: int, admin_note: str = "") -> None:
        self._decide(current_role, admin_user_id, leave_id, RequestStatus.REJECTED, admin_note)

    def _decide(self, role: Role, admin_user_id: int, leave_id: int, status: RequestStatus, admin_note: str) -> None:
        if role not in APPROVER_ROLES:
            raise AuthorizationError("You do not have permission for this action")

        leave = self._leaves.get_leave(int(leave_id))
        if not leave:
            raise NotFoundError("Leave application not found")
        if leave.status != RequestStatus.PENDING:
            raise ValidationError("Leave application has already been processed")

        ok = self._leaves.decide_leave(
            leave_id=leave.leave_id,
            status=status,
            decided_by=int(admin_user_id),
            decided_at=now_local(),
            admin_note=(admin_note or "").strip() or None,
        )
        if not ok:
            raise ValidationError("Updating leave application failed")

        if self._activity:
            verb = "approved" if status == RequestStatus.APPROVED else "rejected"
            self._activity.notify(
                user_id=leave.user_id,
                type="leave",
                title=f"Leave {verb.capitalize()}",
                message=f"Your leave from {leave.start_date} to {leave.end_date} was {verb}.",
            )

    def has_full_day_leave_on(self, user_id: int, day: date) -> bool:
        """Approved casual/unpaid leave covering ``day`` (permission never blocks)."""

        return any(
            leave.leave_type.is_full_day and leave.covers(day)
            for leave in self._leaves.list_approved_covering(user_id=int(user_id), day=day)
        )

    def list_for_user(self, user_id: int) -> Sequence[LeaveApplication]:
        return self._leaves.list_leaves(user_id=int(user_id))

    def list_pending(self) -> Sequence[LeaveApplication]:
        return self._leaves.list_leaves(status=RequestStatus.PENDING)
