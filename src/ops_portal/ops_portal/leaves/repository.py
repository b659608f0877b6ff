from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveType, RequestStatus
from .model import LeaveApplication


class LeaveRepository(Protocol):
    def create_leave(
        self,
        *,
        user_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
        permission_hours: Optional[float],
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get_leave(self, leave_id: int) -> Optional[LeaveApplication]:
        raise NotImplementedError

    def decide_leave(
        self,
        *,
        leave_id: int,
        status: RequestStatus,
        decided_by: int,
        decided_at: datetime,
        admin_note: Optional[str] = None,
    ) -> bool:
        """Only PENDING applications can be decided; returns False otherwise."""

        raise NotImplementedError

    def list_leaves(
        self,
        *,
        user_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[LeaveApplication]:
        raise NotImplementedError

    def list_approved_covering(self, *, user_id: int, day: date) -> Sequence[LeaveApplication]:
        raise NotImplementedError
