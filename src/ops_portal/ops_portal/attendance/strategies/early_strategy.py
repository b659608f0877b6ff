from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...departments.model import DepartmentTiming
from .base import AttendanceStrategy, StatusDecision


class EarlyLeaveStrategy(AttendanceStrategy):
    """Early leave on checkout (only when check-in was PRESENT)."""

    def decide_checkin(
        self, *, now: datetime, today: date, timing: Optional[DepartmentTiming], grace_minutes: int
    ) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.UNKNOWN)

    def decide_checkout(
        self, *, now: datetime, today: date, timing: Optional[DepartmentTiming], current: AttendanceStatus
    ) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.EARLY_LEAVE)
