from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...departments.model import DepartmentTiming
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in: minutes counted from the department start time."""

    def decide_checkin(
        self, *, now: datetime, today: date, timing: Optional[DepartmentTiming], grace_minutes: int
    ) -> StatusDecision:
        late_minutes = 0
        if timing:
            late_minutes = max(0, int((now - timing.start_on(today)).total_seconds() // 60))
        return StatusDecision(
            status=AttendanceStatus.LATE,
            note=f"Late by {late_minutes} min" if late_minutes else None,
            late_minutes=late_minutes,
        )

    def decide_checkout(
        self, *, now: datetime, today: date, timing: Optional[DepartmentTiming], current: AttendanceStatus
    ) -> StatusDecision:
        return StatusDecision(status=current)
