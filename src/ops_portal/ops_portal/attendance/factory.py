from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..core.enums import AttendanceStatus
from ..departments.model import DepartmentTiming
from .strategies.base import AttendanceStrategy
from .strategies.early_strategy import EarlyLeaveStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on department timing."""

    def for_checkin(
        self, *, now: datetime, today: date, timing: Optional[DepartmentTiming], grace_minutes: int
    ) -> AttendanceStrategy:
        if not timing:
            return NormalStrategy()

        if now <= timing.start_on(today) + timedelta(minutes=grace_minutes):
            return NormalStrategy()
        return LateStrategy()

    def for_checkout(
        self,
        *,
        now: datetime,
        work_date: date,
        timing: Optional[DepartmentTiming],
        current_status: AttendanceStatus,
    ) -> AttendanceStrategy:
        if not timing:
            return NormalStrategy()

        if now < timing.end_on(work_date) and current_status == AttendanceStatus.PRESENT:
            return EarlyLeaveStrategy()
        return NormalStrategy()
