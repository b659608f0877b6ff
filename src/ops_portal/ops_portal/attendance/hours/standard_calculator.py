from __future__ import annotations

from datetime import datetime
from typing import Optional

from .base import WorkingHoursCalculator


class StandardWorkingHoursCalculator(WorkingHoursCalculator):
    """Standard rule: (out - in) - break_minutes, not below 0."""

    def worked_minutes(self, check_in: Optional[datetime], check_out: Optional[datetime], break_minutes: int = 0) -> int:
        if not check_in or not check_out:
            return 0
        minutes = int((check_out - check_in).total_seconds() // 60)
        minutes -= int(break_minutes or 0)
        return max(minutes, 0)
