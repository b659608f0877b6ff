from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..common.datetime_utils import parse_time_string
from ..core.enums import Department


@dataclass(frozen=True)
class DepartmentTiming:
    """Office hours of a department.

    Times are kept as entered by admins ("9:00 AM", "18:30") and parsed on use.
    """

    department: Department
    check_in_time: str
    check_out_time: str
    working_hours: float = 8.0
    break_minutes: int = 0
    late_grace_minutes: int = 5
    auto_checkout_grace_minutes: int = 5
    is_active: bool = True
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None

    @property
    def start(self) -> time:
        return parse_time_string(self.check_in_time)

    @property
    def end(self) -> time:
        return parse_time_string(self.check_out_time)

    def start_on(self, day: date) -> datetime:
        return datetime.combine(day, self.start)

    def end_on(self, day: date) -> datetime:
        """Closing time for a shift starting on ``day`` (next day when it crosses midnight)."""

        end = datetime.combine(day, self.end)
        if self.end <= self.start:
            end += timedelta(days=1)
        return end
