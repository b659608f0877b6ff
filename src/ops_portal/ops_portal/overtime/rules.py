"""Overtime hour arithmetic and OT type classification."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.datetime_utils import hours_between
from ..company.service import CompanyCalendarService
from ..core.enums import Department, OTType
from ..departments.service import DepartmentTimingService


def calculate_ot_hours(start: Optional[datetime], end: Optional[datetime]) -> float:
    """Hours between start and end; 0 when either is missing, never negative."""

    if not isinstance(start, datetime) or not isinstance(end, datetime):
        return 0.0
    return hours_between(start, end)


class OTTypeResolver:
    """holiday > weekend > early arrival (before department start) > late departure."""

    def __init__(self, calendar: CompanyCalendarService, timings: DepartmentTimingService):
        self._calendar = calendar
        self._timings = timings

    def determine(self, department: Optional[Department], now: datetime) -> OTType:
        if self._calendar.holiday_for(now.date(), department):
            return OTType.HOLIDAY
        if self._calendar.is_weekend(now.date()):
            return OTType.WEEKEND

        timing = self._timings.get_timing(department)
        if not timing:
            return OTType.LATE_DEPARTURE
        if now < timing.start_on(now.date()):
            return OTType.EARLY_ARRIVAL
        return OTType.LATE_DEPARTURE
