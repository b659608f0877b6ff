from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local, parse_time_string
from ..core.constants import DEFAULT_AUTO_CHECKOUT_GRACE_MINUTES, DEFAULT_LATE_GRACE_MINUTES
from ..core.enums import Department
from ..core.exceptions import ValidationError
from .model import DepartmentTiming
from .repository import DepartmentTimingRepository

logger = logging.getLogger(__name__)


class DepartmentTimingService:
    def __init__(self, timings: DepartmentTimingRepository):
        self._timings = timings

    def get_timing(self, department: Optional[Department | str]) -> Optional[DepartmentTiming]:
        """Active timing for a department, or None (unknown/missing/inactive)."""

        if not department:
            return None
        if not isinstance(department, Department):
            try:
                department = Department.normalize(department)
            except ValueError:
                return None
        timing = self._timings.get(department)
        if not timing or not timing.is_active:
            return None
        return timing

    def list_timings(self) -> Sequence[DepartmentTiming]:
        return self._timings.list_all()

    def update_timing(
        self,
        *,
        department: str,
        check_in_time: str,
        check_out_time: str,
        working_hours: float = 8.0,
        break_minutes: int = 0,
        late_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
        auto_checkout_grace_minutes: int = DEFAULT_AUTO_CHECKOUT_GRACE_MINUTES,
        is_active: bool = True,
        admin_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> DepartmentTiming:
        try:
            dept = Department.normalize(department)
        except ValueError:
            raise ValidationError(f"Unknown department: {department}")

        start = parse_time_string(check_in_time)
        end = parse_time_string(check_out_time)
        if start == end:
            raise ValidationError("Check-out time must differ from check-in time")

        if float(working_hours) <= 0 or float(working_hours) > 24:
            raise ValidationError("Working hours must be between 0 and 24")
        for label, value in (
            ("Break minutes", break_minutes),
            ("Late grace minutes", late_grace_minutes),
            ("Auto-checkout grace minutes", auto_checkout_grace_minutes),
        ):
            if int(value) < 0:
                raise ValidationError(f"{label} cannot be negative")

        timing = DepartmentTiming(
            department=dept,
            check_in_time=check_in_time.strip(),
            check_out_time=check_out_time.strip(),
            working_hours=float(working_hours),
            break_minutes=int(break_minutes),
            late_grace_minutes=int(late_grace_minutes),
            auto_checkout_grace_minutes=int(auto_checkout_grace_minutes),
            is_active=bool(is_active),
            updated_by=admin_id,
            updated_at=now or now_local(),
        )
        self._timings.upsert(timing)
        logger.info("Department timing updated: %s %s-%s", dept.value, timing.check_in_time, timing.check_out_time)
        return timing
