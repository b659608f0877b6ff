from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.constants import DEFAULT_MAX_OT_HOURS_PER_DAY, DEFAULT_OT_RATE, DEFAULT_WEEKEND_DAYS
from ..core.enums import Department, HolidayType, PayrollPeriodStatus


@dataclass(frozen=True)
class CompanySettings:
    """Company-wide OT policy (singleton row)."""

    weekend_days: tuple[int, ...] = DEFAULT_WEEKEND_DAYS  # date.weekday() numbers
    default_ot_rate: float = DEFAULT_OT_RATE
    max_ot_hours_per_day: float = DEFAULT_MAX_OT_HOURS_PER_DAY
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Holiday:
    holiday_id: int
    name: str
    holiday_date: date
    type: HolidayType = HolidayType.NATIONAL
    allow_ot: bool = False
    is_active: bool = True
    applicable_departments: Optional[tuple[Department, ...]] = None  # None = all departments
    description: Optional[str] = None
    created_by: Optional[int] = None

    def applies_to(self, department: Optional[Department]) -> bool:
        if not self.is_active:
            return False
        if self.applicable_departments is None:
            return True
        return department is not None and department in self.applicable_departments


@dataclass(frozen=True)
class PayrollPeriod:
    month: int
    year: int
    status: PayrollPeriodStatus = PayrollPeriodStatus.OPEN
    locked_at: Optional[datetime] = None
    locked_by: Optional[int] = None
    notes: list[str] = field(default_factory=list)

    @property
    def period_id(self) -> str:
        return f"payroll_{self.year}_{self.month:02d}"

    @property
    def is_locked(self) -> bool:
        return self.status == PayrollPeriodStatus.LOCKED
