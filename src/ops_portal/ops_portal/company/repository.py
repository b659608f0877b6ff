from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import CompanySettings, Holiday, PayrollPeriod


class CompanyRepository(Protocol):
    def get_settings(self) -> Optional[CompanySettings]:
        raise NotImplementedError

    def save_settings(self, settings: CompanySettings) -> None:
        raise NotImplementedError

    def list_holidays(self, *, year: Optional[int] = None) -> Sequence[Holiday]:
        raise NotImplementedError

    def holidays_on(self, day: date) -> Sequence[Holiday]:
        raise NotImplementedError

    def get_holiday(self, holiday_id: int) -> Optional[Holiday]:
        raise NotImplementedError

    def create_holiday(self, holiday: Holiday) -> int:
        """``holiday.holiday_id`` is ignored."""

        raise NotImplementedError

    def update_holiday(self, holiday: Holiday) -> bool:
        raise NotImplementedError

    def delete_holiday(self, holiday_id: int) -> bool:
        raise NotImplementedError

    def get_payroll_period(self, *, month: int, year: int) -> Optional[PayrollPeriod]:
        raise NotImplementedError

    def save_payroll_period(self, period: PayrollPeriod) -> None:
        raise NotImplementedError
