from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional


class WorkingHoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for worked time)."""

    @abstractmethod
    def worked_minutes(self, check_in: Optional[datetime], check_out: Optional[datetime], break_minutes: int = 0) -> int:
        raise NotImplementedError

    def worked_hours(self, check_in: Optional[datetime], check_out: Optional[datetime], break_minutes: int = 0) -> float:
        return round(self.worked_minutes(check_in, check_out, break_minutes) / 60, 2)
