from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...departments.model import DepartmentTiming


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None
    late_minutes: int = 0

    @property
    def is_late(self) -> bool:
        return self.status == AttendanceStatus.LATE


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an attendance status."""

    @abstractmethod
    def decide_checkin(
        self, *, now: datetime, today: date, timing: Optional[DepartmentTiming], grace_minutes: int
    ) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(
        self, *, now: datetime, today: date, timing: Optional[DepartmentTiming], current: AttendanceStatus
    ) -> StatusDecision:
        raise NotImplementedError
