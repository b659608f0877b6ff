from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import Department, OTSessionStatus
from .model import OTSession


class OTSessionRepository(Protocol):
    def get(self, session_id: str) -> Optional[OTSession]:
        raise NotImplementedError

    def create_if_no_active(self, session: OTSession) -> bool:
        """Insert unless the user already has an in-progress session (atomic)."""

        raise NotImplementedError

    def update(self, session: OTSession) -> bool:
        raise NotImplementedError

    def count_for_attendance(self, attendance_id: int) -> int:
        raise NotImplementedError

    def list_for_attendance(self, attendance_id: int) -> Sequence[OTSession]:
        raise NotImplementedError

    def find_in_progress_for_user(self, user_id: int) -> Optional[OTSession]:
        raise NotImplementedError

    def has_in_progress_for_attendance(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def list_in_progress(
        self,
        *,
        department: Optional[Department] = None,
    ) -> Sequence[OTSession]:
        raise NotImplementedError

    def list_between(
        self,
        *,
        start: datetime,
        end: datetime,
        statuses: Optional[Iterable[OTSessionStatus]] = None,
        department: Optional[Department] = None,
    ) -> Sequence[OTSession]:
        """Sessions whose start_time is in [start, end)."""

        raise NotImplementedError

    def lock_completed_between(self, *, start: datetime, end: datetime) -> int:
        raise NotImplementedError
