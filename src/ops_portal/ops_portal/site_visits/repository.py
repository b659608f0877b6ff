from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Department, SiteVisitStatus, VisitOutcome
from .model import FollowUpVisit, SiteVisit


class SiteVisitRepository(Protocol):
    def get(self, visit_id: int) -> Optional[SiteVisit]:
        raise NotImplementedError

    def create(self, visit: SiteVisit) -> int:
        raise NotImplementedError

    def update(self, visit: SiteVisit) -> bool:
        raise NotImplementedError

    def delete(self, visit_id: int) -> bool:
        raise NotImplementedError

    def find_active_for_user(self, user_id: int) -> Optional[SiteVisit]:
        raise NotImplementedError

    def list_visits(
        self,
        *,
        user_id: Optional[int] = None,
        department: Optional[Department] = None,
        status: Optional[SiteVisitStatus] = None,
        visit_outcome: Optional[VisitOutcome] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 500,
    ) -> Sequence[SiteVisit]:
        """Newest site-in time first."""

        raise NotImplementedError

    def list_in_progress_started_before(self, cutoff: datetime) -> Sequence[SiteVisit]:
        raise NotImplementedError


class FollowUpRepository(Protocol):
    def get(self, follow_up_id: int) -> Optional[FollowUpVisit]:
        raise NotImplementedError

    def create(self, follow_up: FollowUpVisit) -> int:
        raise NotImplementedError

    def update(self, follow_up: FollowUpVisit) -> bool:
        raise NotImplementedError

    def delete(self, follow_up_id: int) -> bool:
        raise NotImplementedError

    def list_for_visit(self, original_visit_id: int) -> Sequence[FollowUpVisit]:
        raise NotImplementedError

    def list_follow_ups(
        self,
        *,
        user_id: Optional[int] = None,
        department: Optional[Department] = None,
        status: Optional[SiteVisitStatus] = None,
    ) -> Sequence[FollowUpVisit]:
        raise NotImplementedError
