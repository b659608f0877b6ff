"""Closes site visits nobody checked out of.

Visits still in progress after ``SITE_VISIT_AUTO_CLOSE_HOURS`` become
``auto_closed``. No site-out time is invented; the reason records how long
the visit stayed open.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from ..activity.service import ActivityService
from ..common.datetime_utils import now_local
from ..core.constants import SITE_VISIT_AUTO_CLOSE_HOURS
from ..core.enums import SiteVisitStatus
from .model import SiteVisit
from .repository import SiteVisitRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SiteVisitAutoCloseResult:
    checked: int
    closed: int
    errors: int


def _display_date(value: datetime) -> str:
    return f"{value.day} {value.strftime('%b %Y')}"


class SiteVisitAutoCloseService:
    def __init__(
        self,
        visits: SiteVisitRepository,
        activity: Optional[ActivityService] = None,
        *,
        threshold_hours: float = SITE_VISIT_AUTO_CLOSE_HOURS,
    ):
        self._visits = visits
        self._activity = activity
        self._threshold_hours = float(threshold_hours)

    def process(self, now: Optional[datetime] = None) -> SiteVisitAutoCloseResult:
        now = now or now_local()
        cutoff = now - timedelta(hours=self._threshold_hours)
        stale = [v for v in self._visits.list_in_progress_started_before(cutoff) if v.is_active]

        closed = errors = 0
        for visit in stale:
            try:
                self._close(visit, now)
                closed += 1
            except Exception:
                errors += 1
                logger.exception("Failed to auto-close site visit %s", visit.visit_id)

        logger.info("Site visit auto-close: %s stale, %s closed, %s errors", len(stale), closed, errors)
        return SiteVisitAutoCloseResult(checked=len(stale), closed=closed, errors=errors)

    def _close(self, visit: SiteVisit, now: datetime) -> None:
        hours_open = (now - visit.site_in_time).total_seconds() / 3600
        threshold = f"{self._threshold_hours:g}"
        customer = visit.customer.name or "Unknown Customer"
        started = _display_date(visit.site_in_time)

        self._visits.update(
            replace(
                visit,
                status=SiteVisitStatus.AUTO_CLOSED,
                auto_corrected=True,
                auto_closed_at=now,
                auto_correction_reason=(
                    f"Auto-closed after {threshold} hours (no checkout received). "
                    f"Visit was open for {hours_open:.1f} hours."
                ),
                updated_at=now,
            )
        )

        if self._activity:
            self._activity.notify(
                user_id=visit.user_id,
                type="system",
                title="Site Visit Auto-Closed",
                message=(
                    f"Your site visit to {customer} ({started}) was auto-closed because checkout was not "
                    f"completed within {threshold} hours. No action is required."
                ),
                now=now,
            )
            self._activity.log(
                type="site_visit",
                title="Site Visit Auto-Closed",
                description=(
                    f"Site visit to {customer} was auto-closed after {threshold} hours "
                    f"(employee forgot to check out). Visit started at {started}."
                ),
                entity_id=str(visit.visit_id),
                entity_type="site_visit",
                user_id=visit.user_id,
                now=now,
            )
