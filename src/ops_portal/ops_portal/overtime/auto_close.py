"""Closes OT sessions employees forgot to end.

Early-arrival sessions close five minutes before the department opens.
Every other session closes once it has run ``OT_AUTO_CLOSE_HOURS``.
Auto-closed sessions go to PENDING_REVIEW so an admin confirms the hours.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from ..activity.service import ActivityService
from ..common.datetime_utils import format_time_12h, now_local
from ..core.constants import OT_AUTO_CLOSE_HOURS
from ..core.enums import OTSessionStatus, OTType
from ..core.exceptions import ValidationError
from ..departments.service import DepartmentTimingService
from .model import OTSession
from .repository import OTSessionRepository
from .rules import calculate_ot_hours

logger = logging.getLogger(__name__)

EARLY_ARRIVAL_BUFFER = timedelta(minutes=5)


@dataclass(frozen=True)
class AutoCloseResult:
    checked: int
    closed: int
    errors: int


class OTAutoCloseService:
    def __init__(
        self,
        sessions: OTSessionRepository,
        timings: DepartmentTimingService,
        activity: Optional[ActivityService] = None,
        *,
        threshold_hours: float = OT_AUTO_CLOSE_HOURS,
    ):
        self._sessions = sessions
        self._timings = timings
        self._activity = activity
        self._threshold = timedelta(hours=float(threshold_hours))

    def close_time_for(self, session: OTSession) -> datetime:
        """When ``session`` should be closed if still running."""

        fallback = session.start_time + self._threshold
        if session.ot_type != OTType.EARLY_ARRIVAL:
            return fallback

        timing = self._timings.get_timing(session.department)
        if not timing:
            return fallback
        try:
            close_at = timing.start_on(session.start_time.date()) - EARLY_ARRIVAL_BUFFER
        except ValidationError:
            return fallback
        if session.start_time >= close_at:
            logger.warning("Early-arrival OT %s started after the office opened; using %s", session.session_id, self._threshold)
            return fallback
        return close_at

    def process(self, now: Optional[datetime] = None) -> AutoCloseResult:
        now = now or now_local()
        open_sessions = self._sessions.list_in_progress()

        closed = errors = 0
        for session in open_sessions:
            try:
                close_at = self.close_time_for(session)
                if now < close_at:
                    continue
                self._close(session, close_at, now)
                closed += 1
            except Exception:
                errors += 1
                logger.exception("Failed to auto-close OT session %s", session.session_id)

        logger.info("OT auto-close: %s checked, %s closed, %s errors", len(open_sessions), closed, errors)
        return AutoCloseResult(checked=len(open_sessions), closed=closed, errors=errors)

    def _close(self, session: OTSession, close_at: datetime, now: datetime) -> None:
        hours = round(calculate_ot_hours(session.start_time, close_at), 2)
        note = (
            f"Session auto-closed at {format_time_12h(close_at)}. Employee did not end the session. "
            f"Calculated {hours:.2f}h (needs admin verification)."
        )
        self._sessions.update(
            replace(
                session,
                end_time=close_at,
                ot_hours=hours,
                status=OTSessionStatus.PENDING_REVIEW,
                auto_closed_at=now,
                auto_close_note=note,
                updated_at=now,
            )
        )

        if self._activity:
            self._activity.notify(
                user_id=session.user_id,
                type="admin_review",
                title="OT Session Auto-Closed",
                message=(
                    f"Your OT session from {format_time_12h(session.start_time)} was auto-closed because you "
                    "forgot to end it. An admin will review and verify your actual hours."
                ),
                now=now,
            )
            self._activity.log(
                type="attendance",
                title="OT Session Auto-Closed",
                description=(
                    f"{session.employee_name or 'Employee'}'s OT session auto-closed. "
                    f"Status: PENDING_REVIEW. Estimated {hours:.2f}h."
                ),
                entity_id=session.session_id,
                entity_type="ot_session",
                user_id=session.user_id,
                now=now,
            )
