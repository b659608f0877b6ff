from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from ..core.enums import Department, OTSessionStatus
from ..core.exceptions import ValidationError
from .repository import OTSessionRepository


@dataclass
class OTSummaryRow:
    user_id: int
    employee_name: str
    department: Optional[Department]
    approved_hours: float = 0.0
    pending_count: int = 0
    rejected_count: int = 0
    session_count: int = 0


class OTReportService:
    """Per-employee OT totals for a date range."""

    def __init__(self, sessions: OTSessionRepository):
        self._sessions = sessions

    def build(self, *, start: date, end: date, department: Optional[Department] = None) -> Sequence[OTSummaryRow]:
        if end < start:
            raise ValidationError("End date must be on or after start date")

        sessions = self._sessions.list_between(
            start=datetime.combine(start, time.min),
            end=datetime.combine(end + timedelta(days=1), time.min),
            department=department,
        )

        rows: dict[int, OTSummaryRow] = {}
        for s in sessions:
            row = rows.get(s.user_id)
            if row is None:
                row = OTSummaryRow(user_id=s.user_id, employee_name=s.employee_name or "", department=s.department)
                rows[s.user_id] = row
            row.session_count += 1
            if s.status.counts_as_approved or s.status == OTSessionStatus.LOCKED:
                row.approved_hours += s.ot_hours
            elif s.status == OTSessionStatus.PENDING_REVIEW:
                row.pending_count += 1
            elif s.status == OTSessionStatus.REJECTED:
                row.rejected_count += 1

        for row in rows.values():
            row.approved_hours = round(row.approved_hours, 2)
        return sorted(rows.values(), key=lambda r: (-r.approved_hours, r.employee_name))
