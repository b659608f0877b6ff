from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.location import Location
from ..core.enums import Department, OTSessionStatus, OTType, ReviewAction


@dataclass(frozen=True)
class OTSession:
    """One overtime interval; a day may hold several sessions."""

    session_id: str
    session_number: int
    attendance_id: int
    user_id: int
    ot_type: OTType
    start_time: datetime
    status: OTSessionStatus = OTSessionStatus.IN_PROGRESS
    end_time: Optional[datetime] = None
    ot_hours: float = 0.0
    start_location: Optional[Location] = None
    end_location: Optional[Location] = None
    start_photo_url: Optional[str] = None
    end_photo_url: Optional[str] = None
    reason: str = ""
    auto_closed_at: Optional[datetime] = None
    auto_close_note: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_action: Optional[ReviewAction] = None
    review_notes: Optional[str] = None
    original_ot_hours: Optional[float] = None
    adjusted_ot_hours: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # joined from users when listed
    employee_name: Optional[str] = None
    department: Optional[Department] = None


@dataclass(frozen=True)
class OTStatus:
    ot_status: str  # not_started | in_progress | completed
    has_active_ot: bool
    can_start_ot: bool
    can_end_ot: bool
    active_session: Optional[OTSession] = None
    ot_type: Optional[OTType] = None
    current_ot_hours: Optional[float] = None


@dataclass(frozen=True)
class EndSessionResult:
    session: OTSession
    total_ot_today: float
    exceeds_daily_limit: bool
    message: str


@dataclass(frozen=True)
class ActiveSessionView:
    session: OTSession
    current_hours: float
