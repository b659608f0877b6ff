from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.location import Location
from ..core.enums import AdminReviewStatus, AttendanceStatus, AttendanceType, Department


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance record per user per day.

    ``check_in_time`` is None for OT-only records created when an employee
    starts early-arrival/weekend/holiday OT before checking in.
    """

    attendance_id: int
    user_id: int
    work_date: date
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    status: AttendanceStatus
    attendance_type: AttendanceType = AttendanceType.OFFICE
    check_in_location: Optional[Location] = None
    check_out_location: Optional[Location] = None
    check_in_photo_url: Optional[str] = None
    check_out_photo_url: Optional[str] = None
    is_late: bool = False
    late_minutes: int = 0
    working_hours: float = 0.0
    total_ot_hours: float = 0.0
    is_ot_only: bool = False
    auto_corrected: bool = False
    auto_corrected_at: Optional[datetime] = None
    auto_correction_reason: Optional[str] = None
    admin_review_status: Optional[AdminReviewStatus] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    note: Optional[str] = None
    department: Optional[Department] = None  # joined from users when listed for jobs

    @property
    def is_open(self) -> bool:
        return self.check_in_time is not None and self.check_out_time is None


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for reports (optimized for the query)."""

    user_id: int
    full_name: str
    username: str
    department: Optional[Department]
    break_minutes: int
    work_date: date
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    status: AttendanceStatus
    total_ot_hours: float = 0.0
    admin_review_status: Optional[AdminReviewStatus] = None
    note: Optional[str] = None
