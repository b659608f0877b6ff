from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..common.location import Location
from ..core.enums import AdminReviewStatus, AttendanceStatus, AttendanceType, Department
from .model import AttendanceRecord, AttendanceReportRow


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        user_id: int,
        work_date: date,
        check_in_time: Optional[datetime],
        status: AttendanceStatus,
        attendance_type: AttendanceType = AttendanceType.OFFICE,
        location: Optional[Location] = None,
        photo_url: Optional[str] = None,
        is_late: bool = False,
        late_minutes: int = 0,
        is_ot_only: bool = False,
        note: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def upgrade_ot_only_checkin(
        self,
        *,
        attendance_id: int,
        check_in_time: datetime,
        status: AttendanceStatus,
        attendance_type: AttendanceType,
        location: Location,
        photo_url: Optional[str],
        is_late: bool,
        late_minutes: int,
    ) -> bool:
        """Turn an OT-only record into a regular check-in."""

        raise NotImplementedError

    def update_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        status: AttendanceStatus,
        location: Optional[Location],
        photo_url: Optional[str],
        working_hours: float,
        note: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def apply_auto_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        working_hours: float,
        corrected_at: datetime,
        reason: str,
    ) -> bool:
        """Only applies while the record still has no checkout."""

        raise NotImplementedError

    def apply_review(
        self,
        *,
        attendance_id: int,
        review_status: AdminReviewStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        notes: Optional[str],
        check_out_time: Optional[datetime],
        working_hours: float,
    ) -> bool:
        raise NotImplementedError

    def set_total_ot_hours(self, attendance_id: int, hours: float) -> bool:
        raise NotImplementedError

    def list_incomplete(self, work_date: date) -> Sequence[AttendanceRecord]:
        """Records with a check-in and no checkout; ``department`` is populated."""

        raise NotImplementedError

    def list_pending_reviews(self) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_report_rows(
        self,
        *,
        start_date: date,
        end_date: date,
        department: Optional[Department] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError
