from datetime import date, datetime

import pytest

from ops_portal.core.enums import AttendanceStatus, OTSessionStatus, OTType, ReviewAction, Role
from ops_portal.core.exceptions import ConflictError, NotFoundError, PayrollLockedError, ValidationError
from ops_portal.overtime.service import ACTIVE_SESSION_MESSAGE

MONDAY = date(2025, 1, 6)
SUNDAY = date(2025, 1, 5)


def _checked_in(container, gps, user_id=1):
    return container.attendance_service.check_in(user_id, location=gps, now=datetime(2025, 1, 6, 9, 0))


def test_late_departure_requires_attendance(container):
    with pytest.raises(ValidationError, match="check in first"):
        container.ot_service.start_session(1, now=datetime(2025, 1, 6, 18, 10))


def test_early_arrival_creates_ot_only_attendance(container, repos):
    session = container.ot_service.start_session(1, reason="Panel delivery", now=datetime(2025, 1, 6, 7, 0))

    assert session.ot_type == OTType.EARLY_ARRIVAL
    assert session.session_number == 1
    assert session.session_id.startswith("ot_1_")
    assert session.status == OTSessionStatus.IN_PROGRESS
    record = repos.attendance.get_for_user_and_date(1, MONDAY)
    assert record.is_ot_only is True
    assert record.check_in_time is None
    assert record.status == AttendanceStatus.ABSENT


def test_only_one_active_session(container, gps):
    _checked_in(container, gps)
    container.ot_service.start_session(1, now=datetime(2025, 1, 6, 18, 0))

    with pytest.raises(ConflictError) as exc:
        container.ot_service.start_session(1, now=datetime(2025, 1, 6, 18, 30))
    assert str(exc.value) == ACTIVE_SESSION_MESSAGE


def test_end_within_limit_is_approved(container, repos):
    session = container.ot_service.start_session(1, now=datetime(2025, 1, 6, 7, 0))

    result = container.ot_service.end_session(1, now=datetime(2025, 1, 6, 8, 30))

    assert result.session.status == OTSessionStatus.APPROVED
    assert result.session.ot_hours == 1.5
    assert result.exceeds_daily_limit is False
    assert result.total_ot_today == 1.5
    assert result.message == "OT session completed and approved. 1.5 hours recorded."
    assert repos.attendance.get_by_id(session.attendance_id).total_ot_hours == 1.5


def test_end_over_daily_limit_needs_review(container, repos, gps):
    _checked_in(container, gps)
    container.ot_service.start_session(1, now=datetime(2025, 1, 6, 18, 0))

    result = container.ot_service.end_session(1, now=datetime(2025, 1, 6, 23, 30))

    assert result.session.status == OTSessionStatus.PENDING_REVIEW
    assert result.exceeds_daily_limit is True
    assert result.total_ot_today == 0.0
    assert result.message.startswith("Daily OT limit exceeded (5h)")
    assert "OT Requires Review" in repos.activity.notification_titles(1)


def test_second_session_counts_earlier_approved_hours(container, gps):
    svc = container.ot_service
    svc.start_session(1, now=datetime(2025, 1, 6, 6, 0))
    svc.end_session(1, now=datetime(2025, 1, 6, 8, 0))
    _checked_in(container, gps)
    second = svc.start_session(1, now=datetime(2025, 1, 6, 18, 0))

    result = svc.end_session(1, now=datetime(2025, 1, 6, 21, 30))

    assert second.session_number == 2
    assert result.exceeds_daily_limit is True
    assert result.session.status == OTSessionStatus.PENDING_REVIEW
    assert result.total_ot_today == 2.0


def test_end_without_active_session(container):
    with pytest.raises(NotFoundError):
        container.ot_service.end_session(1, now=datetime(2025, 1, 6, 20, 0))


def test_weekend_ot_without_checkin(container):
    session = container.ot_service.start_session(1, now=datetime(2025, 1, 5, 10, 0))

    assert session.ot_type == OTType.WEEKEND


def test_strict_holiday_blocks_ot(container):
    container.calendar_service.create_holiday(admin_id=91, data={"name": "Republic Day", "date": "2025-01-06"})

    with pytest.raises(ValidationError, match="strict holiday"):
        container.ot_service.start_session(1, now=datetime(2025, 1, 6, 10, 0))


def test_holiday_allowing_ot_starts_holiday_session(container):
    container.calendar_service.create_holiday(
        admin_id=91, data={"name": "Company Day", "date": "2025-01-06", "type": "company", "allow_ot": True}
    )

    session = container.ot_service.start_session(1, now=datetime(2025, 1, 6, 10, 0))

    assert session.ot_type == OTType.HOLIDAY


def test_ot_blocked_on_leave(container):
    leave_id = container.leave_service.apply(
        user_id=1, leave_type="unpaid_leave", start_date=MONDAY, reason="Travel"
    )
    container.leave_service.approve(current_role=Role.ADMIN, admin_user_id=90, leave_id=leave_id)

    with pytest.raises(ValidationError):
        container.ot_service.start_session(1, now=datetime(2025, 1, 6, 7, 0))


def test_ot_blocked_when_payroll_locked(container):
    container.calendar_service.lock_period(month=1, year=2025, admin_id=91, admin_role=Role.MASTER_ADMIN)

    with pytest.raises(PayrollLockedError):
        container.ot_service.start_session(1, now=datetime(2025, 1, 6, 7, 0))


def test_admin_adjusts_pending_session(container, repos, gps):
    _checked_in(container, gps)
    container.ot_service.start_session(1, now=datetime(2025, 1, 6, 18, 0))
    pending = container.ot_service.end_session(1, now=datetime(2025, 1, 6, 23, 30)).session

    reviewed = container.ot_service.review_session(
        session_id=pending.session_id, action="ADJUSTED", admin_id=90, adjusted_hours=4
    )

    assert reviewed.status == OTSessionStatus.APPROVED
    assert reviewed.review_action == ReviewAction.ADJUSTED
    assert reviewed.original_ot_hours == 5.5
    assert reviewed.ot_hours == 4.0
    assert reviewed.review_notes == "Hours adjusted from 5.5h to 4h"
    assert repos.attendance.get_by_id(pending.attendance_id).total_ot_hours == 4.0
    assert "OT Session Adjusted" in repos.activity.notification_titles(1)


def test_admin_rejects_pending_session(container, gps):
    _checked_in(container, gps)
    container.ot_service.start_session(1, now=datetime(2025, 1, 6, 18, 0))
    pending = container.ot_service.end_session(1, now=datetime(2025, 1, 6, 23, 30)).session

    reviewed = container.ot_service.review_session(session_id=pending.session_id, action="rejected", admin_id=90)

    assert reviewed.status == OTSessionStatus.REJECTED
    assert reviewed.review_notes == "Rejected by admin"


def test_cannot_review_running_session(container):
    session = container.ot_service.start_session(1, now=datetime(2025, 1, 6, 7, 0))

    with pytest.raises(ValidationError):
        container.ot_service.review_session(session_id=session.session_id, action="APPROVED", admin_id=90)


def test_status_transitions(container):
    svc = container.ot_service
    assert svc.get_status(1, now=datetime(2025, 1, 6, 6, 0)).ot_status == "not_started"

    svc.start_session(1, now=datetime(2025, 1, 6, 6, 0))
    running = svc.get_status(1, now=datetime(2025, 1, 6, 7, 30))
    assert running.ot_status == "in_progress"
    assert running.can_end_ot is True
    assert running.current_ot_hours == 1.5

    svc.end_session(1, now=datetime(2025, 1, 6, 8, 0))
    done = svc.get_status(1, now=datetime(2025, 1, 6, 8, 5))
    assert done.ot_status == "completed"
    assert done.can_start_ot is True
    assert done.current_ot_hours == 2.0


def test_pending_and_active_listings(container, gps):
    svc = container.ot_service
    _checked_in(container, gps)
    svc.start_session(1, now=datetime(2025, 1, 6, 18, 0))
    svc.end_session(1, now=datetime(2025, 1, 6, 23, 30))
    svc.start_session(2, now=datetime(2025, 1, 6, 7, 0))

    pending = svc.list_pending(now=datetime(2025, 1, 7, 9, 0))
    active = svc.list_active(now=datetime(2025, 1, 6, 8, 0))

    assert [s.user_id for s in pending] == [1]
    assert [(v.session.user_id, v.current_hours) for v in active] == [(2, 1.0)]


def test_locking_payroll_locks_approved_sessions(container, repos):
    session = container.ot_service.start_session(1, now=datetime(2025, 1, 6, 7, 0))
    container.ot_service.end_session(1, now=datetime(2025, 1, 6, 8, 0))

    container.calendar_service.lock_period(month=1, year=2025, admin_id=91, admin_role=Role.MASTER_ADMIN)

    assert repos.ot.get(session.session_id).status == OTSessionStatus.LOCKED
