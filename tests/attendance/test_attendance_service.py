from datetime import date, datetime

import pytest

from ops_portal.core.enums import AttendanceStatus, AttendanceType, Role
from ops_portal.core.exceptions import ConflictError, NotFoundError, ValidationError

MONDAY = date(2025, 1, 6)


def test_checkin_within_grace_is_present(container, gps):
    record = container.attendance_service.check_in(1, location=gps, now=datetime(2025, 1, 6, 9, 3))

    assert record.status == AttendanceStatus.PRESENT
    assert record.is_late is False
    assert record.work_date == MONDAY
    assert record.check_in_location.latitude == gps["latitude"]
    assert record.attendance_type == AttendanceType.OFFICE


def test_checkin_after_grace_is_late_with_minutes(container, gps):
    record = container.attendance_service.check_in(1, location=gps, now=datetime(2025, 1, 6, 9, 20))

    assert record.status == AttendanceStatus.LATE
    assert record.is_late is True
    assert record.late_minutes == 20
    assert record.note == "Late by 20 min"


def test_checkin_requires_location(container):
    with pytest.raises(ValidationError):
        container.attendance_service.check_in(1, location=None, now=datetime(2025, 1, 6, 9, 0))


def test_checkin_rejects_unknown_attendance_type(container, gps):
    with pytest.raises(ValidationError):
        container.attendance_service.check_in(1, location=gps, attendance_type="moon", now=datetime(2025, 1, 6, 9, 0))


def test_checkin_unknown_user(container, gps):
    with pytest.raises(NotFoundError):
        container.attendance_service.check_in(404, location=gps, now=datetime(2025, 1, 6, 9, 0))


def test_second_checkin_same_day_conflicts(container, gps):
    container.attendance_service.check_in(1, location=gps, now=datetime(2025, 1, 6, 9, 0))

    with pytest.raises(ConflictError):
        container.attendance_service.check_in(1, location=gps, now=datetime(2025, 1, 6, 11, 0))


def test_checkin_blocked_on_approved_leave(container, gps):
    leave_id = container.leave_service.apply(
        user_id=1, leave_type="casual_leave", start_date=MONDAY, reason="Family function"
    )
    container.leave_service.approve(current_role=Role.HR, admin_user_id=4, leave_id=leave_id)

    with pytest.raises(ValidationError, match="approved leave"):
        container.attendance_service.check_in(1, location=gps, now=datetime(2025, 1, 6, 9, 0))


def test_permission_leave_does_not_block_checkin(container, gps):
    leave_id = container.leave_service.apply(
        user_id=1, leave_type="permission", start_date=MONDAY, reason="Bank work", permission_hours=2
    )
    container.leave_service.approve(current_role=Role.ADMIN, admin_user_id=90, leave_id=leave_id)

    record = container.attendance_service.check_in(1, location=gps, now=datetime(2025, 1, 6, 9, 0))
    assert record.status == AttendanceStatus.PRESENT


def test_checkin_upgrades_ot_only_record(container, repos, gps):
    ot_only_id = repos.attendance.create_checkin(
        user_id=1, work_date=MONDAY, check_in_time=None, status=AttendanceStatus.ABSENT, is_ot_only=True
    )

    record = container.attendance_service.check_in(1, location=gps, now=datetime(2025, 1, 6, 9, 20))

    assert record.attendance_id == ot_only_id
    assert record.is_ot_only is False
    assert record.status == AttendanceStatus.LATE
    assert record.check_in_time == datetime(2025, 1, 6, 9, 20)


def test_checkout_before_closing_is_early_leave_and_subtracts_break(container, gps):
    container.attendance_service.check_in(1, location=gps, now=datetime(2025, 1, 6, 9, 0))

    record = container.attendance_service.check_out(1, location=gps, now=datetime(2025, 1, 6, 17, 0))

    assert record.status == AttendanceStatus.EARLY_LEAVE
    assert record.working_hours == 7.0
    assert record.check_out_time == datetime(2025, 1, 6, 17, 0)


def test_checkout_keeps_late_status(container, gps):
    container.attendance_service.check_in(1, location=gps, now=datetime(2025, 1, 6, 9, 30))

    record = container.attendance_service.check_out(1, location=gps, now=datetime(2025, 1, 6, 18, 30))

    assert record.status == AttendanceStatus.LATE
    assert record.working_hours == 8.0
    assert record.note == "Late by 30 min"


def test_checkout_without_checkin(container, gps):
    with pytest.raises(ValidationError):
        container.attendance_service.check_out(1, location=gps, now=datetime(2025, 1, 6, 18, 0))


def test_double_checkout_conflicts(container, gps):
    container.attendance_service.check_in(1, location=gps, now=datetime(2025, 1, 6, 9, 0))
    container.attendance_service.check_out(1, location=gps, now=datetime(2025, 1, 6, 18, 0))

    with pytest.raises(ConflictError):
        container.attendance_service.check_out(1, location=gps, now=datetime(2025, 1, 6, 18, 5))


def test_report_rows_and_summary(container, gps):
    svc = container.attendance_service
    svc.check_in(1, location=gps, now=datetime(2025, 1, 6, 9, 0))
    svc.check_out(1, location=gps, now=datetime(2025, 1, 6, 18, 0))
    svc.check_in(2, location=gps, now=datetime(2025, 1, 6, 9, 30))
    svc.check_out(2, location=gps, now=datetime(2025, 1, 6, 18, 0))

    report = svc.get_report(start=MONDAY, end=MONDAY)

    assert len(report.rows) == 2
    by_user = {row["user_id"]: row for row in report.rows}
    assert by_user[1]["check_in"] == "09:00"
    assert by_user[1]["worked_hours"] == "09:00"
    assert by_user[2]["department"] == "marketing"
    assert [s["user_id"] for s in report.summary] == [1, 2]
    assert report.summary[1]["total_hours"] == "08:30"
    assert report.summary[0]["days_present"] == 1


def test_report_rejects_inverted_range(container):
    with pytest.raises(ValidationError):
        container.attendance_service.get_report(start=date(2025, 1, 7), end=MONDAY)
