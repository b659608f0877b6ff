from datetime import date, datetime

from ops_portal.attendance.factory import AttendanceStrategyFactory
from ops_portal.attendance.hours.standard_calculator import StandardWorkingHoursCalculator
from ops_portal.attendance.strategies.early_strategy import EarlyLeaveStrategy
from ops_portal.attendance.strategies.late_strategy import LateStrategy
from ops_portal.attendance.strategies.normal_strategy import NormalStrategy
from ops_portal.core.enums import AttendanceStatus, Department
from ops_portal.departments.model import DepartmentTiming


def _timing(start="8:00 AM", end="5:00 PM"):
    return DepartmentTiming(department=Department.TECHNICAL, check_in_time=start, check_out_time=end, break_minutes=60)


def test_factory_checkin_on_time_within_grace():
    today = date(2025, 1, 1)
    now = datetime(2025, 1, 1, 8, 4, 59)

    factory = AttendanceStrategyFactory()
    strategy = factory.for_checkin(now=now, today=today, timing=_timing(), grace_minutes=5)

    assert isinstance(strategy, NormalStrategy)


def test_factory_checkin_late_after_grace():
    today = date(2025, 1, 1)
    now = datetime(2025, 1, 1, 8, 6, 0)

    factory = AttendanceStrategyFactory()
    strategy = factory.for_checkin(now=now, today=today, timing=_timing(), grace_minutes=5)

    assert isinstance(strategy, LateStrategy)
    decision = strategy.decide_checkin(now=now, today=today, timing=_timing(), grace_minutes=5)
    assert decision.status == AttendanceStatus.LATE
    assert decision.late_minutes == 6
    assert decision.note == "Late by 6 min"


def test_factory_without_timing_is_always_normal():
    factory = AttendanceStrategyFactory()
    now = datetime(2025, 1, 1, 13, 0)

    assert isinstance(factory.for_checkin(now=now, today=now.date(), timing=None, grace_minutes=5), NormalStrategy)
    assert isinstance(
        factory.for_checkout(now=now, work_date=now.date(), timing=None, current_status=AttendanceStatus.PRESENT),
        NormalStrategy,
    )


def test_factory_checkout_before_end_marks_early_leave_only_when_present():
    factory = AttendanceStrategyFactory()
    now = datetime(2025, 1, 1, 16, 0)

    early = factory.for_checkout(now=now, work_date=now.date(), timing=_timing(), current_status=AttendanceStatus.PRESENT)
    late_stays = factory.for_checkout(now=now, work_date=now.date(), timing=_timing(), current_status=AttendanceStatus.LATE)

    assert isinstance(early, EarlyLeaveStrategy)
    assert isinstance(late_stays, NormalStrategy)


def test_factory_checkout_night_shift_closes_next_day():
    factory = AttendanceStrategyFactory()
    night = _timing(start="10:00 PM", end="6:00 AM")
    work_date = date(2025, 1, 1)

    before_close = factory.for_checkout(
        now=datetime(2025, 1, 2, 5, 0), work_date=work_date, timing=night, current_status=AttendanceStatus.PRESENT
    )
    after_close = factory.for_checkout(
        now=datetime(2025, 1, 2, 6, 30), work_date=work_date, timing=night, current_status=AttendanceStatus.PRESENT
    )

    assert isinstance(before_close, EarlyLeaveStrategy)
    assert isinstance(after_close, NormalStrategy)


def test_standard_calculator_subtracts_break():
    calc = StandardWorkingHoursCalculator()
    check_in = datetime(2025, 1, 1, 8, 0)
    check_out = datetime(2025, 1, 1, 17, 0)

    assert calc.worked_minutes(check_in, check_out, 60) == 8 * 60
    assert calc.worked_hours(check_in, check_out, 60) == 8.0


def test_standard_calculator_never_negative_and_handles_missing_times():
    calc = StandardWorkingHoursCalculator()
    check_in = datetime(2025, 1, 1, 8, 0)

    assert calc.worked_minutes(check_in, datetime(2025, 1, 1, 8, 30), 60) == 0
    assert calc.worked_minutes(check_in, None) == 0
    assert calc.worked_hours(check_in, datetime(2025, 1, 1, 9, 20)) == 1.33
