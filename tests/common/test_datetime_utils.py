from datetime import date, datetime, time

import pytest

from ops_portal.common.datetime_utils import (
    add_minutes,
    expected_checkout_at,
    format_time_12h,
    hours_between,
    is_checkout_overdue,
    month_bounds,
    parse_iso_date,
    parse_iso_datetime,
    parse_time_string,
)
from ops_portal.core.exceptions import ValidationError


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("6:00 PM", time(18, 0)),
        ("6:00 pm", time(18, 0)),
        ("12:15 AM", time(0, 15)),
        ("12:30 PM", time(12, 30)),
        ("09:05", time(9, 5)),
        (" 18:00 ", time(18, 0)),
    ],
)
def test_parse_time_string(raw, expected):
    assert parse_time_string(raw) == expected


@pytest.mark.parametrize("raw", ["", "noon", "25:00", "13:00 PM"])
def test_parse_time_string_rejects(raw):
    with pytest.raises(ValidationError):
        parse_time_string(raw)


def test_iso_parsing():
    assert parse_iso_date("2025-01-06") == date(2025, 1, 6)
    assert parse_iso_datetime("2025-01-06T09:30:00Z") == datetime(2025, 1, 6, 9, 30)
    assert parse_iso_datetime("") is None
    with pytest.raises(ValidationError):
        parse_iso_date("06-01-2025")
    with pytest.raises(ValidationError):
        parse_iso_datetime("yesterday")


def test_time_helpers():
    assert format_time_12h(time(8, 55)) == "8:55 AM"
    assert format_time_12h(datetime(2025, 1, 6, 18, 5)) == "6:05 PM"
    assert add_minutes(time(23, 50), 20) == time(0, 10)
    assert hours_between(datetime(2025, 1, 6, 9), datetime(2025, 1, 6, 10, 30)) == 1.5
    assert hours_between(datetime(2025, 1, 6, 10), datetime(2025, 1, 6, 9)) == 0.0
    assert hours_between(None, datetime(2025, 1, 6, 9)) == 0.0


def test_expected_checkout_rolls_over_midnight():
    assert expected_checkout_at(datetime(2025, 1, 6, 9, 0), "6:00 PM") == datetime(2025, 1, 6, 18, 0)
    assert expected_checkout_at(datetime(2025, 1, 6, 22, 0), "2:00 AM") == datetime(2025, 1, 7, 2, 0)


def test_checkout_overdue():
    check_in = datetime(2025, 1, 6, 9, 0)

    assert is_checkout_overdue(check_in, "6:00 PM", 30, datetime(2025, 1, 6, 18, 30)) is False
    assert is_checkout_overdue(check_in, "6:00 PM", 30, datetime(2025, 1, 6, 18, 31)) is True
    # unparseable timing falls back to a 24 hour window
    assert is_checkout_overdue(check_in, "late", 30, datetime(2025, 1, 7, 8, 0)) is False
    assert is_checkout_overdue(check_in, "late", 30, datetime(2025, 1, 7, 9, 1)) is True


def test_month_bounds():
    assert month_bounds(2, 2024) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(12, 2025) == (date(2025, 12, 1), date(2025, 12, 31))
