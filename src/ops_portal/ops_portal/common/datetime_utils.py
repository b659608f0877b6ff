from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..core.exceptions import ValidationError

_TIME_12H = re.compile(r"(\d{1,2}):(\d{2})\s*(AM|PM)", re.IGNORECASE)
_TIME_24H = re.compile(r"(\d{1,2}):(\d{2})")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date (expected YYYY-MM-DD): {value!r}")


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", ""))
    except ValueError:
        raise ValidationError(f"Invalid datetime: {value!r}")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch it easily.
    """
    return datetime.now()


def parse_time_string(value: str) -> time:
    """Parse department timing strings.

    Accepts 12-hour ("6:00 PM", "6:00 pm") and 24-hour ("18:00") formats.
    """

    text = (value or "").strip()
    m = _TIME_12H.search(text)
    if m:
        hours = int(m.group(1))
        minutes = int(m.group(2))
        period = m.group(3).upper()
        if period == "PM" and hours != 12:
            hours += 12
        elif period == "AM" and hours == 12:
            hours = 0
        return _build_time(hours, minutes, text)

    m = _TIME_24H.search(text)
    if m:
        return _build_time(int(m.group(1)), int(m.group(2)), text)

    raise ValidationError(f"Unable to parse time format: {value!r}")


def _build_time(hours: int, minutes: int, raw: str) -> time:
    try:
        return time(hour=hours, minute=minutes)
    except ValueError:
        raise ValidationError(f"Unable to parse time format: {raw!r}")


def format_time_12h(value: time | datetime) -> str:
    return value.strftime("%I:%M %p").lstrip("0")


def add_minutes(value: time, minutes: int) -> time:
    total = value.hour * 60 + value.minute + int(minutes)
    total %= 24 * 60
    return time(hour=total // 60, minute=total % 60)


def combine(day: date, value: time) -> datetime:
    return datetime.combine(day, value)


def expected_checkout_at(check_in: datetime, checkout_str: str) -> datetime:
    """Expected checkout on the check-in day.

    Rolls over to the next day when the checkout time is not after the
    check-in (cross-midnight timing such as 10 PM -> 2 AM).
    """

    checkout = parse_time_string(checkout_str)
    expected = datetime.combine(check_in.date(), checkout)
    if expected <= check_in:
        expected += timedelta(days=1)
    return expected


def is_checkout_overdue(
    check_in: datetime,
    checkout_str: str,
    grace_minutes: int,
    now: datetime,
) -> bool:
    try:
        expected = expected_checkout_at(check_in, checkout_str)
    except ValidationError:
        return check_in < now - timedelta(hours=24)
    return now > expected + timedelta(minutes=int(grace_minutes))


def hours_between(start: Optional[datetime], end: Optional[datetime]) -> float:
    if start is None or end is None:
        return 0.0
    return max(0.0, (end - start).total_seconds() / 3600)


def month_bounds(month: int, year: int) -> tuple[date, date]:
    first = date(int(year), int(month), 1)
    if first.month == 12:
        nxt = date(first.year + 1, 1, 1)
    else:
        nxt = date(first.year, first.month + 1, 1)
    return first, nxt - timedelta(days=1)
