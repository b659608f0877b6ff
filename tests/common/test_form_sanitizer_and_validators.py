import pytest

from ops_portal.common.form_sanitizer import default_form_values, sanitize_form_data, sanitize_form_data_batch
from ops_portal.common.location import Location
from ops_portal.common.validators import (
    raise_if_invalid,
    require_min_length,
    require_non_empty,
    validate_address,
    validate_customer_name,
    validate_email,
    validate_mobile,
)
from ops_portal.core.exceptions import ValidationError


def test_sanitize_form_data():
    cleaned = sanitize_form_data(
        {"name": "Anand", "email": "", "address": "", "notes": None, "count": 0, "active": False},
        ["email"],
    )

    assert cleaned == {"name": "Anand", "email": None, "count": 0, "active": False}


def test_sanitize_batch():
    assert sanitize_form_data_batch([{"a": ""}, {"a": "x"}], ["a"]) == [{"a": None}, {"a": "x"}]


def test_default_form_values():
    defaults = default_form_values(
        {"name": "x", "count": 3, "active": True, "tags": ["a"], "meta": {"k": 1}, "photo": None},
        {"count": 1},
    )

    assert defaults == {"name": "", "count": 1, "active": False, "tags": [], "meta": {}, "photo": None}


@pytest.mark.parametrize(
    "mobile,message",
    [
        ("", "Mobile number is required"),
        ("98765", "Mobile number must be at least 10 digits"),
        ("9" * 16, "Mobile number must be at most 15 digits"),
        ("98765-43210", "Mobile number must contain only digits"),
    ],
)
def test_validate_mobile(mobile, message):
    check = validate_mobile(mobile)

    assert check.is_valid is False
    assert check.message == message


def test_field_checks():
    assert validate_mobile(" 9876543210 ").is_valid
    assert validate_customer_name("Al").is_valid
    assert validate_customer_name(" ").message == "Customer name is required"
    assert validate_address("12 Main Road").is_valid
    assert not validate_address(None).is_valid
    assert validate_email("").is_valid
    assert validate_email("ops@example.com").is_valid
    assert not validate_email("ops@example").is_valid


def test_raising_helpers():
    assert require_non_empty("  reason ", "Reason") == "reason"
    with pytest.raises(ValidationError, match="Reason is required"):
        require_non_empty("   ", "Reason")
    with pytest.raises(ValidationError, match="at least 10 characters"):
        require_min_length("short", "Reason", 10)
    with pytest.raises(ValidationError, match="Mobile number is required"):
        raise_if_invalid(validate_mobile(None))


def test_location_from_dict():
    loc = Location.from_dict({"latitude": "11.01", "longitude": 76.95, "accuracy": 8, "address": ""})

    assert (loc.latitude, loc.longitude, loc.accuracy, loc.address) == (11.01, 76.95, 8.0, None)
    assert Location.from_dict(None, required=False) is None
    with pytest.raises(ValidationError):
        Location.from_dict(None)
    with pytest.raises(ValidationError):
        Location.from_dict({"latitude": 95, "longitude": 10})
    with pytest.raises(ValidationError):
        Location.from_dict({"latitude": "north", "longitude": 10})
