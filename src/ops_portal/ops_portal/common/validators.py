from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from ..core.exceptions import ValidationError

_DIGITS = re.compile(r"^\d+$")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class FieldCheck:
    is_valid: bool
    message: Optional[str] = None


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def validate_customer_name(name: Optional[str]) -> FieldCheck:
    v = (name or "").strip()
    if not v:
        return FieldCheck(False, "Customer name is required")
    if len(v) < 2:
        return FieldCheck(False, "Customer name must be at least 2 characters")
    return FieldCheck(True)


def validate_mobile(mobile: Optional[str]) -> FieldCheck:
    v = (mobile or "").strip()
    if not v:
        return FieldCheck(False, "Mobile number is required")
    if len(v) < 10:
        return FieldCheck(False, "Mobile number must be at least 10 digits")
    if len(v) > 15:
        return FieldCheck(False, "Mobile number must be at most 15 digits")
    if not _DIGITS.match(v):
        return FieldCheck(False, "Mobile number must contain only digits")
    return FieldCheck(True)


def validate_address(address: Optional[str]) -> FieldCheck:
    v = (address or "").strip()
    if len(v) < 3:
        return FieldCheck(False, "Address must be at least 3 characters")
    return FieldCheck(True)


def validate_email(email: Optional[str]) -> FieldCheck:
    v = (email or "").strip()
    if v and not _EMAIL.match(v):
        return FieldCheck(False, "Please enter a valid email address")
    return FieldCheck(True)


def raise_if_invalid(check: FieldCheck) -> None:
    if not check.is_valid:
        raise ValidationError(check.message or "Invalid value")
