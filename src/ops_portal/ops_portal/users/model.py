from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import Department, EmploymentType, Role


@dataclass(frozen=True)
class User:
    """Employee account and HR record.

    Note: Plain data object (no DB access code).
    """

    user_id: int
    username: str
    password_hash: str
    full_name: str
    role: Role
    department: Optional[Department] = None
    designation: Optional[str] = None
    employee_code: Optional[str] = None
    employment_type: Optional[EmploymentType] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    join_date: Optional[date] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class EmployeeView:
    """User without credentials, safe to return from the API."""

    user_id: int
    username: str
    full_name: str
    role: Role
    department: Optional[Department]
    designation: Optional[str]
    employee_code: Optional[str]
    employment_type: Optional[EmploymentType]
    email: Optional[str]
    phone: Optional[str]
    join_date: Optional[date]
    is_active: bool

    @classmethod
    def from_user(cls, user: User) -> "EmployeeView":
        return cls(
            user_id=user.user_id,
            username=user.username,
            full_name=user.full_name,
            role=user.role,
            department=user.department,
            designation=user.designation,
            employee_code=user.employee_code,
            employment_type=user.employment_type,
            email=user.email,
            phone=user.phone,
            join_date=user.join_date,
            is_active=user.is_active,
        )
