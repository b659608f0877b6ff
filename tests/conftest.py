from __future__ import annotations

from datetime import datetime

import pytest

from fakes import InMemoryTimings, InMemoryUsers, Repos, build_fake_container, make_user
from ops_portal.core.enums import Department, Role
from ops_portal.departments.model import DepartmentTiming

# 2025-01-06 is a Monday; 2025-01-05 a Sunday (default weekend)
MONDAY_9AM = datetime(2025, 1, 6, 9, 0)

GPS = {"latitude": 11.0168, "longitude": 76.9558, "accuracy": 12}


@pytest.fixture
def fixed_now() -> datetime:
    return MONDAY_9AM


@pytest.fixture
def users() -> InMemoryUsers:
    return InMemoryUsers(
        [
            make_user(1, department=Department.TECHNICAL, full_name="Ravi Kumar"),
            make_user(2, department=Department.MARKETING, full_name="Priya Nair"),
            make_user(3, department=Department.ADMIN, full_name="Arun Das"),
            make_user(4, department=Department.HR, role=Role.HR, full_name="Meena HR"),
            make_user(90, department=None, role=Role.ADMIN, username="admin", full_name="Office Admin"),
            make_user(91, department=None, role=Role.MASTER_ADMIN, username="master", full_name="Master Admin"),
        ]
    )


@pytest.fixture
def repos(users) -> Repos:
    timings = InMemoryTimings(
        [
            DepartmentTiming(Department.TECHNICAL, "9:00 AM", "6:00 PM", break_minutes=60),
            DepartmentTiming(Department.MARKETING, "9:30 AM", "6:30 PM"),
            DepartmentTiming(Department.ADMIN, "10:00", "19:00"),
        ]
    )
    return Repos(users=users, timings=timings)


@pytest.fixture
def container(repos):
    return build_fake_container(repos)


@pytest.fixture
def gps() -> dict:
    return dict(GPS)
