from datetime import date

import pytest
from werkzeug.security import check_password_hash

from ops_portal.core.enums import Department, EmploymentType, Role
from ops_portal.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError


def test_authenticate(container):
    session_user = container.auth_service.authenticate(" user1 ", "secret123")

    assert session_user.user_id == 1
    assert session_user.role == Role.EMPLOYEE
    assert session_user.department == Department.TECHNICAL


@pytest.mark.parametrize("username,password", [("user1", "wrong"), ("nobody", "secret123"), ("", "")])
def test_authenticate_rejects(container, username, password):
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate(username, password)


def test_inactive_or_broken_accounts_cannot_sign_in(container, repos):
    container.employee_service.set_active(user_id=2, is_active=False)
    repos.users.update_user(3, fields={"password_hash": "not-a-hash"})

    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("user2", "secret123")
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("user3", "secret123")


def test_create_employee(container, repos):
    user_id = container.employee_service.create_employee(
        current_role=Role.HR,
        username="kavya",
        password="welcome1",
        full_name="Kavya S",
        details={
            "department": "Administration",
            "employment_type": "full_time",
            "join_date": "2025-01-02",
            "designation": " Accountant ",
            "phone": "",
        },
    )

    user = repos.users.get_by_id(user_id)
    assert user.department == Department.ADMIN
    assert user.employment_type == EmploymentType.FULL_TIME
    assert user.join_date == date(2025, 1, 2)
    assert user.designation == "Accountant"
    assert user.phone is None
    assert check_password_hash(user.password_hash, "welcome1")


@pytest.mark.parametrize(
    "kwargs,error",
    [
        ({"username": "user1"}, ValidationError),
        ({"password": "123"}, ValidationError),
        ({"full_name": " "}, ValidationError),
        ({"role": Role.ADMIN}, AuthorizationError),
        ({"details": {"department": "finance"}}, ValidationError),
        ({"details": {"employment_type": "seasonal"}}, ValidationError),
    ],
)
def test_create_employee_validation(container, kwargs, error):
    args = {"current_role": Role.ADMIN, "username": "kavya", "password": "welcome1", "full_name": "Kavya S"}
    args.update(kwargs)

    with pytest.raises(error):
        container.employee_service.create_employee(**args)


def test_master_admin_creates_admins(container, repos):
    user_id = container.employee_service.create_employee(
        current_role=Role.MASTER_ADMIN, username="ops", password="welcome1", full_name="Ops Lead", role=Role.ADMIN
    )

    assert repos.users.get_by_id(user_id).role == Role.ADMIN


def test_update_employee_ignores_credentials(container, repos):
    before = repos.users.get_by_id(1).password_hash

    view = container.employee_service.update_employee(
        user_id=1, changes={"designation": "Lead Technician", "role": "admin", "password_hash": "x", "email": ""}
    )

    assert view.designation == "Lead Technician"
    assert view.role == Role.EMPLOYEE
    assert view.email is None
    assert not hasattr(view, "password_hash")
    assert repos.users.get_by_id(1).password_hash == before


def test_change_password(container):
    svc = container.employee_service
    with pytest.raises(ValidationError):
        svc.change_password(user_id=1, new_password="123")
    with pytest.raises(NotFoundError):
        svc.change_password(user_id=404, new_password="newsecret")

    svc.change_password(user_id=1, new_password="newsecret")
    assert container.auth_service.authenticate("user1", "newsecret").user_id == 1


def test_list_employees(container):
    svc = container.employee_service
    svc.set_active(user_id=2, is_active=False)

    assert [e.user_id for e in svc.list_employees(department="technical")] == [1]
    assert 2 not in [e.user_id for e in svc.list_employees(active_only=True)]
    assert [e.user_id for e in svc.list_employees(search=" nair ")] == [2]
    with pytest.raises(ValidationError):
        svc.list_employees(department="finance")


def test_delete_employee(container, repos):
    svc = container.employee_service
    with pytest.raises(AuthorizationError):
        svc.delete_employee(current_role=Role.HR, user_id=1)
    with pytest.raises(ValidationError):
        svc.delete_employee(current_role=Role.MASTER_ADMIN, user_id=90)

    svc.delete_employee(current_role=Role.ADMIN, user_id=1)
    assert repos.users.get_by_id(1) is None
    with pytest.raises(NotFoundError):
        svc.get_employee(1)
