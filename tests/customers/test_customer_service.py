from datetime import datetime

import pytest

from ops_portal.core.enums import PropertyType
from ops_portal.core.exceptions import NotFoundError, ValidationError

NOW = datetime(2025, 1, 6, 9, 0)


def test_create_customer(container):
    customer = container.customer_service.create(
        {"name": "  Anand Stores ", "mobile": "9000000001", "address": "", "property_type": "residential"}, now=NOW
    )

    assert customer.name == "Anand Stores"
    assert customer.address is None
    assert customer.property_type == PropertyType.RESIDENTIAL
    assert customer.created_from == "customers_page"
    assert customer.created_at == NOW


@pytest.mark.parametrize(
    "data",
    [
        {"name": "A", "mobile": "9000000001"},
        {"name": "Anand", "mobile": "900000"},
        {"name": "Anand", "mobile": "+919000000001"},
        {"name": "Anand", "mobile": "9000000001", "email": "anand@"},
        {"name": "Anand", "mobile": "9000000001", "address": "ab"},
        {"name": "Anand", "mobile": "9000000001", "property_type": "castle"},
        {"mobile": "9000000001"},
    ],
)
def test_create_validation(container, data):
    with pytest.raises(ValidationError):
        container.customer_service.create(data)


def test_partial_update(container):
    svc = container.customer_service
    customer = svc.create({"name": "Anand", "mobile": "9000000001"}, now=NOW)

    updated = svc.update(customer.customer_id, {"email": "anand@example.com", "created_from": "site_visit"})

    assert updated.email == "anand@example.com"
    assert updated.name == "Anand"
    assert updated.created_from == "customers_page"
    with pytest.raises(ValidationError):
        svc.update(customer.customer_id, {"mobile": "12"})
    with pytest.raises(NotFoundError):
        svc.update(404, {"email": "anand@example.com"})


def test_find_or_create_matches_mobile_and_name(container, repos):
    svc = container.customer_service
    details = {"name": "Anand", "mobile": "9000000001", "propertyType": "agri", "ebServiceNumber": "EB-42"}

    first = svc.find_or_create_from_visit(details, now=NOW)
    again = svc.find_or_create_from_visit({"name": " ANAND ", "mobile": "9000000001"}, now=NOW)
    other = svc.find_or_create_from_visit({"name": "Anand Kumar", "mobile": "9000000001"}, now=NOW)

    assert first.customer_id == again.customer_id
    assert other.customer_id != first.customer_id
    assert first.created_from == "site_visit"
    assert first.property_type == PropertyType.AGRI
    assert first.eb_service_number == "EB-42"
    assert len(repos.customers.customers) == 2


def test_search_needs_two_characters(container):
    svc = container.customer_service
    svc.create({"name": "Anand", "mobile": "9000000001", "address": "Race Course Road"})
    svc.create({"name": "Bala", "mobile": "9000000002"})

    assert svc.search("a") == []
    assert svc.search(" ") == []
    assert [c.name for c in svc.search("race")] == ["Anand"]
    assert [c.name for c in svc.search("90000000")] == ["Anand", "Bala"]
    assert len(svc.list(limit=1)) == 1
