from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.form_sanitizer import sanitize_form_data
from ..common.validators import (
    raise_if_invalid,
    validate_address,
    validate_customer_name,
    validate_email,
    validate_mobile,
)
from ..core.enums import PropertyType
from ..core.exceptions import NotFoundError, ValidationError
from .model import SOURCE_CUSTOMERS_PAGE, SOURCE_SITE_VISIT, Customer
from .repository import CustomerRepository

logger = logging.getLogger(__name__)

NULLABLE_FIELDS = ("address", "email", "eb_service_number", "location", "source")

# Site visit payloads use camelCase keys from the mobile client.
_VISIT_KEYS = {"ebServiceNumber": "eb_service_number", "propertyType": "property_type"}


def _clean(data: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
    fields = sanitize_form_data(
        {_VISIT_KEYS.get(k, k): v.strip() if isinstance(v, str) else v for k, v in data.items()},
        NULLABLE_FIELDS,
    )

    if not partial or "name" in fields:
        raise_if_invalid(validate_customer_name(fields.get("name")))
    if not partial or "mobile" in fields:
        raise_if_invalid(validate_mobile(fields.get("mobile")))
    if fields.get("address"):
        raise_if_invalid(validate_address(fields["address"]))
    if fields.get("email"):
        raise_if_invalid(validate_email(fields["email"]))
    if fields.get("property_type"):
        try:
            fields["property_type"] = PropertyType(fields["property_type"])
        except ValueError:
            raise ValidationError("Invalid property type")
    return fields


class CustomerService:
    def __init__(self, customers: CustomerRepository):
        self._customers = customers

    def create(
        self,
        data: Mapping[str, Any],
        *,
        created_from: str = SOURCE_CUSTOMERS_PAGE,
        now: Optional[datetime] = None,
    ) -> Customer:
        now = now or now_local()
        fields = _clean(data, partial=False)
        fields.update(created_from=created_from, created_at=now, updated_at=now)
        customer_id = self._customers.create(fields=fields)
        logger.info("Customer %s created (%s)", customer_id, created_from)
        return self.get(customer_id)

    def update(self, customer_id: int, changes: Mapping[str, Any], *, now: Optional[datetime] = None) -> Customer:
        self.get(customer_id)
        fields = _clean(changes, partial=True)
        fields.pop("created_from", None)
        fields.pop("created_at", None)
        if fields:
            fields["updated_at"] = now or now_local()
            self._customers.update(int(customer_id), fields=fields)
        return self.get(customer_id)

    def find_or_create_from_visit(self, details: Mapping[str, Any], *, now: Optional[datetime] = None) -> Customer:
        """Reuse the customer with the same mobile and name (case-insensitive)."""

        mobile = str(details.get("mobile") or "").strip()
        name = str(details.get("name") or "").strip()
        for existing in self._customers.find_by_mobile(mobile):
            if existing.matches(mobile=mobile, name=name):
                return existing
        return self.create(details, created_from=SOURCE_SITE_VISIT, now=now)

    def search(self, term: str, *, limit: int = 20) -> Sequence[Customer]:
        term = (term or "").strip()
        if len(term) < 2:
            return []
        return self._customers.search(term, limit=int(limit))

    def get(self, customer_id: int) -> Customer:
        customer = self._customers.get(int(customer_id))
        if not customer:
            raise NotFoundError("Customer not found")
        return customer

    def list(self, *, limit: int = 100, offset: int = 0) -> Sequence[Customer]:
        return self._customers.list_customers(limit=int(limit), offset=int(offset))
