from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PropertyType

SOURCE_SITE_VISIT = "site_visit"
SOURCE_CUSTOMERS_PAGE = "customers_page"


@dataclass(frozen=True)
class Customer:
    customer_id: int
    name: str
    mobile: str
    address: Optional[str] = None
    email: Optional[str] = None
    eb_service_number: Optional[str] = None
    property_type: Optional[PropertyType] = None
    location: Optional[str] = None
    source: Optional[str] = None  # lead source (referral, walk-in, ...)
    created_from: str = SOURCE_CUSTOMERS_PAGE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def matches(self, *, mobile: str, name: str) -> bool:
        return self.mobile == (mobile or "").strip() and self.name.strip().lower() == (name or "").strip().lower()
