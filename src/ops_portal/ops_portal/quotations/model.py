from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import MarketingProjectType, QuotationStatus


@dataclass(frozen=True)
class QuotationItem:
    description: str
    quantity: float
    unit_price: float

    @property
    def amount(self) -> float:
        return self.quantity * self.unit_price

    def to_dict(self) -> dict:
        return {"description": self.description, "quantity": self.quantity, "unit_price": self.unit_price}


@dataclass(frozen=True)
class QuotationTotals:
    subtotal: float
    discount: float
    taxable_amount: float
    gst_amount: float
    grand_total: float


@dataclass(frozen=True)
class Quotation:
    quotation_id: int
    quotation_number: str
    customer_id: int
    items: tuple[QuotationItem, ...]
    gst_percent: float
    discount: float = 0.0
    site_visit_id: Optional[int] = None
    project_type: Optional[MarketingProjectType] = None
    system_kw: Optional[float] = None
    status: QuotationStatus = QuotationStatus.DRAFT
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    customer_name: Optional[str] = None
