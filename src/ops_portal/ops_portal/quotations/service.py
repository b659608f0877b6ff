from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_GST_PERCENT
from ..core.enums import Department, MarketingProjectType, QuotationStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..customers.service import CustomerService
from ..site_visits.service import SiteVisitService
from .kw_utils import format_kw, parse_panel_watts, round_system_kw, system_kw
from .model import Quotation, QuotationItem, QuotationTotals
from .repository import QuotationRepository

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

PRICE_PER_KW = {
    MarketingProjectType.ON_GRID: 68000,
    MarketingProjectType.OFF_GRID: 85000,
    MarketingProjectType.HYBRID: 95000,
}
DEFAULT_PROJECT_VALUE = {
    MarketingProjectType.WATER_HEATER: 15000,
    MarketingProjectType.WATER_PUMP: 50000,
}
DEFAULT_SYSTEM_KW = 3

_PROJECT_LABELS = {
    MarketingProjectType.ON_GRID: "On-Grid",
    MarketingProjectType.OFF_GRID: "Off-Grid",
    MarketingProjectType.HYBRID: "Hybrid",
}

# draft -> sent -> approved/rejected; a draft may also be decided directly
_TRANSITIONS = {
    QuotationStatus.DRAFT: {QuotationStatus.SENT, QuotationStatus.APPROVED, QuotationStatus.REJECTED},
    QuotationStatus.SENT: {QuotationStatus.APPROVED, QuotationStatus.REJECTED},
    QuotationStatus.APPROVED: set(),
    QuotationStatus.REJECTED: set(),
}


def _money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _cfg(config: Mapping[str, Any], snake: str, camel: str) -> Any:
    value = config.get(snake)
    return config.get(camel) if value is None else value


def calculate_totals(items: Iterable[QuotationItem], *, gst_percent: float, discount: float = 0.0) -> QuotationTotals:
    subtotal = _money(sum((_money(i.quantity) * _money(i.unit_price) for i in items), Decimal("0")))
    applied_discount = min(_money(discount), subtotal)
    taxable = subtotal - applied_discount
    gst = _money(taxable * Decimal(str(gst_percent)) / Decimal("100"))
    return QuotationTotals(
        subtotal=float(subtotal),
        discount=float(applied_discount),
        taxable_amount=float(taxable),
        gst_amount=float(gst),
        grand_total=float(taxable + gst),
    )


def items_for_project(
    project_type: MarketingProjectType,
    config: Mapping[str, Any],
) -> tuple[list[QuotationItem], Optional[float]]:
    """Line items (and system size, for solar projects) from a visit's project configuration."""

    project_value = _cfg(config, "project_value", "projectValue")
    qty = int(config.get("qty") or 1)

    if project_type in PRICE_PER_KW:
        watts = parse_panel_watts(_cfg(config, "panel_watts", "panelWatts"))
        count = _cfg(config, "panel_count", "panelCount") or 0
        kw = system_kw(watts, count) or float(_cfg(config, "inverter_kw", "inverterKW") or 0) or DEFAULT_SYSTEM_KW
        value = float(project_value or round_system_kw(kw) * PRICE_PER_KW[project_type])
        description = f"{format_kw(kw)} kW {_PROJECT_LABELS[project_type]} solar power system"
        if watts and count:
            description += f" ({count} x {watts}W panels)"
        return [QuotationItem(description=description, quantity=1, unit_price=value)], kw

    value = float(project_value or DEFAULT_PROJECT_VALUE[project_type] * qty)
    if project_type == MarketingProjectType.WATER_HEATER:
        litre = config.get("litre") or 100
        description = f"{litre} L solar water heater"
    else:
        hp = _cfg(config, "drive_hp", "driveHP") or config.get("hp") or "1"
        description = f"{hp} HP solar water pump"
    return [QuotationItem(description=description, quantity=qty, unit_price=round(value / qty, 2))], None


def _parse_items(raw: Any) -> tuple[QuotationItem, ...]:
    if not raw:
        raise ValidationError("At least one quotation item is required")
    items = []
    for entry in raw:
        description = str(entry.get("description") or "").strip()
        if not description:
            raise ValidationError("Every item needs a description")
        try:
            quantity = float(entry.get("quantity", 1))
            unit_price = float(entry.get("unit_price", entry.get("unitPrice")))
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid quantity or price for item {description!r}")
        if quantity <= 0 or unit_price < 0:
            raise ValidationError(f"Invalid quantity or price for item {description!r}")
        items.append(QuotationItem(description=description, quantity=quantity, unit_price=unit_price))
    return tuple(items)


def new_quotation_number(now: datetime) -> str:
    return f"Q-{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:3].upper()}"


class QuotationService:
    def __init__(
        self,
        quotations: QuotationRepository,
        customers: CustomerService,
        site_visits: SiteVisitService,
        *,
        default_gst_percent: float = DEFAULT_GST_PERCENT,
    ):
        self._quotations = quotations
        self._customers = customers
        self._site_visits = site_visits
        self._default_gst = float(default_gst_percent)
        self._templates = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )

    def totals(self, quotation: Quotation) -> QuotationTotals:
        return calculate_totals(quotation.items, gst_percent=quotation.gst_percent, discount=quotation.discount)

    def create(self, data: Mapping[str, Any], *, created_by: int, now: Optional[datetime] = None) -> Quotation:
        now = now or now_local()
        customer_id = data.get("customer_id")
        if not customer_id:
            raise ValidationError("Customer is required")
        customer = self._customers.get(int(customer_id))

        try:
            gst = float(data.get("gst_percent", self._default_gst))
            discount = float(data.get("discount") or 0)
        except (TypeError, ValueError):
            raise ValidationError("GST percent and discount must be numbers")
        if not 0 <= gst <= 100:
            raise ValidationError("GST percent must be between 0 and 100")
        if discount < 0:
            raise ValidationError("Discount cannot be negative")

        raw_type = data.get("project_type")
        try:
            project_type = MarketingProjectType(raw_type) if raw_type else None
        except ValueError:
            raise ValidationError("Invalid project type")

        quotation = Quotation(
            quotation_id=0,
            quotation_number=new_quotation_number(now),
            customer_id=customer.customer_id,
            items=_parse_items(data.get("items")),
            gst_percent=gst,
            discount=discount,
            site_visit_id=data.get("site_visit_id"),
            project_type=project_type,
            system_kw=data.get("system_kw"),
            notes=data.get("notes") or None,
            created_by=int(created_by),
            created_at=now,
            updated_at=now,
        )
        return self._save(quotation)

    def create_from_site_visit(self, visit_id: int, *, created_by: int, now: Optional[datetime] = None) -> Quotation:
        now = now or now_local()
        visit = self._site_visits.get(visit_id)
        marketing = visit.marketing_data
        project = marketing.active_project if marketing else None
        if visit.department != Department.MARKETING or project is None:
            raise ValidationError("Quotations can only be created from marketing visits with a project configuration")

        project_type, config = project
        items, kw = items_for_project(project_type, config)

        customer_id = visit.customer_id
        if customer_id is None:
            customer_id = self._customers.find_or_create_from_visit(visit.customer.to_dict(), now=now).customer_id

        quotation = Quotation(
            quotation_id=0,
            quotation_number=new_quotation_number(now),
            customer_id=int(customer_id),
            items=tuple(items),
            gst_percent=self._default_gst,
            site_visit_id=visit.visit_id,
            project_type=project_type,
            system_kw=kw,
            notes=visit.outcome_notes or visit.notes,
            created_by=int(created_by),
            created_at=now,
            updated_at=now,
        )
        return self._save(quotation)

    def update_status(
        self,
        quotation_id: int,
        status: QuotationStatus | str,
        *,
        now: Optional[datetime] = None,
    ) -> Quotation:
        try:
            status = QuotationStatus(status)
        except ValueError:
            raise ValidationError(f"Invalid quotation status: {status}")
        quotation = self.get(quotation_id)
        if status == quotation.status:
            return quotation
        if status not in _TRANSITIONS[quotation.status]:
            raise ConflictError(f"Cannot change a {quotation.status.value} quotation to {status.value}")
        self._quotations.set_status(quotation.quotation_id, status=status, updated_at=now or now_local())
        logger.info("Quotation %s -> %s", quotation.quotation_number, status.value)
        return self.get(quotation.quotation_id)

    def get(self, quotation_id: int) -> Quotation:
        quotation = self._quotations.get(int(quotation_id))
        if not quotation:
            raise NotFoundError("Quotation not found")
        return quotation

    def list(
        self,
        *,
        status: Optional[QuotationStatus | str] = None,
        customer_id: Optional[int] = None,
        limit: int = 100,
    ) -> Sequence[Quotation]:
        try:
            status = QuotationStatus(status) if status else None
        except ValueError:
            raise ValidationError(f"Invalid quotation status: {status}")
        return self._quotations.list_quotations(status=status, customer_id=customer_id, limit=int(limit))

    def render_html(self, quotation_id: int) -> str:
        quotation = self.get(quotation_id)
        customer = self._customers.get(quotation.customer_id)
        template = self._templates.get_template("quotation.html")
        return template.render(
            quotation=quotation,
            customer=customer,
            totals=self.totals(quotation),
            system_kw=format_kw(quotation.system_kw) if quotation.system_kw else None,
        )

    def _save(self, quotation: Quotation) -> Quotation:
        quotation_id = self._quotations.create(quotation)
        logger.info("Quotation %s created for customer %s", quotation.quotation_number, quotation.customer_id)
        return replace(quotation, quotation_id=quotation_id)
