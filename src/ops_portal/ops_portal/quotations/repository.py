from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import QuotationStatus
from .model import Quotation


class QuotationRepository(Protocol):
    def get(self, quotation_id: int) -> Optional[Quotation]:
        raise NotImplementedError

    def create(self, quotation: Quotation) -> int:
        raise NotImplementedError

    def set_status(self, quotation_id: int, *, status: QuotationStatus, updated_at: datetime) -> bool:
        raise NotImplementedError

    def list_quotations(
        self,
        *,
        status: Optional[QuotationStatus] = None,
        customer_id: Optional[int] = None,
        limit: int = 100,
    ) -> Sequence[Quotation]:
        raise NotImplementedError
