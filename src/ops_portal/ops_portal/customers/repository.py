from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Customer


class CustomerRepository(Protocol):
    def get(self, customer_id: int) -> Optional[Customer]:
        raise NotImplementedError

    def find_by_mobile(self, mobile: str) -> Sequence[Customer]:
        raise NotImplementedError

    def create(self, *, fields: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def update(self, customer_id: int, *, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def search(self, term: str, *, limit: int = 20) -> Sequence[Customer]:
        """Case-insensitive match on name, mobile or address."""

        raise NotImplementedError

    def list_customers(self, *, limit: int = 100, offset: int = 0) -> Sequence[Customer]:
        raise NotImplementedError
