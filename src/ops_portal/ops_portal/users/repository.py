from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from ..core.enums import Department, Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for users.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(self, *, username: str, password_hash: str, full_name: str, role: Role, fields: Mapping[str, Any]) -> int:
        """``fields`` holds optional HR columns (department, designation, ...)."""

        raise NotImplementedError

    def update_user(self, user_id: int, *, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def list_users(
        self,
        *,
        department: Optional[Department] = None,
        active_only: bool = False,
        search: Optional[str] = None,
    ) -> Sequence[User]:
        raise NotImplementedError

    def list_ids_by_roles(self, roles: Iterable[Role]) -> Sequence[int]:
        raise NotImplementedError
