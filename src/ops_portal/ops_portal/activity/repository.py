from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import ActivityLog, Notification


class ActivityRepository(Protocol):
    def create_activity(
        self,
        *,
        type: str,
        title: str,
        description: str,
        entity_id: Optional[str],
        entity_type: Optional[str],
        user_id: Optional[int],
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def list_recent(self, *, limit: int) -> Sequence[ActivityLog]:
        raise NotImplementedError

    def list_for_user(self, user_id: int, *, limit: int) -> Sequence[ActivityLog]:
        raise NotImplementedError

    def create_notification(
        self,
        *,
        user_id: int,
        type: str,
        title: str,
        message: str,
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def list_notifications(self, user_id: int, *, unread_only: bool, limit: int) -> Sequence[Notification]:
        raise NotImplementedError

    def mark_read(self, *, notification_id: int, user_id: int) -> bool:
        raise NotImplementedError
