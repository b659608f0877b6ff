from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.enums import Role
from ..core.exceptions import NotFoundError
from ..users.repository import UserRepository
from .model import ActivityLog, Notification
from .repository import ActivityRepository

logger = logging.getLogger(__name__)

ADMIN_ROLES = (Role.MASTER_ADMIN, Role.ADMIN)


class ActivityService:
    """Activity feed and in-app notifications.

    Other services call ``log`` / ``notify`` as a side effect of their main
    action, so a failure here is logged and never propagated to the caller.
    """

    def __init__(self, activities: ActivityRepository, users: UserRepository):
        self._activities = activities
        self._users = users

    def log(
        self,
        *,
        type: str,
        title: str,
        description: str,
        entity_id: Optional[str] = None,
        entity_type: Optional[str] = None,
        user_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Optional[int]:
        try:
            return self._activities.create_activity(
                type=type,
                title=title,
                description=description,
                entity_id=entity_id,
                entity_type=entity_type,
                user_id=user_id,
                created_at=now or now_local(),
            )
        except Exception:
            logger.exception("Failed to record activity %r", title)
            return None

    def notify(
        self,
        *,
        user_id: int,
        type: str,
        title: str,
        message: str,
        now: Optional[datetime] = None,
    ) -> Optional[int]:
        try:
            return self._activities.create_notification(
                user_id=int(user_id),
                type=type,
                title=title,
                message=message,
                created_at=now or now_local(),
            )
        except Exception:
            logger.exception("Failed to notify user %s (%r)", user_id, title)
            return None

    def notify_admins(self, *, type: str, title: str, message: str, now: Optional[datetime] = None) -> int:
        sent = 0
        for admin_id in self._users.list_ids_by_roles(ADMIN_ROLES):
            if self.notify(user_id=admin_id, type=type, title=title, message=message, now=now) is not None:
                sent += 1
        return sent

    def recent(self, *, limit: int = 20) -> Sequence[ActivityLog]:
        return self._activities.list_recent(limit=int(limit))

    def list_for_user(self, user_id: int, *, limit: int = 50) -> Sequence[ActivityLog]:
        return self._activities.list_for_user(int(user_id), limit=int(limit))

    def notifications_for(self, user_id: int, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        return self._activities.list_notifications(int(user_id), unread_only=unread_only, limit=int(limit))

    def mark_read(self, *, notification_id: int, user_id: int) -> None:
        if not self._activities.mark_read(notification_id=int(notification_id), user_id=int(user_id)):
            raise NotFoundError("Notification not found")
