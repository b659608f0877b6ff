from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import ActivityLog, Notification
from .repository import ActivityRepository


def _row_to_activity(r: dict) -> ActivityLog:
    return ActivityLog(
        activity_id=int(r["activity_id"]),
        type=r["type"],
        title=r["title"],
        description=r.get("description") or "",
        entity_id=r.get("entity_id"),
        entity_type=r.get("entity_type"),
        user_id=int(r["user_id"]) if r.get("user_id") is not None else None,
        created_at=r["created_at"],
    )


def _row_to_notification(r: dict) -> Notification:
    return Notification(
        notification_id=int(r["notification_id"]),
        user_id=int(r["user_id"]),
        type=r["type"],
        title=r["title"],
        message=r.get("message") or "",
        is_read=bool(r.get("is_read")),
        created_at=r["created_at"],
    )


class MySQLActivityRepository(ActivityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO activity_logs(type, title, description, entity_id, entity_type, user_id, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (type, title, description, entity_id, entity_type, user_id, created_at),
            )
            return int(cur.lastrowid)

    def list_recent(self, *, limit: int) -> Sequence[ActivityLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM activity_logs ORDER BY created_at DESC LIMIT %s", (int(limit),))
            return [_row_to_activity(r) for r in fetchall(cur)]

    def list_for_user(self, user_id: int, *, limit: int) -> Sequence[ActivityLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM activity_logs WHERE user_id=%s ORDER BY created_at DESC LIMIT %s",
                (int(user_id), int(limit)),
            )
            return [_row_to_activity(r) for r in fetchall(cur)]

    def create_notification(
        self,
        *,
        user_id: int,
        type: str,
        title: str,
        message: str,
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(user_id, type, title, message, is_read, created_at)
                VALUES(%s,%s,%s,%s,0,%s)
                """,
                (int(user_id), type, title, message, created_at),
            )
            return int(cur.lastrowid)

    def list_notifications(self, user_id: int, *, unread_only: bool, limit: int) -> Sequence[Notification]:
        where = "user_id=%s AND is_read=0" if unread_only else "user_id=%s"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT * FROM notifications WHERE {where} ORDER BY created_at DESC LIMIT %s",
                (int(user_id), int(limit)),
            )
            return [_row_to_notification(r) for r in fetchall(cur)]

    def mark_read(self, *, notification_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1 WHERE notification_id=%s AND user_id=%s",
                (int(notification_id), int(user_id)),
            )
            return cur.rowcount > 0
