from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class ActivityLog:
    activity_id: int
    type: str
    title: str
    description: str
    entity_id: Optional[str]
    entity_type: Optional[str]
    user_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class Notification:
    notification_id: int
    user_id: int
    type: str
    title: str
    message: str
    is_read: bool
    created_at: datetime
