from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import NotificationKind


@dataclass(frozen=True)
class Notification:
    notification_id: int
    user_id: str
    title: str
    message: str
    kind: NotificationKind
    is_read: bool
    created_at: datetime
    action_url: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "notification_id": self.notification_id,
            "user_id": self.user_id,
            "title": self.title,
            "message": self.message,
            "kind": self.kind.value,
            "is_read": self.is_read,
            "action_url": self.action_url,
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }
