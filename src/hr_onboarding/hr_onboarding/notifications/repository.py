from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import NotificationKind
from .model import Notification


class NotificationRepository(Protocol):
    def create(
        self,
        *,
        user_id: str,
        title: str,
        message: str,
        kind: NotificationKind,
        action_url: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def list_for_user(self, *, user_id: str, unread_only: bool = False, limit: int = 200) -> Sequence[Notification]:
        raise NotImplementedError

    def count_unread(self, *, user_id: str) -> int:
        raise NotImplementedError

    def mark_read(self, *, notification_id: int, user_id: str) -> bool:
        """Mark one notification read; only matches rows owned by ``user_id``."""

        raise NotImplementedError

    def mark_all_read(self, *, user_id: str) -> int:
        raise NotImplementedError
