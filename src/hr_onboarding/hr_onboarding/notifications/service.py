from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..access.guard import AccessGuard
from ..access.model import Actor
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import Action, NotificationKind, Resource
from ..core.exceptions import NotFoundError
from .model import Notification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, notifications: NotificationRepository, guard: AccessGuard):
        self._notifications = notifications
        self._guard = guard

    def notify(
        self,
        *,
        user_id: Optional[str],
        title: str,
        message: str,
        kind: NotificationKind = NotificationKind.INFO,
        action_url: Optional[str] = None,
    ) -> Optional[int]:
        """Best-effort delivery: a failure is logged and never reaches the caller."""

        if not user_id:
            logger.debug("Notification '%s' dropped: recipient has no linked identity", title)
            return None
        try:
            return self._notifications.create(
                user_id=user_id,
                title=title,
                message=message,
                kind=kind,
                action_url=action_url,
            )
        except Exception as e:
            logger.warning("Notification '%s' to user=%s failed: %s", title, user_id, e)
            return None

    def list_for_user(
        self,
        *,
        actor: Actor,
        unread_only: bool = False,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[Notification]:
        self._guard.require(actor, Resource.NOTIFICATIONS, Action.READ)
        return self._notifications.list_for_user(user_id=actor.actor_id, unread_only=unread_only, limit=int(limit))

    def unread_count(self, *, actor: Actor) -> int:
        self._guard.require(actor, Resource.NOTIFICATIONS, Action.READ)
        return self._notifications.count_unread(user_id=actor.actor_id)

    def mark_read(self, *, actor: Actor, notification_id: int) -> None:
        self._guard.require(actor, Resource.NOTIFICATIONS, Action.UPDATE)
        if not self._notifications.mark_read(notification_id=int(notification_id), user_id=actor.actor_id):
            raise NotFoundError("Notification not found")

    def mark_all_read(self, *, actor: Actor) -> int:
        self._guard.require(actor, Resource.NOTIFICATIONS, Action.UPDATE)
        return self._notifications.mark_all_read(user_id=actor.actor_id)

    def broadcast(
        self,
        *,
        actor: Actor,
        user_ids: Sequence[str],
        title: str,
        message: str,
        kind: NotificationKind = NotificationKind.INFO,
    ) -> int:
        """HR announcement to several users; returns how many were delivered."""

        self._guard.require(actor, Resource.NOTIFICATIONS, Action.CREATE)
        title = require_non_empty(title, "Title")
        message = require_non_empty(message, "Message")
        sent = 0
        for uid in dict.fromkeys(user_ids):
            if self.notify(user_id=uid, title=title, message=message, kind=kind) is not None:
                sent += 1
        return sent
