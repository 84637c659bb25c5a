from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import NotificationKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Notification
from .repository import NotificationRepository


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: str,
        title: str,
        message: str,
        kind: NotificationKind,
        action_url: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(user_id, title, message, kind, action_url)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (user_id, title, message, kind.value, action_url),
            )
            return int(cur.lastrowid)

    def list_for_user(self, *, user_id: str, unread_only: bool = False, limit: int = 200) -> Sequence[Notification]:
        where = "user_id=%s AND is_read=0" if unread_only else "user_id=%s"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT notification_id, user_id, title, message, kind, is_read, action_url, created_at
                FROM notifications
                WHERE {where}
                ORDER BY created_at DESC, notification_id DESC
                LIMIT %s
                """,
                (user_id, int(limit)),
            )
            return [
                Notification(
                    notification_id=int(r["notification_id"]),
                    user_id=r["user_id"],
                    title=r["title"],
                    message=r["message"],
                    kind=NotificationKind(r["kind"]),
                    is_read=bool(r["is_read"]),
                    action_url=r.get("action_url"),
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]

    def count_unread(self, *, user_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM notifications WHERE user_id=%s AND is_read=0", (user_id,))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def mark_read(self, *, notification_id: int, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1 WHERE notification_id=%s AND user_id=%s",
                (int(notification_id), user_id),
            )
            return cur.rowcount > 0

    def mark_all_read(self, *, user_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE notifications SET is_read=1 WHERE user_id=%s AND is_read=0", (user_id,))
            return int(cur.rowcount)
