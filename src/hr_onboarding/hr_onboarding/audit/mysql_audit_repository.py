from __future__ import annotations

from datetime import datetime, time
from typing import Any, Optional, Sequence

from ..core.enums import AuditAction
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_json, to_json
from .model import AuditFilter, AuditLogEntry
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(
        self,
        *,
        actor_id: Optional[str],
        action: AuditAction,
        resource_type: str,
        resource_id: Optional[str],
        before: Optional[dict[str, Any]],
        after: Optional[dict[str, Any]],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(actor_id, action, resource_type, resource_id, before_value, after_value)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (actor_id, action.value, resource_type, resource_id, to_json(before), to_json(after)),
            )
            return int(cur.lastrowid)

    def list(self, *, filters: AuditFilter, limit: int) -> Sequence[AuditLogEntry]:
        clauses = ["1=1"]
        params: list[object] = []

        if filters.action is not None:
            clauses.append("action=%s")
            params.append(filters.action.value)
        if filters.resource_type:
            clauses.append("resource_type=%s")
            params.append(filters.resource_type)
        if filters.actor_id:
            clauses.append("actor_id=%s")
            params.append(filters.actor_id)
        if filters.date_from:
            clauses.append("created_at >= %s")
            params.append(datetime.combine(filters.date_from, time.min))
        if filters.date_to:
            clauses.append("created_at <= %s")
            params.append(datetime.combine(filters.date_to, time.max))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT entry_id, actor_id, action, resource_type, resource_id,
                       before_value, after_value, created_at
                FROM audit_logs
                WHERE {where}
                ORDER BY created_at DESC, entry_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [
                AuditLogEntry(
                    entry_id=int(r["entry_id"]),
                    actor_id=r.get("actor_id"),
                    action=AuditAction(r["action"]),
                    resource_type=r["resource_type"],
                    resource_id=r.get("resource_id"),
                    before=from_json(r.get("before_value")),
                    after=from_json(r.get("after_value")),
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]
