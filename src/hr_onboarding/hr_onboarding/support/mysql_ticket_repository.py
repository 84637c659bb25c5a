from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import SenderRole, TicketCategory, TicketPriority, TicketStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import SupportTicket, TicketMessage, format_ticket_number, ticket_number_prefix
from .repository import TicketRepository

_SELECT = """
    SELECT ticket_id, ticket_number, title, description, category, priority, status,
           created_by, assigned_to, resolved_at, closed_at, satisfaction_rating,
           satisfaction_feedback, created_at, updated_at
    FROM support_tickets
"""

_UPDATABLE = (
    "title",
    "description",
    "category",
    "priority",
    "status",
    "assigned_to",
    "resolved_at",
    "closed_at",
    "satisfaction_rating",
    "satisfaction_feedback",
)


def _row_to_ticket(r: dict) -> SupportTicket:
    return SupportTicket(
        ticket_id=int(r["ticket_id"]),
        ticket_number=r["ticket_number"],
        title=r["title"],
        description=r["description"],
        category=TicketCategory(r["category"]),
        priority=TicketPriority(r["priority"]),
        status=TicketStatus(r["status"]),
        created_by=r["created_by"],
        assigned_to=r.get("assigned_to"),
        resolved_at=r.get("resolved_at"),
        closed_at=r.get("closed_at"),
        satisfaction_rating=int(r["satisfaction_rating"]) if r.get("satisfaction_rating") is not None else None,
        satisfaction_feedback=r.get("satisfaction_feedback"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLTicketRepository(TicketRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        day: date,
        title: str,
        description: str,
        category: TicketCategory,
        priority: TicketPriority,
        created_by: str,
    ) -> tuple[int, str]:
        prefix = ticket_number_prefix(day)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ticket_number FROM support_tickets
                WHERE ticket_number LIKE %s
                ORDER BY ticket_number DESC
                LIMIT 1
                FOR UPDATE
                """,
                (prefix + "%",),
            )
            last = fetchone(cur)
            seq = int(last["ticket_number"][len(prefix):]) + 1 if last else 1
            number = format_ticket_number(day, seq)

            cur.execute(
                """
                INSERT INTO support_tickets(ticket_number, title, description, category, priority, status, created_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (number, title, description, category.value, priority.value, TicketStatus.OPEN.value, created_by),
            )
            return int(cur.lastrowid), number

    def get(self, ticket_id: int) -> Optional[SupportTicket]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE ticket_id=%s", (int(ticket_id),))
            row = fetchone(cur)
            return _row_to_ticket(row) if row else None

    def list(
        self,
        *,
        created_by: Optional[str] = None,
        status: Optional[TicketStatus] = None,
        limit: int = 200,
    ) -> Sequence[SupportTicket]:
        clauses = ["1=1"]
        params: list[object] = []
        if created_by:
            clauses.append("created_by=%s")
            params.append(created_by)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE {' AND '.join(clauses)} ORDER BY created_at DESC, ticket_id DESC LIMIT %s",
                tuple(params + [int(limit)]),
            )
            return [_row_to_ticket(r) for r in fetchall(cur)]

    def update_fields(self, ticket_id: int, *, fields: Mapping[str, Any]) -> bool:
        cols = [c for c in _UPDATABLE if c in fields]
        if not cols:
            return False
        values = tuple(v.value if isinstance(v, Enum) else v for v in (fields[c] for c in cols))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE support_tickets SET {', '.join(f'{c}=%s' for c in cols)} WHERE ticket_id=%s",
                values + (int(ticket_id),),
            )
            return cur.rowcount > 0

    def add_message(
        self,
        *,
        ticket_id: int,
        sender_id: Optional[str],
        sender_role: SenderRole,
        body: str,
        is_internal_note: bool,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO support_ticket_messages(ticket_id, sender_id, sender_role, body, is_internal_note)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(ticket_id), sender_id, sender_role.value, body, 1 if is_internal_note else 0),
            )
            return int(cur.lastrowid)

    def list_messages(self, ticket_id: int, *, include_internal: bool) -> Sequence[TicketMessage]:
        where = "ticket_id=%s" if include_internal else "ticket_id=%s AND is_internal_note=0"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT message_id, ticket_id, sender_id, sender_role, body, is_internal_note, created_at
                FROM support_ticket_messages
                WHERE {where}
                ORDER BY created_at, message_id
                """,
                (int(ticket_id),),
            )
            return [
                TicketMessage(
                    message_id=int(r["message_id"]),
                    ticket_id=int(r["ticket_id"]),
                    sender_id=r.get("sender_id"),
                    sender_role=SenderRole(r["sender_role"]),
                    body=r["body"],
                    is_internal_note=bool(r.get("is_internal_note")),
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]
