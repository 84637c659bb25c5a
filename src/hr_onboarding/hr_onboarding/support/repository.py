from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import SenderRole, TicketCategory, TicketPriority, TicketStatus
from .model import SupportTicket, TicketMessage


class TicketRepository(Protocol):
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
        """Insert a ticket numbered with the next sequence for ``day``.

        Returns ``(ticket_id, ticket_number)``. Raises ConflictError if a concurrent
        insert took the same number.
        """

        raise NotImplementedError

    def get(self, ticket_id: int) -> Optional[SupportTicket]:
        raise NotImplementedError

    def list(
        self,
        *,
        created_by: Optional[str] = None,
        status: Optional[TicketStatus] = None,
        limit: int = 200,
    ) -> Sequence[SupportTicket]:
        raise NotImplementedError

    def update_fields(self, ticket_id: int, *, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def add_message(
        self,
        *,
        ticket_id: int,
        sender_id: Optional[str],
        sender_role: SenderRole,
        body: str,
        is_internal_note: bool,
    ) -> int:
        raise NotImplementedError

    def list_messages(self, ticket_id: int, *, include_internal: bool) -> Sequence[TicketMessage]:
        raise NotImplementedError
