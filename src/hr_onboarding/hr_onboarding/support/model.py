from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Mapping, Optional

from ..common.datetime_utils import format_datetime
from ..core.constants import TICKET_NUMBER_PREFIX
from ..core.enums import SenderRole, TicketCategory, TicketPriority, TicketStatus

# open -> in_progress | closed; in_progress -> resolved | open; resolved -> closed | in_progress.
TICKET_TRANSITIONS: Mapping[TicketStatus, frozenset] = {
    TicketStatus.OPEN: frozenset({TicketStatus.IN_PROGRESS, TicketStatus.CLOSED}),
    TicketStatus.IN_PROGRESS: frozenset({TicketStatus.RESOLVED, TicketStatus.OPEN}),
    TicketStatus.RESOLVED: frozenset({TicketStatus.CLOSED, TicketStatus.IN_PROGRESS}),
    TicketStatus.CLOSED: frozenset(),
}

RATEABLE_TICKET_STATUSES = frozenset({TicketStatus.RESOLVED, TicketStatus.CLOSED})


def ticket_number_prefix(day: date) -> str:
    return f"{TICKET_NUMBER_PREFIX}-{day.strftime('%Y%m%d')}-"


def format_ticket_number(day: date, seq: int) -> str:
    """TKT-YYYYMMDD-NNNN"""

    return f"{ticket_number_prefix(day)}{seq:04d}"


@dataclass(frozen=True)
class SupportTicket:
    ticket_id: int
    ticket_number: str
    title: str
    description: str
    category: TicketCategory
    priority: TicketPriority
    status: TicketStatus
    created_by: str
    assigned_to: Optional[str] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    satisfaction_rating: Optional[int] = None
    satisfaction_feedback: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "ticket_id": self.ticket_id,
            "ticket_number": self.ticket_number,
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "priority": self.priority.value,
            "status": self.status.value,
            "created_by": self.created_by,
            "assigned_to": self.assigned_to,
            "resolved_at": format_datetime(self.resolved_at),
            "closed_at": format_datetime(self.closed_at),
            "satisfaction_rating": self.satisfaction_rating,
            "satisfaction_feedback": self.satisfaction_feedback,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }


@dataclass(frozen=True)
class TicketMessage:
    message_id: int
    ticket_id: int
    sender_id: Optional[str]
    sender_role: SenderRole
    body: str
    is_internal_note: bool = False
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "message_id": self.message_id,
            "ticket_id": self.ticket_id,
            "sender_id": self.sender_id,
            "sender_role": self.sender_role.value,
            "body": self.body,
            "is_internal_note": self.is_internal_note,
            "created_at": format_datetime(self.created_at),
        }
