from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from ..access.guard import AccessGuard
from ..access.model import Actor
from ..audit.service import AuditService
from ..common.datetime_utils import now_local
from ..common.validators import optional_text, require_enum, require_non_empty
from ..core.constants import (
    DEFAULT_LIST_LIMIT,
    MAX_SATISFACTION_RATING,
    MIN_SATISFACTION_RATING,
    TICKET_NUMBER_ATTEMPTS,
)
from ..core.enums import (
    Action,
    AuditAction,
    NotificationKind,
    Resource,
    SenderRole,
    TicketCategory,
    TicketPriority,
    TicketStatus,
)
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ..notifications.service import NotificationService
from .model import RATEABLE_TICKET_STATUSES, TICKET_TRANSITIONS, SupportTicket, TicketMessage
from .repository import TicketRepository

logger = logging.getLogger(__name__)

AUDIT_RESOURCE = "support_tickets"


class SupportTicketService:
    def __init__(
        self,
        tickets: TicketRepository,
        guard: AccessGuard,
        audit: AuditService,
        notifications: NotificationService,
        *,
        clock: Callable = now_local,
    ):
        self._tickets = tickets
        self._guard = guard
        self._audit = audit
        self._notifications = notifications
        self._clock = clock

    def _ticket(self, ticket_id: int) -> SupportTicket:
        ticket = self._tickets.get(int(ticket_id))
        if not ticket:
            raise NotFoundError(f"Ticket {ticket_id} not found")
        return ticket

    def _require_access(self, actor: Actor, ticket: SupportTicket) -> None:
        if not actor.is_hr_or_admin and ticket.created_by != actor.actor_id:
            raise AuthorizationError("You may only access your own tickets")

    def open_ticket(
        self,
        *,
        actor: Actor,
        title: str,
        description: str,
        category,
        priority=TicketPriority.MEDIUM,
    ) -> SupportTicket:
        self._guard.require(actor, Resource.SUPPORT_TICKETS, Action.CREATE)
        title = require_non_empty(title, "title")
        description = require_non_empty(description, "description")
        category = require_enum(TicketCategory, category, "category")
        priority = require_enum(TicketPriority, priority or TicketPriority.MEDIUM, "priority")

        for attempt in range(1, TICKET_NUMBER_ATTEMPTS + 1):
            try:
                ticket_id, number = self._tickets.create(
                    day=self._clock().date(),
                    title=title,
                    description=description,
                    category=category,
                    priority=priority,
                    created_by=actor.actor_id,
                )
                break
            except ConflictError:
                logger.info("Ticket number collision (attempt %d/%d)", attempt, TICKET_NUMBER_ATTEMPTS)
                if attempt == TICKET_NUMBER_ATTEMPTS:
                    raise

        logger.info("Ticket %s opened by %s", number, actor.actor_id)
        created = self._ticket(ticket_id)
        self._audit.record(
            actor=actor,
            action=AuditAction.CREATE,
            resource_type=AUDIT_RESOURCE,
            resource_id=ticket_id,
            after=created.to_dict(),
        )
        return created

    def list_tickets(
        self,
        *,
        actor: Actor,
        status: Optional[TicketStatus] = None,
        mine: bool = False,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[SupportTicket]:
        self._guard.require(actor, Resource.SUPPORT_TICKETS, Action.READ)
        created_by = None if (actor.is_hr_or_admin and not mine) else actor.actor_id
        return self._tickets.list(created_by=created_by, status=status, limit=int(limit))

    def get_ticket(self, *, actor: Actor, ticket_id: int) -> tuple[SupportTicket, Sequence[TicketMessage]]:
        """The ticket and its thread; internal notes only for HR/admin."""

        self._guard.require(actor, Resource.SUPPORT_TICKETS, Action.READ)
        ticket = self._ticket(ticket_id)
        self._require_access(actor, ticket)
        messages = self._tickets.list_messages(ticket.ticket_id, include_internal=actor.is_hr_or_admin)
        return ticket, messages

    def add_message(self, *, actor: Actor, ticket_id: int, body: str, internal: bool = False) -> int:
        self._guard.require(actor, Resource.SUPPORT_TICKETS, Action.READ)
        ticket = self._ticket(ticket_id)
        self._require_access(actor, ticket)
        if internal and not actor.is_hr_or_admin:
            raise AuthorizationError("Only HR or admin may add internal notes")
        if ticket.status == TicketStatus.CLOSED:
            raise ValidationError("Ticket is closed")
        body = require_non_empty(body, "message")

        message_id = self._tickets.add_message(
            ticket_id=ticket.ticket_id,
            sender_id=actor.actor_id,
            sender_role=SenderRole.HR if actor.is_hr_or_admin else SenderRole.EMPLOYEE,
            body=body,
            is_internal_note=bool(internal),
        )
        if not internal and actor.actor_id != ticket.created_by:
            self._notifications.notify(
                user_id=ticket.created_by,
                title=f"New reply on {ticket.ticket_number}",
                message=body[:200],
            )
        elif not internal and ticket.assigned_to:
            self._notifications.notify(
                user_id=ticket.assigned_to,
                title=f"Requester replied on {ticket.ticket_number}",
                message=body[:200],
            )
        return message_id

    def assign(self, *, actor: Actor, ticket_id: int, assignee_id: str) -> SupportTicket:
        self._guard.require(actor, Resource.SUPPORT_TICKETS, Action.UPDATE)
        before = self._ticket(ticket_id)
        assignee_id = require_non_empty(assignee_id, "assignee")
        if before.status == TicketStatus.CLOSED:
            raise ValidationError("Ticket is closed")

        fields: dict = {"assigned_to": assignee_id}
        if before.status == TicketStatus.OPEN:
            fields["status"] = TicketStatus.IN_PROGRESS
        self._tickets.update_fields(before.ticket_id, fields=fields)

        after = self._ticket(before.ticket_id)
        self._audit.record(
            actor=actor,
            action=AuditAction.UPDATE,
            resource_type=AUDIT_RESOURCE,
            resource_id=before.ticket_id,
            before={"assigned_to": before.assigned_to, "status": before.status.value},
            after={"assigned_to": after.assigned_to, "status": after.status.value},
        )
        self._notifications.notify(
            user_id=assignee_id,
            title=f"Ticket {after.ticket_number} assigned to you",
            message=after.title,
        )
        return after

    def change_status(self, *, actor: Actor, ticket_id: int, status) -> SupportTicket:
        self._guard.require(actor, Resource.SUPPORT_TICKETS, Action.UPDATE)
        to_status = require_enum(TicketStatus, status, "status")
        before = self._ticket(ticket_id)
        if to_status not in TICKET_TRANSITIONS[before.status]:
            raise InvalidTransitionError(before.status, to_status)

        now = self._clock()
        fields: dict = {"status": to_status}
        if to_status == TicketStatus.RESOLVED:
            fields["resolved_at"] = now
        elif to_status == TicketStatus.CLOSED:
            fields["closed_at"] = now
        else:
            fields["resolved_at"] = None
        self._tickets.update_fields(before.ticket_id, fields=fields)
        self._tickets.add_message(
            ticket_id=before.ticket_id,
            sender_id=None,
            sender_role=SenderRole.SYSTEM,
            body=f"Status changed from {before.status.value} to {to_status.value}",
            is_internal_note=False,
        )

        after = self._ticket(before.ticket_id)
        self._audit.record(
            actor=actor,
            action=AuditAction.TRANSITION,
            resource_type=AUDIT_RESOURCE,
            resource_id=before.ticket_id,
            before={"status": before.status.value},
            after={"status": after.status.value},
        )
        self._notifications.notify(
            user_id=after.created_by,
            title=f"Ticket {after.ticket_number} is {to_status.value.replace('_', ' ')}",
            message=after.title,
            kind=NotificationKind.SUCCESS if to_status == TicketStatus.RESOLVED else NotificationKind.INFO,
        )
        return after

    def rate(self, *, actor: Actor, ticket_id: int, rating, feedback: Optional[str] = None) -> SupportTicket:
        self._guard.require(actor, Resource.SUPPORT_TICKETS, Action.READ)
        ticket = self._ticket(ticket_id)
        if ticket.created_by != actor.actor_id:
            raise AuthorizationError("Only the requester may rate a ticket")
        if ticket.status not in RATEABLE_TICKET_STATUSES:
            raise ValidationError("Only resolved or closed tickets can be rated")
        try:
            value = int(rating)
        except (TypeError, ValueError):
            raise ValidationError("rating must be an integer")
        if not MIN_SATISFACTION_RATING <= value <= MAX_SATISFACTION_RATING:
            raise ValidationError(f"rating must be between {MIN_SATISFACTION_RATING} and {MAX_SATISFACTION_RATING}")

        self._tickets.update_fields(
            ticket.ticket_id,
            fields={"satisfaction_rating": value, "satisfaction_feedback": optional_text(feedback, "feedback")},
        )
        return self._ticket(ticket.ticket_id)
