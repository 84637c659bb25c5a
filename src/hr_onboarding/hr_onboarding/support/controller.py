from __future__ import annotations

from flask import Flask, request

from ..common.http import actor_required, current_actor, json_body, ok, query_flag
from ..common.validators import require_enum
from ..core.enums import TicketStatus
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.support_service

    @app.route("/api/tickets", methods=["GET"], endpoint="list_tickets")
    @actor_required
    def list_tickets():
        status_raw = request.args.get("status")
        tickets = service.list_tickets(
            actor=current_actor(),
            status=require_enum(TicketStatus, status_raw, "status") if status_raw else None,
            mine=query_flag("mine"),
        )
        return ok([t.to_dict() for t in tickets])

    @app.route("/api/tickets", methods=["POST"], endpoint="open_ticket")
    @actor_required
    def open_ticket():
        body = json_body()
        ticket = service.open_ticket(
            actor=current_actor(),
            title=body.get("title", ""),
            description=body.get("description", ""),
            category=body.get("category"),
            priority=body.get("priority"),
        )
        return ok(ticket.to_dict(), 201)

    @app.route("/api/tickets/<int:ticket_id>", methods=["GET"], endpoint="get_ticket")
    @actor_required
    def get_ticket(ticket_id: int):
        ticket, messages = service.get_ticket(actor=current_actor(), ticket_id=ticket_id)
        return ok({"ticket": ticket.to_dict(), "messages": [m.to_dict() for m in messages]})

    @app.route("/api/tickets/<int:ticket_id>/messages", methods=["POST"], endpoint="add_ticket_message")
    @actor_required
    def add_ticket_message(ticket_id: int):
        body = json_body()
        message_id = service.add_message(
            actor=current_actor(),
            ticket_id=ticket_id,
            body=body.get("body", ""),
            internal=bool(body.get("internal")),
        )
        return ok({"message_id": message_id}, 201)

    @app.route("/api/tickets/<int:ticket_id>/assign", methods=["POST"], endpoint="assign_ticket")
    @actor_required
    def assign_ticket(ticket_id: int):
        ticket = service.assign(actor=current_actor(), ticket_id=ticket_id, assignee_id=json_body().get("assignee_id", ""))
        return ok(ticket.to_dict())

    @app.route("/api/tickets/<int:ticket_id>/status", methods=["POST"], endpoint="change_ticket_status")
    @actor_required
    def change_ticket_status(ticket_id: int):
        ticket = service.change_status(actor=current_actor(), ticket_id=ticket_id, status=json_body().get("status"))
        return ok(ticket.to_dict())

    @app.route("/api/tickets/<int:ticket_id>/rating", methods=["POST"], endpoint="rate_ticket")
    @actor_required
    def rate_ticket(ticket_id: int):
        body = json_body()
        ticket = service.rate(
            actor=current_actor(),
            ticket_id=ticket_id,
            rating=body.get("rating"),
            feedback=body.get("feedback"),
        )
        return ok(ticket.to_dict())
