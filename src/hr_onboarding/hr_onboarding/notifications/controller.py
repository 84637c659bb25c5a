from __future__ import annotations

from flask import Flask

from ..common.http import actor_required, current_actor, json_body, ok, query_flag
from ..common.validators import require_enum
from ..core.enums import NotificationKind
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.notification_service

    @app.route("/api/notifications", methods=["GET"], endpoint="list_notifications")
    @actor_required
    def list_notifications():
        items = service.list_for_user(actor=current_actor(), unread_only=query_flag("unread"))
        return ok([n.to_dict() for n in items])

    @app.route("/api/notifications/unread-count", methods=["GET"], endpoint="unread_notifications")
    @actor_required
    def unread_notifications():
        return ok({"unread": service.unread_count(actor=current_actor())})

    @app.route("/api/notifications/<int:notification_id>/read", methods=["POST"], endpoint="read_notification")
    @actor_required
    def read_notification(notification_id: int):
        service.mark_read(actor=current_actor(), notification_id=notification_id)
        return ok()

    @app.route("/api/notifications/read-all", methods=["POST"], endpoint="read_all_notifications")
    @actor_required
    def read_all_notifications():
        return ok({"updated": service.mark_all_read(actor=current_actor())})

    @app.route("/api/notifications/broadcast", methods=["POST"], endpoint="broadcast_notification")
    @actor_required
    def broadcast_notification():
        body = json_body()
        user_ids = body.get("user_ids")
        if not isinstance(user_ids, list) or not user_ids:
            raise ValidationError("user_ids must be a non-empty list")
        sent = service.broadcast(
            actor=current_actor(),
            user_ids=[str(u) for u in user_ids if u],
            title=body.get("title", ""),
            message=body.get("message", ""),
            kind=require_enum(NotificationKind, body.get("kind") or NotificationKind.INFO, "kind"),
        )
        return ok({"sent": sent})
