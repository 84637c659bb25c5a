from __future__ import annotations

from flask import Flask, request

from ..common.http import actor_required, current_actor, json_body, ok
from ..common.validators import require_enum
from ..core.enums import EmploymentStatus
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.employee_service

    @app.route("/api/me", methods=["GET"], endpoint="me")
    @actor_required
    def me():
        actor = current_actor()
        employee = service.resolve_self(actor)
        return ok(
            {
                "actor_id": actor.actor_id,
                "role": actor.role.value,
                "employee": employee.to_dict() if employee else None,
                "permissions": container.guard.permissions_for(actor.role),
            }
        )

    @app.route("/api/me/link", methods=["POST"], endpoint="link_identity")
    @actor_required
    def link_identity():
        linked = service.link_identity(actor=current_actor(), email=json_body().get("email", ""))
        return ok({"employee": linked.to_dict() if linked else None})

    @app.route("/api/employees", methods=["GET"], endpoint="list_employees")
    @actor_required
    def list_employees():
        status_raw = request.args.get("status")
        status = require_enum(EmploymentStatus, status_raw, "status") if status_raw else None
        employees = service.list(actor=current_actor(), status=status)
        return ok([e.to_dict() for e in employees])

    @app.route("/api/employees", methods=["POST"], endpoint="create_employee")
    @actor_required
    def create_employee():
        employee = service.create(actor=current_actor(), data=json_body())
        return ok(employee.to_dict(), 201)

    @app.route("/api/employees/<int:employee_id>", methods=["GET"], endpoint="get_employee")
    @actor_required
    def get_employee(employee_id: int):
        return ok(service.get(actor=current_actor(), employee_id=employee_id).to_dict())

    @app.route("/api/employees/<int:employee_id>", methods=["PATCH"], endpoint="update_employee")
    @actor_required
    def update_employee(employee_id: int):
        employee = service.update(actor=current_actor(), employee_id=employee_id, patch=json_body())
        return ok(employee.to_dict())

    @app.route("/api/employees/<int:employee_id>", methods=["DELETE"], endpoint="delete_employee")
    @actor_required
    def delete_employee(employee_id: int):
        service.delete(actor=current_actor(), employee_id=employee_id)
        return ok()

    lifecycle = container.lifecycle_service

    @app.route("/api/employees/<int:employee_id>/lifecycle", methods=["GET"], endpoint="list_lifecycle_events")
    @actor_required
    def list_lifecycle_events(employee_id: int):
        events = lifecycle.list_events(actor=current_actor(), employee_id=employee_id)
        return ok([e.to_dict() for e in events])

    @app.route("/api/employees/<int:employee_id>/lifecycle", methods=["POST"], endpoint="record_lifecycle_event")
    @actor_required
    def record_lifecycle_event(employee_id: int):
        body = json_body()
        event = lifecycle.record_event(
            actor=current_actor(),
            employee_id=employee_id,
            event_type=body.get("event_type"),
            event_date=body.get("event_date"),
            details=body.get("details"),
        )
        return ok(event.to_dict(), 201)
