from __future__ import annotations

from flask import Flask, request, send_file

from ..common.excel import XLSX_MIMETYPE
from ..common.http import actor_required, current_actor, json_body, ok, query_flag
from ..common.validators import require_date, require_enum
from ..core.enums import TaskStatus
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    tasks = container.task_service
    engine = container.template_engine
    templates = container.template_service
    aggregator = container.aggregator

    def _optional_int(value, field_name: str):
        if value in (None, ""):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field_name} must be an integer")

    def _optional_date(value, field_name: str):
        return require_date(value, field_name) if value else None

    def _tasks_payload(items):
        today = tasks.today()
        return [t.to_dict(today=today) for t in items]

    @app.route("/api/employees/<int:employee_id>/tasks", methods=["GET"], endpoint="list_employee_tasks")
    @actor_required
    def list_employee_tasks(employee_id: int):
        return ok(_tasks_payload(tasks.list_by_employee(actor=current_actor(), employee_id=employee_id)))

    @app.route("/api/employees/<int:employee_id>/tasks", methods=["POST"], endpoint="create_employee_task")
    @actor_required
    def create_employee_task(employee_id: int):
        task = tasks.create(actor=current_actor(), employee_id=employee_id, data=json_body())
        return ok(task.to_dict(today=tasks.today()), 201)

    @app.route("/api/employees/<int:employee_id>/tasks/apply-template", methods=["POST"], endpoint="apply_template")
    @actor_required
    def apply_template(employee_id: int):
        body = json_body()
        task_ids = engine.apply_template(
            actor=current_actor(),
            employee_id=employee_id,
            template_id=_optional_int(body.get("template_id"), "template_id"),
            anchor_date=_optional_date(body.get("anchor_date"), "anchor_date"),
        )
        return ok({"task_ids": task_ids}, 201 if task_ids else 200)

    @app.route("/api/employees/<int:employee_id>/onboarding/start", methods=["POST"], endpoint="start_onboarding")
    @actor_required
    def start_onboarding(employee_id: int):
        body = json_body()
        task_ids = engine.start_onboarding(
            actor=current_actor(),
            employee_id=employee_id,
            template_id=_optional_int(body.get("template_id"), "template_id"),
            anchor_date=_optional_date(body.get("anchor_date"), "anchor_date"),
        )
        return ok({"task_ids": task_ids})

    @app.route("/api/onboarding/bulk-start", methods=["POST"], endpoint="bulk_start_onboarding")
    @actor_required
    def bulk_start_onboarding():
        body = json_body()
        ids = body.get("employee_ids")
        if not isinstance(ids, list) or not ids:
            raise ValidationError("employee_ids must be a non-empty list")
        employee_ids = [_optional_int(i, "employee_ids") for i in ids]
        if None in employee_ids:
            raise ValidationError("employee_ids must not contain blanks")
        results = engine.apply_bulk(
            actor=current_actor(),
            employee_ids=employee_ids,
            template_id=_optional_int(body.get("template_id"), "template_id"),
        )
        return ok(
            [
                {"employee_id": eid, "task_ids": r} if isinstance(r, list) else {"employee_id": eid, "error": r}
                for eid, r in results.items()
            ]
        )

    @app.route("/api/employees/<int:employee_id>/onboarding/stats", methods=["GET"], endpoint="employee_stats")
    @actor_required
    def employee_stats(employee_id: int):
        return ok(aggregator.stats_for_employee(actor=current_actor(), employee_id=employee_id).to_dict())

    @app.route("/api/onboarding/progress", methods=["GET"], endpoint="org_progress")
    @actor_required
    def org_progress():
        return ok([r.to_dict() for r in aggregator.stats_org_wide(actor=current_actor())])

    @app.route("/api/onboarding/progress/export", methods=["GET"], endpoint="org_progress_export")
    @actor_required
    def org_progress_export():
        output = aggregator.export_org_wide_xlsx(actor=current_actor())
        return send_file(
            output,
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=f"onboarding_progress_{tasks.today().isoformat()}.xlsx",
        )

    @app.route("/api/tasks/mine", methods=["GET"], endpoint="my_tasks")
    @actor_required
    def my_tasks():
        return ok(_tasks_payload(tasks.list_mine(actor=current_actor())))

    @app.route("/api/tasks/review-queue", methods=["GET"], endpoint="task_review_queue")
    @actor_required
    def task_review_queue():
        return ok(_tasks_payload(tasks.list_review_queue(actor=current_actor())))

    @app.route("/api/tasks/<int:task_id>", methods=["GET"], endpoint="get_task")
    @actor_required
    def get_task(task_id: int):
        return ok(tasks.get(actor=current_actor(), task_id=task_id).to_dict(today=tasks.today()))

    @app.route("/api/tasks/<int:task_id>", methods=["PATCH"], endpoint="update_task")
    @actor_required
    def update_task(task_id: int):
        task = tasks.update(actor=current_actor(), task_id=task_id, patch=json_body())
        return ok(task.to_dict(today=tasks.today()))

    @app.route("/api/tasks/<int:task_id>", methods=["DELETE"], endpoint="delete_task")
    @actor_required
    def delete_task(task_id: int):
        tasks.delete(actor=current_actor(), task_id=task_id)
        return ok()

    @app.route("/api/tasks/<int:task_id>/transition", methods=["POST"], endpoint="transition_task")
    @actor_required
    def transition_task(task_id: int):
        body = json_body()
        task = tasks.transition(
            actor=current_actor(),
            task_id=task_id,
            to_status=require_enum(TaskStatus, body.get("status"), "status"),
            document_url=body.get("document_url"),
            reason=body.get("reason"),
        )
        return ok(task.to_dict(today=tasks.today()))

    @app.route("/api/tasks/<int:task_id>/submit", methods=["POST"], endpoint="submit_task")
    @actor_required
    def submit_task(task_id: int):
        task = tasks.submit(actor=current_actor(), task_id=task_id, document_url=json_body().get("document_url"))
        return ok(task.to_dict(today=tasks.today()))

    @app.route("/api/tasks/<int:task_id>/complete", methods=["POST"], endpoint="complete_task")
    @actor_required
    def complete_task(task_id: int):
        return ok(tasks.complete(actor=current_actor(), task_id=task_id).to_dict(today=tasks.today()))

    @app.route("/api/tasks/<int:task_id>/verify", methods=["POST"], endpoint="verify_task")
    @actor_required
    def verify_task(task_id: int):
        return ok(tasks.verify(actor=current_actor(), task_id=task_id).to_dict(today=tasks.today()))

    @app.route("/api/tasks/<int:task_id>/reject", methods=["POST"], endpoint="reject_task")
    @actor_required
    def reject_task(task_id: int):
        task = tasks.reject(actor=current_actor(), task_id=task_id, reason=json_body().get("reason", ""))
        return ok(task.to_dict(today=tasks.today()))

    @app.route("/api/tasks/<int:task_id>/document", methods=["POST"], endpoint="upload_task_document")
    @actor_required
    def upload_task_document(task_id: int):
        upload = request.files.get("file")
        if upload is None:
            raise ValidationError("file is required")
        task = tasks.upload_document(
            actor=current_actor(),
            task_id=task_id,
            data=upload.read(),
            filename=upload.filename or "",
            content_type=upload.mimetype,
        )
        return ok(task.to_dict(today=tasks.today()))

    @app.route("/api/onboarding/templates", methods=["GET"], endpoint="list_templates")
    @actor_required
    def list_templates():
        items = templates.list(actor=current_actor(), include_inactive=query_flag("include_inactive"))
        return ok([t.to_dict() for t in items])

    @app.route("/api/onboarding/templates", methods=["POST"], endpoint="create_template")
    @actor_required
    def create_template():
        body = json_body()
        template = templates.create(
            actor=current_actor(),
            name=body.get("name", ""),
            blueprints=body.get("blueprints", []),
            department=body.get("department"),
            role=body.get("role"),
            make_default=bool(body.get("is_default")),
        )
        return ok(template.to_dict(), 201)

    @app.route("/api/onboarding/templates/<int:template_id>", methods=["GET"], endpoint="get_template")
    @actor_required
    def get_template(template_id: int):
        return ok(templates.get(actor=current_actor(), template_id=template_id).to_dict())

    @app.route(
        "/api/onboarding/templates/<int:template_id>/deactivate",
        methods=["POST"],
        endpoint="deactivate_template",
    )
    @actor_required
    def deactivate_template(template_id: int):
        templates.deactivate(actor=current_actor(), template_id=template_id)
        return ok()

    @app.route("/api/onboarding/templates/<int:template_id>/default", methods=["POST"], endpoint="default_template")
    @actor_required
    def default_template(template_id: int):
        templates.set_default(actor=current_actor(), template_id=template_id)
        return ok()
