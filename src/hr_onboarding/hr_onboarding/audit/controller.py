from __future__ import annotations

from flask import Flask, request, send_file

from ..common.excel import XLSX_MIMETYPE
from ..common.http import actor_required, current_actor, ok
from ..common.validators import require_date, require_enum
from ..core.constants import DEFAULT_AUDIT_LIST_LIMIT
from ..core.enums import AuditAction
from ..core.exceptions import ValidationError
from ..container import Container
from .model import AuditFilter


def register(app: Flask, container: Container) -> None:
    service = container.audit_service

    def _filters() -> AuditFilter:
        args = request.args
        return AuditFilter(
            action=require_enum(AuditAction, args["action"], "action") if args.get("action") else None,
            resource_type=(args.get("resource_type") or "").strip() or None,
            actor_id=(args.get("actor_id") or "").strip() or None,
            date_from=require_date(args["date_from"], "date_from") if args.get("date_from") else None,
            date_to=require_date(args["date_to"], "date_to") if args.get("date_to") else None,
        )

    @app.route("/api/audit-logs", methods=["GET"], endpoint="list_audit_logs")
    @actor_required
    def list_audit_logs():
        try:
            limit = int(request.args.get("limit") or DEFAULT_AUDIT_LIST_LIMIT)
        except ValueError:
            raise ValidationError("limit must be an integer")
        entries = service.list_entries(actor=current_actor(), filters=_filters(), limit=limit)
        return ok([e.to_dict() for e in entries])

    @app.route("/api/audit-logs/export", methods=["GET"], endpoint="export_audit_logs")
    @actor_required
    def export_audit_logs():
        output = service.export_xlsx(actor=current_actor(), filters=_filters())
        return send_file(output, mimetype=XLSX_MIMETYPE, as_attachment=True, download_name="audit_logs.xlsx")
