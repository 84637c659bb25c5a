from __future__ import annotations

from typing import Any, Optional, Sequence

from ..access.guard import AccessGuard
from ..access.model import Actor
from ..audit.service import AuditService
from ..common.validators import optional_text, require_enum, require_non_empty, require_non_negative
from ..core.enums import Action, AuditAction, Priority, Resource, TaskKind
from ..core.exceptions import NotFoundError, ValidationError
from .model import OnboardingTemplate, TaskBlueprint
from .repository import TemplateRepository

AUDIT_RESOURCE = "onboarding_templates"


def parse_blueprints(raw: Any) -> list[TaskBlueprint]:
    if not isinstance(raw, list):
        raise ValidationError("blueprints must be a list")

    out: list[TaskBlueprint] = []
    for i, item in enumerate(raw, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f"blueprint #{i} must be an object")
        out.append(
            TaskBlueprint(
                name=require_non_empty(item.get("name"), f"blueprint #{i} name"),
                kind=require_enum(TaskKind, item.get("kind") or TaskKind.GENERAL, f"blueprint #{i} kind"),
                priority=require_enum(Priority, item.get("priority") or Priority.MEDIUM, f"blueprint #{i} priority"),
                description=optional_text(item.get("description"), f"blueprint #{i} description"),
                assigned_to=optional_text(item.get("assigned_to"), f"blueprint #{i} assigned_to"),
                offset_days=require_non_negative(item.get("offset_days", 0), f"blueprint #{i} offset_days"),
            )
        )
    return out


class TemplateService:
    """HR/admin management of onboarding templates."""

    def __init__(self, templates: TemplateRepository, guard: AccessGuard, audit: AuditService):
        self._templates = templates
        self._guard = guard
        self._audit = audit

    def list(self, *, actor: Actor, include_inactive: bool = False) -> Sequence[OnboardingTemplate]:
        self._guard.require(actor, Resource.ONBOARDING_TEMPLATES, Action.READ)
        return self._templates.list(include_inactive=include_inactive)

    def get(self, *, actor: Actor, template_id: int) -> OnboardingTemplate:
        self._guard.require(actor, Resource.ONBOARDING_TEMPLATES, Action.READ)
        template = self._templates.get(int(template_id))
        if not template:
            raise NotFoundError(f"Template {template_id} not found")
        return template

    def create(
        self,
        *,
        actor: Actor,
        name: str,
        blueprints: Any,
        department: Optional[str] = None,
        role: Optional[str] = None,
        make_default: bool = False,
    ) -> OnboardingTemplate:
        self._guard.require(actor, Resource.ONBOARDING_TEMPLATES, Action.CREATE)
        name = require_non_empty(name, "name")
        parsed = parse_blueprints(blueprints)

        template_id = self._templates.create(
            name=name,
            blueprints=parsed,
            department=optional_text(department, "department"),
            role=optional_text(role, "role"),
        )
        if make_default:
            self._templates.set_default(template_id)

        created = self.get(actor=actor, template_id=template_id)
        self._audit.record(
            actor=actor,
            action=AuditAction.CREATE,
            resource_type=AUDIT_RESOURCE,
            resource_id=template_id,
            after=created.to_dict(),
        )
        return created

    def deactivate(self, *, actor: Actor, template_id: int) -> None:
        self._guard.require(actor, Resource.ONBOARDING_TEMPLATES, Action.UPDATE)
        if not self._templates.set_active(int(template_id), is_active=False):
            raise NotFoundError(f"Template {template_id} not found")
        self._audit.record(
            actor=actor,
            action=AuditAction.UPDATE,
            resource_type=AUDIT_RESOURCE,
            resource_id=template_id,
            after={"is_active": False, "is_default": False},
        )

    def set_default(self, *, actor: Actor, template_id: int) -> None:
        self._guard.require(actor, Resource.ONBOARDING_TEMPLATES, Action.UPDATE)
        template = self.get(actor=actor, template_id=template_id)
        if not template.is_active:
            raise ValidationError("Only an active template can be the default")
        if not self._templates.set_default(template.template_id):
            raise NotFoundError(f"Template {template_id} not found")
        self._audit.record(
            actor=actor,
            action=AuditAction.UPDATE,
            resource_type=AUDIT_RESOURCE,
            resource_id=template.template_id,
            before={"is_default": template.is_default},
            after={"is_default": True},
        )
