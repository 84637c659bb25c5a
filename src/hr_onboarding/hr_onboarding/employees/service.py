from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..access.guard import AccessGuard
from ..access.model import Actor
from ..access.scope import can_view_employee, is_self
from ..audit.service import AuditService
from ..common.validators import optional_text, require_date, require_enum, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT, EMPLOYEE_SELF_SERVICE_FIELDS
from ..core.enums import Action, AuditAction, EmploymentStatus, LifecycleEventType, Resource, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .lifecycle_service import LifecycleService
from .model import WRITABLE_FIELDS, Employee
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)

AUDIT_RESOURCE = "employees"

# profile_id is only ever set through link_identity.
_HR_EDITABLE = frozenset(WRITABLE_FIELDS) - {"profile_id"}


class EmployeeService:
    """Employee directory use cases with row scoping by role."""

    def __init__(
        self,
        employees: EmployeeRepository,
        guard: AccessGuard,
        audit: AuditService,
        lifecycle: Optional[LifecycleService] = None,
    ):
        self._employees = employees
        self._guard = guard
        self._audit = audit
        self._lifecycle = lifecycle

    def resolve_self(self, actor: Actor) -> Optional[Employee]:
        return self._employees.get_by_profile_id(actor.actor_id)

    def _get_or_404(self, employee_id: int) -> Employee:
        employee = self._employees.get(int(employee_id))
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    def can_see(self, actor: Actor, employee: Employee) -> bool:
        if actor.is_hr_or_admin or is_self(actor, employee):
            return True
        return can_view_employee(actor, employee, actor_employee=self.resolve_self(actor))

    def get(self, *, actor: Actor, employee_id: int) -> Employee:
        self._guard.require(actor, Resource.EMPLOYEES, Action.READ)
        employee = self._get_or_404(employee_id)
        if not self.can_see(actor, employee):
            raise AuthorizationError("You may not view this employee")
        return employee

    def list(
        self,
        *,
        actor: Actor,
        status: Optional[EmploymentStatus] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[Employee]:
        self._guard.require(actor, Resource.EMPLOYEES, Action.READ)
        if actor.is_hr_or_admin:
            return self._employees.list_all(status=status, limit=int(limit))

        me = self.resolve_self(actor)
        if not me:
            return []
        visible = [me]
        if actor.role == Role.MANAGER:
            visible.extend(self._employees.list_direct_reports(me.employee_id))
        if status is not None:
            visible = [e for e in visible if e.status == status]
        return visible[: int(limit)]

    def create(self, *, actor: Actor, data: Mapping[str, Any]) -> Employee:
        self._guard.require(actor, Resource.EMPLOYEES, Action.CREATE)
        fields = self._clean(data, allowed=_HR_EDITABLE, employee_id=None)
        for required in ("employee_code", "full_name"):
            if not fields.get(required):
                raise ValidationError(f"{required} is required")
        fields.setdefault("status", EmploymentStatus.ACTIVE)

        employee_id = self._employees.create(fields=fields)
        created = self._get_or_404(employee_id)
        logger.info("Employee %s (%s) created by %s", employee_id, created.employee_code, actor.actor_id)
        self._audit.record(
            actor=actor,
            action=AuditAction.CREATE,
            resource_type=AUDIT_RESOURCE,
            resource_id=employee_id,
            after=created.to_dict(),
        )
        return created

    def update(self, *, actor: Actor, employee_id: int, patch: Mapping[str, Any]) -> Employee:
        self._guard.require(actor, Resource.EMPLOYEES, Action.UPDATE)
        before = self._get_or_404(employee_id)

        if actor.is_hr_or_admin:
            allowed = _HR_EDITABLE
        else:
            if not is_self(actor, before):
                raise AuthorizationError("You may only edit your own record")
            forbidden = set(patch) - EMPLOYEE_SELF_SERVICE_FIELDS
            if forbidden:
                raise AuthorizationError(f"You may not change: {', '.join(sorted(forbidden))}")
            allowed = EMPLOYEE_SELF_SERVICE_FIELDS

        fields = self._clean(patch, allowed=allowed, employee_id=before.employee_id)
        if not fields:
            return before

        self._employees.update_fields(before.employee_id, fields=fields)
        after = self._get_or_404(before.employee_id)
        self._audit.record(
            actor=actor,
            action=AuditAction.UPDATE,
            resource_type=AUDIT_RESOURCE,
            resource_id=before.employee_id,
            before=before.to_dict(),
            after=after.to_dict(),
        )
        if (
            self._lifecycle is not None
            and after.status == EmploymentStatus.TERMINATED
            and before.status != EmploymentStatus.TERMINATED
        ):
            self._lifecycle.record_status_event(
                actor=actor,
                employee=after,
                event_type=LifecycleEventType.OFFBOARDING,
                details={"previous_status": before.status.value},
            )
        return after

    def delete(self, *, actor: Actor, employee_id: int) -> None:
        self._guard.require(actor, Resource.EMPLOYEES, Action.DELETE)
        before = self._get_or_404(employee_id)
        if not self._employees.delete(before.employee_id):
            raise NotFoundError(f"Employee {employee_id} not found")
        logger.info("Employee %s deleted by %s", before.employee_id, actor.actor_id)
        self._audit.record(
            actor=actor,
            action=AuditAction.DELETE,
            resource_type=AUDIT_RESOURCE,
            resource_id=before.employee_id,
            before=before.to_dict(),
        )

    def link_identity(self, *, actor: Actor, email: str) -> Optional[Employee]:
        """Attach the caller's identity to the pre-created employee with this e-mail."""

        existing = self.resolve_self(actor)
        if existing:
            return existing

        email = require_non_empty(email, "email")
        employee_id = self._employees.link_profile(email=email, profile_id=actor.actor_id)
        if employee_id is None:
            logger.info("No unlinked employee matches %s for actor=%s", email, actor.actor_id)
            return None

        linked = self._get_or_404(employee_id)
        self._audit.record(
            actor=actor,
            action=AuditAction.UPDATE,
            resource_type=AUDIT_RESOURCE,
            resource_id=employee_id,
            before={"profile_id": None},
            after={"profile_id": actor.actor_id},
        )
        return linked

    def _clean(self, data: Mapping[str, Any], *, allowed: frozenset, employee_id: Optional[int]) -> dict[str, Any]:
        unknown = set(data) - set(WRITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(sorted(unknown))}")
        not_allowed = set(data) - set(allowed)
        if not_allowed:
            raise AuthorizationError(f"You may not change: {', '.join(sorted(not_allowed))}")

        out: dict[str, Any] = {}
        for key, value in data.items():
            if key in ("employee_code", "full_name"):
                out[key] = require_non_empty(value, key)
            elif key == "email":
                email = optional_text(value, key)
                if email and "@" not in email:
                    raise ValidationError("email is not a valid address")
                out[key] = email
            elif key == "hire_date":
                out[key] = require_date(value, key) if value else None
            elif key == "status":
                out[key] = require_enum(EmploymentStatus, value, key)
            elif key == "manager_id":
                out[key] = self._clean_manager(value, employee_id)
            else:
                out[key] = optional_text(value, key)
        return out

    def _clean_manager(self, value: Any, employee_id: Optional[int]) -> Optional[int]:
        if value in (None, ""):
            return None
        try:
            manager_id = int(value)
        except (TypeError, ValueError):
            raise ValidationError("manager_id must be an integer")
        if employee_id is not None and manager_id == employee_id:
            raise ValidationError("An employee cannot be their own manager")
        if not self._employees.get(manager_id):
            raise NotFoundError(f"Manager {manager_id} not found")
        return manager_id
