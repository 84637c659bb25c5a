from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Mapping, Optional, Sequence

from ..access.guard import AccessGuard
from ..access.model import Actor
from ..access.scope import can_view_employee
from ..audit.service import AuditService
from ..common.datetime_utils import now_local
from ..common.validators import require_date, require_enum
from ..core.enums import Action, AuditAction, LifecycleEventType, Resource
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .lifecycle_model import LifecycleEvent, NewLifecycleEvent
from .lifecycle_repository import LifecycleRepository
from .model import Employee
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)

AUDIT_RESOURCE = "employee_lifecycle_events"


class LifecycleService:
    """Employee timeline: onboarding, promotions, transfers and offboarding.

    HR and admins record events; anyone who may see the employee may read the
    timeline. Status changes made elsewhere (starting onboarding, terminating)
    append their event through :meth:`record_status_event`.
    """

    def __init__(
        self,
        events: LifecycleRepository,
        employees: EmployeeRepository,
        guard: AccessGuard,
        audit: AuditService,
        *,
        clock: Callable = now_local,
    ):
        self._events = events
        self._employees = employees
        self._guard = guard
        self._audit = audit
        self._clock = clock

    def _employee(self, employee_id: int) -> Employee:
        employee = self._employees.get(int(employee_id))
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    def list_events(self, *, actor: Actor, employee_id: int) -> Sequence[LifecycleEvent]:
        self._guard.require(actor, Resource.EMPLOYEES, Action.READ)
        employee = self._employee(employee_id)
        me = None if actor.is_hr_or_admin else self._employees.get_by_profile_id(actor.actor_id)
        if not can_view_employee(actor, employee, actor_employee=me):
            raise AuthorizationError("You may not view this employee's history")
        return self._events.list_for_employee(employee.employee_id)

    def record_event(
        self,
        *,
        actor: Actor,
        employee_id: int,
        event_type: Any,
        event_date: Any = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> LifecycleEvent:
        self._guard.require(actor, Resource.EMPLOYEES, Action.UPDATE)
        if not actor.is_hr_or_admin:
            raise AuthorizationError("Only HR may record lifecycle events")

        kind = require_enum(LifecycleEventType, event_type, "event_type")
        when = require_date(event_date, "event_date") if event_date else None
        if details is not None and not isinstance(details, Mapping):
            raise ValidationError("details must be an object")
        return self._append(actor, self._employee(employee_id), kind, when, details)

    def record_status_event(
        self,
        *,
        actor: Actor,
        employee: Employee,
        event_type: LifecycleEventType,
        details: Optional[Mapping[str, Any]] = None,
    ) -> LifecycleEvent:
        """Append an event for a status change the caller has already authorised and committed."""

        return self._append(actor, employee, event_type, None, details)

    def _append(
        self,
        actor: Actor,
        employee: Employee,
        event_type: LifecycleEventType,
        event_date: Optional[date],
        details: Optional[Mapping[str, Any]],
    ) -> LifecycleEvent:
        event_id = self._events.append(
            NewLifecycleEvent(
                employee_id=employee.employee_id,
                event_type=event_type,
                event_date=event_date or self._clock().date(),
                details=dict(details or {}),
                triggered_by=actor.actor_id,
            )
        )
        event = self._events.get(event_id)
        logger.info(
            "Lifecycle event %s (%s) for employee %s by %s",
            event_id,
            event_type.value,
            employee.employee_id,
            actor.actor_id,
        )
        self._audit.record(
            actor=actor,
            action=AuditAction.CREATE,
            resource_type=AUDIT_RESOURCE,
            resource_id=event_id,
            after=event.to_dict() if event else None,
        )
        return event
