from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional, Sequence, Union

from ..access.guard import AccessGuard
from ..access.model import Actor
from ..audit.service import AuditService
from ..common.datetime_utils import now_local
from ..core.enums import Action, AuditAction, EmploymentStatus, LifecycleEventType, NotificationKind, Resource
from ..core.exceptions import DomainError, NotFoundError, ValidationError
from ..employees.lifecycle_service import LifecycleService
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..notifications.service import NotificationService
from .model import OnboardingTemplate
from .repository import TaskRepository, TemplateRepository

logger = logging.getLogger(__name__)


class TemplateEngine:
    """Bulk producer of onboarding tasks from a template's blueprints."""

    def __init__(
        self,
        templates: TemplateRepository,
        tasks: TaskRepository,
        employees: EmployeeRepository,
        guard: AccessGuard,
        audit: AuditService,
        notifications: NotificationService,
        *,
        clock: Callable = now_local,
        lifecycle: Optional[LifecycleService] = None,
    ):
        self._templates = templates
        self._tasks = tasks
        self._employees = employees
        self._guard = guard
        self._audit = audit
        self._notifications = notifications
        self._clock = clock
        self._lifecycle = lifecycle

    def _resolve_template(self, template_id: Optional[int]) -> Optional[OnboardingTemplate]:
        if template_id is None:
            return self._templates.get_default()
        template = self._templates.get(int(template_id))
        if not template:
            raise NotFoundError(f"Template {template_id} not found")
        if not template.is_active:
            raise ValidationError(f"Template '{template.name}' is inactive")
        return template

    def _employee(self, employee_id: int) -> Employee:
        employee = self._employees.get(int(employee_id))
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    def apply_template(
        self,
        *,
        actor: Actor,
        employee_id: int,
        template_id: Optional[int] = None,
        anchor_date: Optional[date] = None,
    ) -> list[int]:
        """Create one pending task per blueprint, in blueprint order, all or nothing.

        Without ``template_id`` the active default template is used; when there is
        none the call is a no-op returning ``[]``. Due dates are
        ``anchor + offset_days`` where the anchor is ``anchor_date``, else the
        employee's hire date, else today.
        """

        self._guard.require(actor, Resource.ONBOARDING_TASKS, Action.CREATE)
        employee = self._employee(employee_id)
        template = self._resolve_template(template_id)
        return self._apply(actor, employee, template, anchor_date)

    def _apply(
        self,
        actor: Actor,
        employee: Employee,
        template: Optional[OnboardingTemplate],
        anchor_date: Optional[date],
    ) -> list[int]:
        if template is None:
            logger.info("No default template; nothing applied for employee %s", employee.employee_id)
            return []
        if not template.blueprints:
            return []

        anchor = anchor_date or employee.hire_date or self._clock().date()
        new_tasks = [bp.instantiate(employee_id=employee.employee_id, anchor_date=anchor) for bp in template.blueprints]
        task_ids = self._tasks.create_many(new_tasks)

        logger.info(
            "Applied template %s (%d tasks) to employee %s",
            template.template_id,
            len(task_ids),
            employee.employee_id,
        )
        self._audit.record(
            actor=actor,
            action=AuditAction.CREATE,
            resource_type="onboarding_tasks",
            resource_id=employee.employee_id,
            after={"template_id": template.template_id, "task_ids": task_ids, "anchor_date": anchor.isoformat()},
        )
        self._notifications.notify(
            user_id=employee.profile_id,
            title="Onboarding tasks assigned",
            message=f"{len(task_ids)} onboarding tasks from '{template.name}' were added to your checklist.",
            kind=NotificationKind.INFO,
        )
        return task_ids

    def start_onboarding(
        self,
        *,
        actor: Actor,
        employee_id: int,
        template_id: Optional[int] = None,
        anchor_date: Optional[date] = None,
    ) -> list[int]:
        """Move the employee into ``onboarding`` status, then apply the template.

        The status write and the task insert are separate transactions. The
        status goes first and the insert is all or nothing, so a failed insert
        leaves the employee onboarding with none of the template's tasks and
        the call can be repeated without duplicating any.
        """

        self._guard.require(actor, Resource.EMPLOYEES, Action.UPDATE)
        self._guard.require(actor, Resource.ONBOARDING_TASKS, Action.CREATE)
        employee = self._employee(employee_id)
        template = self._resolve_template(template_id)

        if employee.status != EmploymentStatus.ONBOARDING:
            self._employees.update_fields(employee.employee_id, fields={"status": EmploymentStatus.ONBOARDING})
            self._audit.record(
                actor=actor,
                action=AuditAction.UPDATE,
                resource_type="employees",
                resource_id=employee.employee_id,
                before={"status": employee.status.value},
                after={"status": EmploymentStatus.ONBOARDING.value},
            )
            if self._lifecycle is not None:
                self._lifecycle.record_status_event(
                    actor=actor,
                    employee=employee,
                    event_type=LifecycleEventType.ONBOARDING,
                    details={
                        "previous_status": employee.status.value,
                        "template_id": template.template_id if template else None,
                    },
                )
        return self._apply(actor, employee, template, anchor_date)

    def apply_bulk(
        self,
        *,
        actor: Actor,
        employee_ids: Sequence[int],
        template_id: Optional[int] = None,
    ) -> dict[int, Union[list[int], str]]:
        """Start onboarding for several employees; each one succeeds or fails on its own.

        Returns employee id -> created task ids, or the error message for that employee.
        """

        self._guard.require(actor, Resource.EMPLOYEES, Action.UPDATE)
        self._guard.require(actor, Resource.ONBOARDING_TASKS, Action.CREATE)

        results: dict[int, Union[list[int], str]] = {}
        for employee_id in dict.fromkeys(int(e) for e in employee_ids):
            try:
                results[employee_id] = self.start_onboarding(
                    actor=actor,
                    employee_id=employee_id,
                    template_id=template_id,
                )
            except DomainError as e:
                logger.info("Bulk onboarding skipped employee %s: %s", employee_id, e)
                results[employee_id] = str(e)
        return results
