from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Sequence

from ..access.guard import AccessGuard
from ..access.model import Actor
from ..access.scope import can_view_employee, is_self
from ..audit.service import AuditService
from ..common.datetime_utils import now_local
from ..common.validators import optional_text, require_date, require_enum, require_non_empty
from ..core.enums import Action, AuditAction, NotificationKind, Priority, Resource, TaskKind, TaskStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..notifications.service import NotificationService
from ..storage.blob_store import BlobMetadata, BlobStore
from .model import NewTask, OnboardingTask
from .repository import TaskRepository
from .transitions import find_rule, plan_transition, require_actor

logger = logging.getLogger(__name__)

AUDIT_RESOURCE = "onboarding_tasks"

# Plain fields HR/admin may patch; status goes through transition().
HR_PATCHABLE_FIELDS = frozenset({"name", "description", "assigned_to", "kind", "priority", "due_date", "document_url"})
OWNER_PATCHABLE_FIELDS = frozenset({"document_url"})


class OnboardingTaskService:
    """Task store use cases and the submit / verify / reject workflow."""

    def __init__(
        self,
        tasks: TaskRepository,
        employees: EmployeeRepository,
        guard: AccessGuard,
        audit: AuditService,
        notifications: NotificationService,
        blobs: Optional[BlobStore] = None,
        *,
        clock: Callable = now_local,
    ):
        self._tasks = tasks
        self._employees = employees
        self._guard = guard
        self._audit = audit
        self._notifications = notifications
        self._blobs = blobs
        self._clock = clock

    def _task(self, task_id: int) -> OnboardingTask:
        task = self._tasks.get(int(task_id))
        if not task:
            raise NotFoundError(f"Task {task_id} not found")
        return task

    def _employee(self, employee_id: int) -> Employee:
        employee = self._employees.get(int(employee_id))
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    def _require_view(self, actor: Actor, employee: Employee) -> None:
        if actor.is_hr_or_admin or is_self(actor, employee):
            return
        if not can_view_employee(actor, employee, actor_employee=self._employees.get_by_profile_id(actor.actor_id)):
            raise AuthorizationError("You may not view this employee's onboarding")

    def today(self):
        return self._clock().date()

    def create(self, *, actor: Actor, employee_id: int, data: Mapping[str, Any]) -> OnboardingTask:
        self._guard.require(actor, Resource.ONBOARDING_TASKS, Action.CREATE)
        employee = self._employee(employee_id)

        unknown = set(data) - HR_PATCHABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(sorted(unknown))}")
        fields = self._clean(data)
        if not fields.get("name"):
            raise ValidationError("name is required")

        task_id = self._tasks.create(NewTask(employee_id=employee.employee_id, **fields))
        created = self._task(task_id)
        self._audit.record(
            actor=actor,
            action=AuditAction.CREATE,
            resource_type=AUDIT_RESOURCE,
            resource_id=task_id,
            after=created.to_dict(),
        )
        self._notifications.notify(
            user_id=employee.profile_id,
            title="New onboarding task",
            message=f"'{created.name}' was added to your onboarding checklist.",
        )
        return created

    def get(self, *, actor: Actor, task_id: int) -> OnboardingTask:
        self._guard.require(actor, Resource.ONBOARDING_TASKS, Action.READ)
        task = self._task(task_id)
        self._require_view(actor, self._employee(task.employee_id))
        return task

    def list_by_employee(self, *, actor: Actor, employee_id: int) -> Sequence[OnboardingTask]:
        self._guard.require(actor, Resource.ONBOARDING_TASKS, Action.READ)
        employee = self._employee(employee_id)
        self._require_view(actor, employee)
        return self._tasks.list_by_employee(employee.employee_id)

    def list_mine(self, *, actor: Actor) -> Sequence[OnboardingTask]:
        self._guard.require(actor, Resource.ONBOARDING_TASKS, Action.READ)
        me = self._employees.get_by_profile_id(actor.actor_id)
        if not me:
            return []
        return self._tasks.list_by_employee(me.employee_id)

    def list_review_queue(self, *, actor: Actor) -> Sequence[OnboardingTask]:
        """Tasks waiting for HR verification."""

        self._guard.require(actor, Resource.ONBOARDING_TASKS, Action.UPDATE)
        if not actor.is_hr_or_admin:
            raise AuthorizationError("Only HR or admin review submitted tasks")
        return self._tasks.list_all(status=TaskStatus.SUBMITTED)

    def update(self, *, actor: Actor, task_id: int, patch: Mapping[str, Any]) -> OnboardingTask:
        self._guard.require(actor, Resource.ONBOARDING_TASKS, Action.UPDATE)

        if "status" in patch:
            to_status = require_enum(TaskStatus, patch["status"], "status")
            if to_status == TaskStatus.VERIFIED and not actor.is_hr_or_admin:
                raise AuthorizationError("Only HR or admin may mark a task verified")
            extra = set(patch) - {"status", "document_url", "rejection_reason"}
            if extra:
                raise ValidationError("A status change cannot be combined with other field edits")
            return self.transition(
                actor=actor,
                task_id=task_id,
                to_status=to_status,
                document_url=patch.get("document_url"),
                reason=patch.get("rejection_reason"),
            )

        before = self._task(task_id)
        employee = self._employee(before.employee_id)
        if actor.is_hr_or_admin:
            allowed = HR_PATCHABLE_FIELDS
        else:
            if not is_self(actor, employee):
                raise AuthorizationError("You may only edit your own onboarding tasks")
            allowed = OWNER_PATCHABLE_FIELDS

        unknown = set(patch) - HR_PATCHABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(sorted(unknown))}")
        not_allowed = set(patch) - allowed
        if not_allowed:
            raise AuthorizationError(f"You may not change: {', '.join(sorted(not_allowed))}")
        if before.status.is_terminal and not actor.is_hr_or_admin:
            raise ValidationError(f"Task is already {before.status.value}")

        fields = self._clean(patch)
        if not fields:
            return before
        if not self._tasks.update(before.task_id, expected_version=before.version, fields=fields):
            raise ConflictError("Task was modified by someone else; reload and retry")

        after = self._task(before.task_id)
        self._audit.record(
            actor=actor,
            action=AuditAction.UPDATE,
            resource_type=AUDIT_RESOURCE,
            resource_id=before.task_id,
            before=before.to_dict(),
            after=after.to_dict(),
        )
        return after

    def delete(self, *, actor: Actor, task_id: int) -> None:
        self._guard.require(actor, Resource.ONBOARDING_TASKS, Action.DELETE)
        before = self._task(task_id)
        if not self._tasks.delete(before.task_id):
            raise NotFoundError(f"Task {task_id} not found")
        self._audit.record(
            actor=actor,
            action=AuditAction.DELETE,
            resource_type=AUDIT_RESOURCE,
            resource_id=before.task_id,
            before=before.to_dict(),
        )

    def transition(
        self,
        *,
        actor: Actor,
        task_id: int,
        to_status: TaskStatus,
        document_url: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> OnboardingTask:
        """Move a task along one edge of the transition table.

        Checks run in this order: permission matrix, role required for the
        target status, legality of the edge, edge preconditions, then a
        compare-and-set write against the version just read.
        """

        self._guard.require(actor, Resource.ONBOARDING_TASKS, Action.UPDATE)
        task = self._task(task_id)
        employee = self._employee(task.employee_id)

        require_actor(to_status, actor, is_owner=is_self(actor, employee))
        fields = plan_transition(
            task,
            to_status,
            actor=actor,
            now=self._clock(),
            document_url=document_url,
            reason=reason,
        )

        if not self._tasks.update(task.task_id, expected_version=task.version, fields=fields):
            logger.info("Lost race on task %s (%s -> %s)", task.task_id, task.status.value, to_status.value)
            raise ConflictError("Task status changed concurrently; reload and retry")

        after = self._task(task.task_id)
        logger.info(
            "Task %s %s -> %s by %s",
            task.task_id,
            task.status.value,
            to_status.value,
            actor.actor_id,
        )
        self._audit.record(
            actor=actor,
            action=AuditAction.TRANSITION,
            resource_type=AUDIT_RESOURCE,
            resource_id=task.task_id,
            before={"status": task.status.value, "rejection_reason": task.rejection_reason},
            after={"status": after.status.value, "rejection_reason": after.rejection_reason},
        )
        self._notify_transition(after, employee)
        return after

    def submit(self, *, actor: Actor, task_id: int, document_url: Optional[str] = None) -> OnboardingTask:
        return self.transition(actor=actor, task_id=task_id, to_status=TaskStatus.SUBMITTED, document_url=document_url)

    def complete(self, *, actor: Actor, task_id: int) -> OnboardingTask:
        return self.transition(actor=actor, task_id=task_id, to_status=TaskStatus.COMPLETED)

    def verify(self, *, actor: Actor, task_id: int) -> OnboardingTask:
        return self.transition(actor=actor, task_id=task_id, to_status=TaskStatus.VERIFIED)

    def reject(self, *, actor: Actor, task_id: int, reason: str) -> OnboardingTask:
        return self.transition(actor=actor, task_id=task_id, to_status=TaskStatus.REJECTED, reason=reason)

    def upload_document(
        self,
        *,
        actor: Actor,
        task_id: int,
        data: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> OnboardingTask:
        """Store the file in the blob store and submit the task with its URL."""

        if self._blobs is None:
            raise ValidationError("Document uploads are not configured")

        self._guard.require(actor, Resource.ONBOARDING_TASKS, Action.UPDATE)
        task = self._task(task_id)
        employee = self._employee(task.employee_id)
        # Fail before storing anything if the submit itself would be refused.
        require_actor(TaskStatus.SUBMITTED, actor, is_owner=is_self(actor, employee))
        find_rule(task.status, TaskStatus.SUBMITTED)

        url = self._blobs.upload(
            data,
            BlobMetadata(filename=filename, content_type=content_type, owner=f"employee-{employee.employee_id}"),
        )
        return self.submit(actor=actor, task_id=task.task_id, document_url=url)

    def _notify_transition(self, task: OnboardingTask, employee: Employee) -> None:
        if task.status == TaskStatus.SUBMITTED:
            manager = self._employees.get(employee.manager_id) if employee.manager_id else None
            self._notifications.notify(
                user_id=manager.profile_id if manager else None,
                title="Onboarding task submitted",
                message=f"{employee.full_name} submitted '{task.name}' for review.",
            )
        elif task.status == TaskStatus.VERIFIED:
            self._notifications.notify(
                user_id=employee.profile_id,
                title="Task verified",
                message=f"'{task.name}' has been verified.",
                kind=NotificationKind.SUCCESS,
            )
        elif task.status == TaskStatus.REJECTED:
            self._notifications.notify(
                user_id=employee.profile_id,
                title="Task needs changes",
                message=f"'{task.name}' was rejected: {task.rejection_reason}",
                kind=NotificationKind.WARNING,
            )

    def _clean(self, data: Mapping[str, Any]) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key, value in data.items():
            if key == "name":
                out[key] = require_non_empty(value, "name")
            elif key == "kind":
                out[key] = require_enum(TaskKind, value, "kind")
            elif key == "priority":
                out[key] = require_enum(Priority, value, "priority")
            elif key == "due_date":
                out[key] = require_date(value, "due_date") if value else None
            else:
                out[key] = optional_text(value, key)
        return out
