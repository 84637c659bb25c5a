from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import TaskStatus
from .model import NewTask, OnboardingTask, OnboardingTemplate, TaskBlueprint

# Task columns a caller may write through update(); ids, version and timestamps are store-managed.
TASK_WRITABLE_FIELDS = (
    "name",
    "description",
    "assigned_to",
    "kind",
    "status",
    "priority",
    "due_date",
    "document_url",
    "rejection_reason",
    "verified_by",
    "verified_at",
    "completed_by",
    "completed_at",
)


class TaskRepository(Protocol):
    def create(self, task: NewTask) -> int:
        raise NotImplementedError

    def create_many(self, tasks: Sequence[NewTask]) -> list[int]:
        """Insert every task in one transaction: all rows are created or none are."""

        raise NotImplementedError

    def get(self, task_id: int) -> Optional[OnboardingTask]:
        raise NotImplementedError

    def list_by_employee(self, employee_id: int) -> Sequence[OnboardingTask]:
        raise NotImplementedError

    def list_all(self, *, status: Optional[TaskStatus] = None) -> Sequence[OnboardingTask]:
        raise NotImplementedError

    def update(self, task_id: int, *, expected_version: int, fields: Mapping[str, Any]) -> bool:
        """Compare-and-set write.

        Applies ``fields`` and bumps ``version`` only if the stored version still
        equals ``expected_version``. Returns False when another writer got there first
        (or the task vanished).
        """

        raise NotImplementedError

    def delete(self, task_id: int) -> bool:
        raise NotImplementedError


class TemplateRepository(Protocol):
    def get(self, template_id: int) -> Optional[OnboardingTemplate]:
        raise NotImplementedError

    def get_default(self) -> Optional[OnboardingTemplate]:
        """The active template flagged as default, if any."""

        raise NotImplementedError

    def list(self, *, include_inactive: bool = False) -> Sequence[OnboardingTemplate]:
        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        blueprints: Sequence[TaskBlueprint],
        department: Optional[str] = None,
        role: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def set_active(self, template_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def set_default(self, template_id: int) -> bool:
        """Flag one template as default and clear the flag everywhere else."""

        raise NotImplementedError
