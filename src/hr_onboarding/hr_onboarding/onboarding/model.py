from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

from ..common.datetime_utils import format_date, format_datetime
from ..core.enums import Priority, TaskKind, TaskStatus


@dataclass(frozen=True)
class OnboardingTask:
    """One checklist item of an employee's onboarding.

    ``version`` is bumped on every write; status changes compare-and-set on it.
    """

    task_id: int
    employee_id: int
    name: str
    kind: TaskKind
    status: TaskStatus
    priority: Priority
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None
    document_url: Optional[str] = None
    rejection_reason: Optional[str] = None
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_overdue(self, today: date) -> bool:
        if self.status.is_terminal or self.due_date is None:
            return False
        return self.due_date < today

    def to_dict(self, *, today: Optional[date] = None) -> dict:
        out = {
            "task_id": self.task_id,
            "employee_id": self.employee_id,
            "name": self.name,
            "description": self.description,
            "assigned_to": self.assigned_to,
            "kind": self.kind.value,
            "status": self.status.value,
            "priority": self.priority.value,
            "due_date": format_date(self.due_date),
            "document_url": self.document_url,
            "rejection_reason": self.rejection_reason,
            "verified_by": self.verified_by,
            "verified_at": format_datetime(self.verified_at),
            "completed_by": self.completed_by,
            "completed_at": format_datetime(self.completed_at),
            "version": self.version,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }
        if today is not None:
            out["is_overdue"] = self.is_overdue(today)
        return out


@dataclass(frozen=True)
class NewTask:
    """Values for a task that does not exist yet (status always starts at pending)."""

    employee_id: int
    name: str
    kind: TaskKind = TaskKind.GENERAL
    priority: Priority = Priority.MEDIUM
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None
    document_url: Optional[str] = None


@dataclass(frozen=True)
class TaskBlueprint:
    name: str
    kind: TaskKind = TaskKind.GENERAL
    priority: Priority = Priority.MEDIUM
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    offset_days: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> TaskBlueprint:
        return cls(
            name=str(data["name"]),
            kind=TaskKind(data.get("kind") or TaskKind.GENERAL.value),
            priority=Priority(data.get("priority") or Priority.MEDIUM.value),
            description=data.get("description"),
            assigned_to=data.get("assigned_to"),
            offset_days=int(data.get("offset_days") or 0),
        )

    def instantiate(self, *, employee_id: int, anchor_date: date) -> NewTask:
        return NewTask(
            employee_id=employee_id,
            name=self.name,
            kind=self.kind,
            priority=self.priority,
            description=self.description,
            assigned_to=self.assigned_to,
            due_date=anchor_date + timedelta(days=self.offset_days),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "kind": self.kind.value,
            "assigned_to": self.assigned_to,
            "offset_days": self.offset_days,
            "priority": self.priority.value,
        }


@dataclass(frozen=True)
class OnboardingTemplate:
    template_id: int
    name: str
    blueprints: tuple[TaskBlueprint, ...] = field(default_factory=tuple)
    is_active: bool = True
    is_default: bool = False
    department: Optional[str] = None
    role: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "template_id": self.template_id,
            "name": self.name,
            "department": self.department,
            "role": self.role,
            "is_active": self.is_active,
            "is_default": self.is_default,
            "blueprints": [b.to_dict() for b in self.blueprints],
            "created_at": format_datetime(self.created_at),
        }


@dataclass(frozen=True)
class TaskStats:
    total: int = 0
    completed: int = 0
    pending: int = 0
    submitted: int = 0
    rejected: int = 0
    overdue: int = 0

    @property
    def progress_percent(self) -> int:
        return progress_percent(self.completed, self.total)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "completed": self.completed,
            "pending": self.pending,
            "submitted": self.submitted,
            "rejected": self.rejected,
            "overdue": self.overdue,
            "progress_percent": self.progress_percent,
        }


@dataclass(frozen=True)
class OrgProgressRow:
    employee_id: int
    employee_code: str
    full_name: str
    department: Optional[str]
    stats: TaskStats

    @property
    def progress_percent(self) -> int:
        return self.stats.progress_percent

    @property
    def overdue_count(self) -> int:
        return self.stats.overdue

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "employee_code": self.employee_code,
            "full_name": self.full_name,
            "department": self.department,
            "total": self.stats.total,
            "completed": self.stats.completed,
            "progress_percent": self.progress_percent,
            "overdue_count": self.overdue_count,
        }


def progress_percent(completed: int, total: int) -> int:
    """round(100 * completed / total) with halves rounded up; 0 when there are no tasks."""

    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)
