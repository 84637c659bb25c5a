from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller roles supplied by the identity provider."""

    ADMIN = "admin"
    HR = "hr"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class Resource(str, Enum):
    """Resources covered by the role/permission matrix."""

    EMPLOYEES = "employees"
    ONBOARDING_TASKS = "onboarding_tasks"
    ONBOARDING_TEMPLATES = "onboarding_templates"
    AUDIT_LOGS = "audit_logs"
    NOTIFICATIONS = "notifications"
    SUPPORT_TICKETS = "support_tickets"


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class EmploymentStatus(str, Enum):
    ACTIVE = "active"
    ONBOARDING = "onboarding"
    INACTIVE = "inactive"
    TERMINATED = "terminated"


class LifecycleEventType(str, Enum):
    """Milestones on an employee's timeline."""

    ONBOARDING = "onboarding"
    PROMOTION = "promotion"
    TRANSFER = "transfer"
    OFFBOARDING = "offboarding"


class TaskStatus(str, Enum):
    """Lifecycle of an onboarding checklist item."""

    PENDING = "pending"
    SUBMITTED = "submitted"
    VERIFIED = "verified"
    COMPLETED = "completed"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_TASK_STATUSES


TERMINAL_TASK_STATUSES = frozenset({TaskStatus.VERIFIED, TaskStatus.COMPLETED})


class TaskKind(str, Enum):
    DOCUMENT = "document"
    POLICY = "policy"
    IT_SETUP = "it_setup"
    TRAINING = "training"
    GENERAL = "general"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    TRANSITION = "TRANSITION"


class NotificationKind(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TicketCategory(str, Enum):
    LEAVE = "leave"
    PAYROLL = "payroll"
    BENEFITS = "benefits"
    POLICY = "policy"
    DOCUMENTS = "documents"
    IT_SUPPORT = "it_support"
    GENERAL = "general"
    OTHER = "other"


class SenderRole(str, Enum):
    EMPLOYEE = "employee"
    HR = "hr"
    SYSTEM = "system"
