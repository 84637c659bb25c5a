"""In-memory repositories and fixtures shared by the service tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from src.hr_onboarding.hr_onboarding.access.model import Actor
from src.hr_onboarding.hr_onboarding.audit.model import AuditLogEntry
from src.hr_onboarding.hr_onboarding.core.enums import EmploymentStatus, Role, TaskStatus, TicketStatus
from src.hr_onboarding.hr_onboarding.core.exceptions import ConflictError
from src.hr_onboarding.hr_onboarding.employees.lifecycle_model import LifecycleEvent
from src.hr_onboarding.hr_onboarding.employees.model import Employee
from src.hr_onboarding.hr_onboarding.notifications.model import Notification
from src.hr_onboarding.hr_onboarding.onboarding.model import NewTask, OnboardingTask, OnboardingTemplate
from src.hr_onboarding.hr_onboarding.support.model import (
    SupportTicket,
    TicketMessage,
    format_ticket_number,
    ticket_number_prefix,
)

FIXED_NOW = datetime(2024, 1, 15, 9, 0, 0)
TODAY = FIXED_NOW.date()

ADMIN = Actor(actor_id="admin-1", role=Role.ADMIN)
HR = Actor(actor_id="hr-1", role=Role.HR)
HR_2 = Actor(actor_id="hr-2", role=Role.HR)
MANAGER = Actor(actor_id="mgr-1", role=Role.MANAGER)
EMPLOYEE = Actor(actor_id="emp-1", role=Role.EMPLOYEE)
OTHER_EMPLOYEE = Actor(actor_id="emp-2", role=Role.EMPLOYEE)


def fixed_clock() -> datetime:
    return FIXED_NOW


def make_employee(employee_id: int, **overrides) -> Employee:
    values = dict(
        employee_id=employee_id,
        employee_code=f"E{employee_id:03d}",
        full_name=f"Employee {employee_id}",
        email=f"e{employee_id}@example.com",
        hire_date=date(2024, 1, 10),
        job_title=None,
        department="Engineering",
        manager_id=None,
        status=EmploymentStatus.ACTIVE,
    )
    values.update(overrides)
    return Employee(**values)


def standard_staff() -> list[Employee]:
    """Manager #1 (mgr-1) with direct report #2 (emp-1); #3 (emp-2) reports to nobody."""

    return [
        make_employee(1, full_name="Mia Manager", profile_id=MANAGER.actor_id),
        make_employee(2, full_name="Ed Employee", profile_id=EMPLOYEE.actor_id, manager_id=1),
        make_employee(3, full_name="Olga Other", profile_id=OTHER_EMPLOYEE.actor_id),
    ]


class FakeEmployeeRepo:
    def __init__(self, employees=()):
        self.rows: dict[int, Employee] = {e.employee_id: e for e in employees}
        self._next_id = max(self.rows, default=0) + 1

    def get(self, employee_id):
        return self.rows.get(int(employee_id))

    def get_by_profile_id(self, profile_id):
        if not profile_id:
            return None
        return next((e for e in self.rows.values() if e.profile_id == profile_id), None)

    def list_all(self, *, status=None, limit=200):
        items = [e for e in self.rows.values() if status is None or e.status == status]
        return items[:limit]

    def list_direct_reports(self, manager_id):
        return [e for e in self.rows.values() if e.manager_id == int(manager_id)]

    def create(self, *, fields):
        eid = self._next_id
        self._next_id += 1
        values = dict(
            email=None,
            hire_date=None,
            job_title=None,
            department=None,
            manager_id=None,
            status=EmploymentStatus.ACTIVE,
        )
        values.update(fields)
        self.rows[eid] = Employee(employee_id=eid, **values)
        return eid

    def update_fields(self, employee_id, *, fields):
        current = self.rows.get(int(employee_id))
        if not current:
            return False
        self.rows[current.employee_id] = replace(current, **fields)
        return True

    def delete(self, employee_id):
        return self.rows.pop(int(employee_id), None) is not None

    def link_profile(self, *, email, profile_id):
        for e in self.rows.values():
            if e.email and e.email.lower() == email.lower() and not e.profile_id:
                self.rows[e.employee_id] = replace(e, profile_id=profile_id)
                return e.employee_id
        return None


class FakeLifecycleRepo:
    def __init__(self):
        self.rows: dict[int, LifecycleEvent] = {}
        self._next_id = 1

    def append(self, event):
        eid = self._next_id
        self._next_id += 1
        self.rows[eid] = LifecycleEvent(
            event_id=eid,
            employee_id=event.employee_id,
            event_type=event.event_type,
            event_date=event.event_date,
            details=dict(event.details),
            triggered_by=event.triggered_by,
            created_at=FIXED_NOW,
        )
        return eid

    def get(self, event_id):
        return self.rows.get(int(event_id))

    def list_for_employee(self, employee_id):
        items = [e for e in self.rows.values() if e.employee_id == int(employee_id)]
        return sorted(items, key=lambda e: (e.event_date, e.event_id), reverse=True)

    def types(self, employee_id):
        return [e.event_type.value for e in self.list_for_employee(employee_id)]


class FakeTaskRepo:
    """Applies the same compare-and-set rule on ``version`` as the MySQL store."""

    def __init__(self):
        self.rows: dict[int, OnboardingTask] = {}
        self._next_id = 1

    def _insert(self, task: NewTask) -> int:
        tid = self._next_id
        self._next_id += 1
        self.rows[tid] = OnboardingTask(
            task_id=tid,
            employee_id=task.employee_id,
            name=task.name,
            kind=task.kind,
            status=TaskStatus.PENDING,
            priority=task.priority,
            description=task.description,
            assigned_to=task.assigned_to,
            due_date=task.due_date,
            document_url=task.document_url,
        )
        return tid

    def create(self, task):
        return self._insert(task)

    def create_many(self, tasks):
        return [self._insert(t) for t in tasks]

    def get(self, task_id):
        return self.rows.get(int(task_id))

    def list_by_employee(self, employee_id):
        return [t for t in self.rows.values() if t.employee_id == int(employee_id)]

    def list_all(self, *, status=None):
        return [t for t in self.rows.values() if status is None or t.status == status]

    def update(self, task_id, *, expected_version, fields):
        current = self.rows.get(int(task_id))
        if current is None or current.version != expected_version:
            return False
        self.rows[current.task_id] = replace(current, version=current.version + 1, **fields)
        return True

    def delete(self, task_id):
        return self.rows.pop(int(task_id), None) is not None


class FakeTemplateRepo:
    def __init__(self, templates=()):
        self.rows: dict[int, OnboardingTemplate] = {t.template_id: t for t in templates}
        self._next_id = max(self.rows, default=0) + 1

    def get(self, template_id):
        return self.rows.get(int(template_id))

    def get_default(self):
        return next((t for t in self.rows.values() if t.is_active and t.is_default), None)

    def list(self, *, include_inactive=False):
        return [t for t in self.rows.values() if include_inactive or t.is_active]

    def create(self, *, name, blueprints, department=None, role=None):
        tid = self._next_id
        self._next_id += 1
        self.rows[tid] = OnboardingTemplate(
            template_id=tid,
            name=name,
            blueprints=tuple(blueprints),
            department=department,
            role=role,
        )
        return tid

    def set_active(self, template_id, *, is_active):
        current = self.rows.get(int(template_id))
        if not current:
            return False
        self.rows[current.template_id] = replace(
            current,
            is_active=is_active,
            is_default=current.is_default and is_active,
        )
        return True

    def set_default(self, template_id):
        target = self.rows.get(int(template_id))
        if not target or not target.is_active:
            return False
        for tid, t in list(self.rows.items()):
            self.rows[tid] = replace(t, is_default=(tid == target.template_id))
        return True


class FakeAuditRepo:
    def __init__(self):
        self.entries: list[AuditLogEntry] = []

    def append(self, *, actor_id, action, resource_type, resource_id, before, after):
        entry_id = len(self.entries) + 1
        self.entries.append(
            AuditLogEntry(
                entry_id=entry_id,
                actor_id=actor_id,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                before=before,
                after=after,
                created_at=FIXED_NOW,
            )
        )
        return entry_id

    def list(self, *, filters, limit):
        out = [
            e
            for e in self.entries
            if (filters.action is None or e.action == filters.action)
            and (filters.resource_type is None or e.resource_type == filters.resource_type)
            and (filters.actor_id is None or e.actor_id == filters.actor_id)
        ]
        return list(reversed(out))[:limit]

    def actions(self, resource_type: Optional[str] = None) -> list[str]:
        return [e.action.value for e in self.entries if resource_type is None or e.resource_type == resource_type]


class FakeNotificationRepo:
    def __init__(self):
        self.items: list[Notification] = []

    def create(self, *, user_id, title, message, kind, action_url=None):
        nid = len(self.items) + 1
        self.items.append(
            Notification(
                notification_id=nid,
                user_id=user_id,
                title=title,
                message=message,
                kind=kind,
                is_read=False,
                created_at=FIXED_NOW,
                action_url=action_url,
            )
        )
        return nid

    def list_for_user(self, *, user_id, unread_only=False, limit=200):
        return [n for n in self.items if n.user_id == user_id and (not unread_only or not n.is_read)][:limit]

    def count_unread(self, *, user_id):
        return sum(1 for n in self.items if n.user_id == user_id and not n.is_read)

    def mark_read(self, *, notification_id, user_id):
        for i, n in enumerate(self.items):
            if n.notification_id == notification_id and n.user_id == user_id:
                self.items[i] = replace(n, is_read=True)
                return True
        return False

    def mark_all_read(self, *, user_id):
        changed = 0
        for i, n in enumerate(self.items):
            if n.user_id == user_id and not n.is_read:
                self.items[i] = replace(n, is_read=True)
                changed += 1
        return changed

    def recipients(self) -> list[str]:
        return [n.user_id for n in self.items]


class FakeTicketRepo:
    def __init__(self, *, collisions: int = 0):
        self.rows: dict[int, SupportTicket] = {}
        self.messages: list[TicketMessage] = []
        self._collisions = collisions
        self.create_calls = 0

    def create(self, *, day, title, description, category, priority, created_by):
        self.create_calls += 1
        if self._collisions > 0:
            self._collisions -= 1
            raise ConflictError("Record already exists")
        tid = len(self.rows) + 1
        seq = 1 + sum(1 for t in self.rows.values() if t.ticket_number.startswith(ticket_number_prefix(day)))
        number = format_ticket_number(day, seq)
        self.rows[tid] = SupportTicket(
            ticket_id=tid,
            ticket_number=number,
            title=title,
            description=description,
            category=category,
            priority=priority,
            status=TicketStatus.OPEN,
            created_by=created_by,
        )
        return tid, number

    def get(self, ticket_id):
        return self.rows.get(int(ticket_id))

    def list(self, *, created_by=None, status=None, limit=200):
        return [
            t
            for t in self.rows.values()
            if (created_by is None or t.created_by == created_by) and (status is None or t.status == status)
        ][:limit]

    def update_fields(self, ticket_id, *, fields):
        current = self.rows.get(int(ticket_id))
        if not current:
            return False
        self.rows[current.ticket_id] = replace(current, **fields)
        return True

    def add_message(self, *, ticket_id, sender_id, sender_role, body, is_internal_note):
        mid = len(self.messages) + 1
        self.messages.append(
            TicketMessage(
                message_id=mid,
                ticket_id=ticket_id,
                sender_id=sender_id,
                sender_role=sender_role,
                body=body,
                is_internal_note=is_internal_note,
                created_at=FIXED_NOW,
            )
        )
        return mid

    def list_messages(self, ticket_id, *, include_internal):
        return [
            m
            for m in self.messages
            if m.ticket_id == int(ticket_id) and (include_internal or not m.is_internal_note)
        ]
