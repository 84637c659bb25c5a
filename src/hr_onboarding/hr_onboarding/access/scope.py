from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..employees.model import Employee
from .model import Actor


def is_self(actor: Actor, employee: Employee) -> bool:
    return bool(employee.profile_id) and employee.profile_id == actor.actor_id


def can_view_employee(actor: Actor, employee: Employee, *, actor_employee: Optional[Employee]) -> bool:
    """Row scope: HR/admin see everyone, managers their direct reports, everyone themselves.

    ``actor_employee`` is the caller's own employee record (None if not linked).
    """

    if actor.is_hr_or_admin or is_self(actor, employee):
        return True
    if actor.role == Role.MANAGER and actor_employee is not None:
        return employee.manager_id == actor_employee.employee_id
    return False
