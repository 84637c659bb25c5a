from __future__ import annotations

import pytest

from src.hr_onboarding.hr_onboarding.access.guard import AccessGuard
from src.hr_onboarding.hr_onboarding.access.model import Actor, Permission
from src.hr_onboarding.hr_onboarding.access.scope import can_view_employee
from src.hr_onboarding.hr_onboarding.core.enums import Action, Resource, Role
from src.hr_onboarding.hr_onboarding.core.exceptions import AuthorizationError

from tests.fakes import EMPLOYEE, HR, MANAGER, standard_staff


def test_unlisted_pair_is_denied_for_every_action():
    guard = AccessGuard(matrix={(Role.HR, Resource.EMPLOYEES): Permission(can_read=True)})

    for action in Action:
        assert guard.can_perform(Role.ADMIN, Resource.EMPLOYEES, action) is False
    assert guard.can_perform(Role.HR, Resource.EMPLOYEES, Action.READ) is True
    assert guard.can_perform(Role.HR, Resource.EMPLOYEES, Action.UPDATE) is False


def test_audit_logs_are_read_only_even_for_admin():
    guard = AccessGuard()

    assert guard.can_perform(Role.ADMIN, Resource.AUDIT_LOGS, Action.READ)
    assert not guard.can_perform(Role.ADMIN, Resource.AUDIT_LOGS, Action.CREATE)
    assert not guard.can_perform(Role.ADMIN, Resource.AUDIT_LOGS, Action.DELETE)
    assert not guard.can_perform(Role.HR, Resource.AUDIT_LOGS, Action.READ)


def test_require_raises_authorization_error():
    guard = AccessGuard()

    guard.require(HR, Resource.ONBOARDING_TASKS, Action.DELETE)
    with pytest.raises(AuthorizationError):
        guard.require(MANAGER, Resource.ONBOARDING_TASKS, Action.UPDATE)


def test_permissions_for_lists_every_resource_and_action():
    perms = AccessGuard().permissions_for(Role.EMPLOYEE)

    assert set(perms) == {r.value for r in Resource}
    assert perms["onboarding_tasks"] == {"create": False, "read": True, "update": True, "delete": False}
    assert perms["onboarding_templates"] == {"create": False, "read": False, "update": False, "delete": False}


def test_manager_sees_direct_reports_only():
    manager, report, stranger = standard_staff()

    assert can_view_employee(MANAGER, report, actor_employee=manager)
    assert not can_view_employee(MANAGER, stranger, actor_employee=manager)
    assert not can_view_employee(MANAGER, report, actor_employee=None)


def test_employee_sees_only_self():
    _, me, stranger = standard_staff()

    assert can_view_employee(EMPLOYEE, me, actor_employee=me)
    assert not can_view_employee(EMPLOYEE, stranger, actor_employee=me)
    assert can_view_employee(Actor(actor_id="whoever", role=Role.ADMIN), stranger, actor_employee=None)
