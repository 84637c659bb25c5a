from __future__ import annotations

from datetime import date

import pytest

from src.hr_onboarding.hr_onboarding.access.guard import AccessGuard
from src.hr_onboarding.hr_onboarding.access.model import Actor
from src.hr_onboarding.hr_onboarding.audit.service import AuditService
from src.hr_onboarding.hr_onboarding.core.enums import EmploymentStatus, Role
from src.hr_onboarding.hr_onboarding.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.hr_onboarding.hr_onboarding.employees.service import EmployeeService

from tests.fakes import (
    ADMIN,
    EMPLOYEE,
    HR,
    MANAGER,
    OTHER_EMPLOYEE,
    FakeAuditRepo,
    FakeEmployeeRepo,
    make_employee,
    standard_staff,
)


def _build(employees=None):
    guard = AccessGuard()
    repo = FakeEmployeeRepo(standard_staff() if employees is None else employees)
    audit_repo = FakeAuditRepo()
    return EmployeeService(repo, guard, AuditService(audit_repo, guard, sleep=lambda s: None)), repo, audit_repo


def test_list_is_scoped_by_role():
    svc, *_ = _build()

    assert {e.employee_id for e in svc.list(actor=HR)} == {1, 2, 3}
    assert {e.employee_id for e in svc.list(actor=MANAGER)} == {1, 2}
    assert [e.employee_id for e in svc.list(actor=EMPLOYEE)] == [2]
    assert svc.list(actor=Actor(actor_id="nobody", role=Role.EMPLOYEE)) == []


def test_get_outside_scope_is_forbidden():
    svc, *_ = _build()

    assert svc.get(actor=MANAGER, employee_id=2).full_name == "Ed Employee"
    with pytest.raises(AuthorizationError):
        svc.get(actor=MANAGER, employee_id=3)
    with pytest.raises(AuthorizationError):
        svc.get(actor=EMPLOYEE, employee_id=3)
    with pytest.raises(NotFoundError):
        svc.get(actor=HR, employee_id=42)


def test_create_requires_code_and_name():
    svc, repo, audit_repo = _build()

    created = svc.create(
        actor=HR,
        data={"employee_code": "E100", "full_name": "New Hire", "hire_date": "2024-02-01", "manager_id": 1},
    )

    assert created.hire_date == date(2024, 2, 1)
    assert created.status == EmploymentStatus.ACTIVE
    assert audit_repo.actions("employees") == ["CREATE"]
    with pytest.raises(ValidationError):
        svc.create(actor=HR, data={"full_name": "No Code"})
    with pytest.raises(NotFoundError):
        svc.create(actor=HR, data={"employee_code": "E101", "full_name": "X", "manager_id": 77})
    with pytest.raises(AuthorizationError):
        svc.create(actor=MANAGER, data={"employee_code": "E102", "full_name": "Y"})


def test_employee_edits_only_contact_fields_on_own_record():
    svc, repo, _ = _build()

    updated = svc.update(actor=EMPLOYEE, employee_id=2, patch={"phone": "+84 90 000 0000"})
    assert updated.phone == "+84 90 000 0000"

    with pytest.raises(AuthorizationError):
        svc.update(actor=EMPLOYEE, employee_id=2, patch={"job_title": "CTO"})
    with pytest.raises(AuthorizationError):
        svc.update(actor=EMPLOYEE, employee_id=3, patch={"phone": "1"})
    assert repo.get(2).job_title is None


def test_hr_cannot_set_profile_id_directly():
    svc, *_ = _build()

    with pytest.raises(AuthorizationError):
        svc.update(actor=HR, employee_id=3, patch={"profile_id": "someone"})


def test_manager_cannot_be_self():
    svc, *_ = _build()

    with pytest.raises(ValidationError):
        svc.update(actor=HR, employee_id=2, patch={"manager_id": 2})


def test_delete_is_admin_only():
    svc, repo, audit_repo = _build()

    with pytest.raises(AuthorizationError):
        svc.delete(actor=HR, employee_id=3)
    svc.delete(actor=ADMIN, employee_id=3)

    assert repo.get(3) is None
    assert audit_repo.actions("employees") == ["DELETE"]


def test_link_identity_matches_unlinked_email_case_insensitively():
    svc, repo, audit_repo = _build(standard_staff() + [make_employee(9, email="New.Hire@example.com")])
    newcomer = Actor(actor_id="idp-999", role=Role.EMPLOYEE)

    linked = svc.link_identity(actor=newcomer, email="new.hire@EXAMPLE.com")

    assert linked.employee_id == 9
    assert repo.get(9).profile_id == "idp-999"
    assert svc.resolve_self(newcomer).employee_id == 9
    assert audit_repo.actions("employees") == ["UPDATE"]


def test_link_identity_never_steals_a_linked_record():
    svc, repo, _ = _build()
    intruder = Actor(actor_id="idp-666", role=Role.EMPLOYEE)

    assert svc.link_identity(actor=intruder, email="e2@example.com") is None
    assert repo.get(2).profile_id == EMPLOYEE.actor_id


def test_link_identity_is_idempotent_for_linked_caller():
    svc, *_ = _build()

    assert svc.link_identity(actor=OTHER_EMPLOYEE, email="anything@example.com").employee_id == 3
