from __future__ import annotations

from datetime import date

import pytest

from src.hr_onboarding.hr_onboarding.access.guard import AccessGuard
from src.hr_onboarding.hr_onboarding.audit.service import AuditService
from src.hr_onboarding.hr_onboarding.core.enums import EmploymentStatus, LifecycleEventType
from src.hr_onboarding.hr_onboarding.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.hr_onboarding.hr_onboarding.employees.lifecycle_service import LifecycleService
from src.hr_onboarding.hr_onboarding.employees.service import EmployeeService

from tests.fakes import (
    ADMIN,
    EMPLOYEE,
    HR,
    MANAGER,
    OTHER_EMPLOYEE,
    TODAY,
    FakeAuditRepo,
    FakeEmployeeRepo,
    FakeLifecycleRepo,
    fixed_clock,
    standard_staff,
)


def _build():
    guard = AccessGuard()
    employees_repo = FakeEmployeeRepo(standard_staff())
    events_repo = FakeLifecycleRepo()
    audit_repo = FakeAuditRepo()
    audit = AuditService(audit_repo, guard, sleep=lambda s: None)
    lifecycle = LifecycleService(events_repo, employees_repo, guard, audit, clock=fixed_clock)
    employees = EmployeeService(employees_repo, guard, audit, lifecycle)
    return lifecycle, employees, events_repo, audit_repo


def test_hr_records_event_stamped_with_caller():
    lifecycle, _, events_repo, audit_repo = _build()

    event = lifecycle.record_event(
        actor=HR,
        employee_id=2,
        event_type="promotion",
        event_date="2024-03-01",
        details={"from": "Engineer", "to": "Senior Engineer"},
    )

    assert event.event_type == LifecycleEventType.PROMOTION
    assert event.event_date == date(2024, 3, 1)
    assert event.triggered_by == HR.actor_id
    assert event.details == {"from": "Engineer", "to": "Senior Engineer"}
    assert audit_repo.actions("employee_lifecycle_events") == ["CREATE"]
    assert events_repo.types(2) == ["promotion"]


def test_event_date_defaults_to_today():
    lifecycle, *_ = _build()

    event = lifecycle.record_event(actor=ADMIN, employee_id=3, event_type=LifecycleEventType.TRANSFER)

    assert event.event_date == TODAY
    assert event.details == {}


def test_timeline_is_newest_first():
    lifecycle, *_ = _build()
    lifecycle.record_event(actor=HR, employee_id=2, event_type="onboarding", event_date="2024-01-10")
    lifecycle.record_event(actor=HR, employee_id=2, event_type="promotion", event_date="2024-06-01")
    lifecycle.record_event(actor=HR, employee_id=2, event_type="transfer", event_date="2024-03-15")

    events = lifecycle.list_events(actor=HR, employee_id=2)

    assert [e.event_type.value for e in events] == ["promotion", "transfer", "onboarding"]


def test_only_hr_and_admin_record_events():
    lifecycle, _, events_repo, _ = _build()

    with pytest.raises(AuthorizationError):
        lifecycle.record_event(actor=MANAGER, employee_id=2, event_type="promotion")
    with pytest.raises(AuthorizationError):
        lifecycle.record_event(actor=EMPLOYEE, employee_id=2, event_type="promotion")
    assert events_repo.rows == {}


def test_record_event_validates_input():
    lifecycle, *_ = _build()

    with pytest.raises(ValidationError):
        lifecycle.record_event(actor=HR, employee_id=2, event_type="retirement")
    with pytest.raises(ValidationError):
        lifecycle.record_event(actor=HR, employee_id=2, event_type="transfer", event_date="next week")
    with pytest.raises(ValidationError):
        lifecycle.record_event(actor=HR, employee_id=2, event_type="transfer", details=["not", "a", "dict"])
    with pytest.raises(NotFoundError):
        lifecycle.record_event(actor=HR, employee_id=99, event_type="transfer")


def test_timeline_is_scoped_like_the_directory():
    lifecycle, *_ = _build()
    lifecycle.record_event(actor=HR, employee_id=2, event_type="onboarding")

    assert len(lifecycle.list_events(actor=EMPLOYEE, employee_id=2)) == 1
    assert len(lifecycle.list_events(actor=MANAGER, employee_id=2)) == 1
    with pytest.raises(AuthorizationError):
        lifecycle.list_events(actor=OTHER_EMPLOYEE, employee_id=2)
    with pytest.raises(AuthorizationError):
        lifecycle.list_events(actor=MANAGER, employee_id=3)


def test_termination_records_offboarding_once():
    _, employees, events_repo, _ = _build()

    employees.update(actor=HR, employee_id=3, patch={"status": "terminated"})
    employees.update(actor=HR, employee_id=3, patch={"status": "terminated", "department": "Alumni"})

    [event] = events_repo.list_for_employee(3)
    assert event.event_type == LifecycleEventType.OFFBOARDING
    assert event.triggered_by == HR.actor_id
    assert event.details == {"previous_status": EmploymentStatus.ACTIVE.value}


def test_other_status_changes_record_nothing():
    _, employees, events_repo, _ = _build()

    employees.update(actor=HR, employee_id=3, patch={"status": "inactive"})
    employees.update(actor=EMPLOYEE, employee_id=2, patch={"phone": "555-0100"})

    assert events_repo.rows == {}
