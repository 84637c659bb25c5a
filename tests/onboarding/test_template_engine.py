from __future__ import annotations

from datetime import date

import pytest

from src.hr_onboarding.hr_onboarding.access.guard import AccessGuard
from src.hr_onboarding.hr_onboarding.audit.service import AuditService
from src.hr_onboarding.hr_onboarding.core.enums import EmploymentStatus, TaskKind, TaskStatus
from src.hr_onboarding.hr_onboarding.core.exceptions import (
    AuthorizationError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from src.hr_onboarding.hr_onboarding.employees.lifecycle_service import LifecycleService
from src.hr_onboarding.hr_onboarding.notifications.service import NotificationService
from src.hr_onboarding.hr_onboarding.onboarding.model import OnboardingTemplate, TaskBlueprint
from src.hr_onboarding.hr_onboarding.onboarding.template_engine import TemplateEngine
from src.hr_onboarding.hr_onboarding.onboarding.template_service import TemplateService, parse_blueprints

from tests.fakes import (
    EMPLOYEE,
    HR,
    MANAGER,
    TODAY,
    FakeAuditRepo,
    FakeEmployeeRepo,
    FakeLifecycleRepo,
    FakeNotificationRepo,
    FakeTaskRepo,
    FakeTemplateRepo,
    fixed_clock,
    make_employee,
    standard_staff,
)

DEFAULT_TEMPLATE = OnboardingTemplate(
    template_id=1,
    name="Default Onboarding",
    is_default=True,
    blueprints=(
        TaskBlueprint(name="Sign contract", kind=TaskKind.DOCUMENT, offset_days=0),
        TaskBlueprint(name="Laptop setup", kind=TaskKind.IT_SETUP, offset_days=1),
        TaskBlueprint(name="Security training", kind=TaskKind.TRAINING, offset_days=3),
    ),
)


def _build(templates=(DEFAULT_TEMPLATE,), employees=None, tasks_repo=None, lifecycle_repo=None):
    guard = AccessGuard()
    tasks_repo = tasks_repo or FakeTaskRepo()
    employees_repo = FakeEmployeeRepo(standard_staff() if employees is None else employees)
    audit_repo = FakeAuditRepo()
    audit = AuditService(audit_repo, guard, sleep=lambda s: None)
    lifecycle = None
    if lifecycle_repo is not None:
        lifecycle = LifecycleService(lifecycle_repo, employees_repo, guard, audit, clock=fixed_clock)
    engine = TemplateEngine(
        FakeTemplateRepo(templates),
        tasks_repo,
        employees_repo,
        guard,
        audit,
        NotificationService(FakeNotificationRepo(), guard),
        clock=fixed_clock,
        lifecycle=lifecycle,
    )
    return engine, tasks_repo, employees_repo, audit_repo


def test_default_template_creates_pending_tasks_in_blueprint_order():
    engine, tasks_repo, _, audit_repo = _build()

    ids = engine.apply_template(actor=HR, employee_id=2)

    tasks = [tasks_repo.rows[i] for i in ids]
    assert [t.name for t in tasks] == ["Sign contract", "Laptop setup", "Security training"]
    assert {t.status for t in tasks} == {TaskStatus.PENDING}
    assert [t.due_date for t in tasks] == [date(2024, 1, 10), date(2024, 1, 11), date(2024, 1, 13)]
    assert audit_repo.actions("onboarding_tasks") == ["CREATE"]


def test_anchor_falls_back_to_today_without_hire_date():
    engine, tasks_repo, *_ = _build(employees=[make_employee(5, hire_date=None)])

    ids = engine.apply_template(actor=HR, employee_id=5)

    assert tasks_repo.rows[ids[0]].due_date == TODAY


def test_explicit_anchor_date_wins():
    engine, tasks_repo, *_ = _build()

    ids = engine.apply_template(actor=HR, employee_id=2, anchor_date=date(2024, 3, 1))

    assert tasks_repo.rows[ids[-1]].due_date == date(2024, 3, 4)


def test_no_default_template_is_a_noop():
    engine, tasks_repo, _, audit_repo = _build(templates=())

    assert engine.apply_template(actor=HR, employee_id=2) == []
    assert tasks_repo.rows == {}
    assert audit_repo.entries == []


def test_template_without_blueprints_creates_nothing():
    empty = OnboardingTemplate(template_id=1, name="Empty", is_default=True, blueprints=())
    engine, tasks_repo, *_ = _build(templates=(empty,))

    assert engine.apply_template(actor=HR, employee_id=2) == []
    assert tasks_repo.rows == {}


def test_inactive_or_missing_template_is_refused():
    inactive = OnboardingTemplate(template_id=2, name="Old", is_active=False, blueprints=DEFAULT_TEMPLATE.blueprints)
    engine, *_ = _build(templates=(DEFAULT_TEMPLATE, inactive))

    with pytest.raises(ValidationError):
        engine.apply_template(actor=HR, employee_id=2, template_id=2)
    with pytest.raises(NotFoundError):
        engine.apply_template(actor=HR, employee_id=2, template_id=99)


def test_only_hr_applies_templates():
    engine, *_ = _build()

    with pytest.raises(AuthorizationError):
        engine.apply_template(actor=MANAGER, employee_id=2)
    with pytest.raises(AuthorizationError):
        engine.apply_template(actor=EMPLOYEE, employee_id=2)


def test_start_onboarding_moves_employee_status():
    engine, _, employees_repo, audit_repo = _build()

    ids = engine.start_onboarding(actor=HR, employee_id=2)

    assert len(ids) == 3
    assert employees_repo.get(2).status == EmploymentStatus.ONBOARDING
    assert audit_repo.actions("employees") == ["UPDATE"]


class FailingInsertTaskRepo(FakeTaskRepo):
    """``create_many`` fails the first ``failures`` times without inserting anything."""

    def __init__(self, failures=1):
        super().__init__()
        self.failures = failures

    def create_many(self, tasks):
        if self.failures:
            self.failures -= 1
            raise DomainError("task insert failed")
        return super().create_many(tasks)


def test_failed_task_insert_leaves_employee_retryable():
    tasks_repo = FailingInsertTaskRepo()
    engine, _, employees_repo, audit_repo = _build(tasks_repo=tasks_repo)

    with pytest.raises(DomainError):
        engine.start_onboarding(actor=HR, employee_id=2)

    # the status write committed on its own; no partial checklist exists
    assert employees_repo.get(2).status == EmploymentStatus.ONBOARDING
    assert tasks_repo.rows == {}

    ids = engine.start_onboarding(actor=HR, employee_id=2)

    assert len(ids) == 3
    assert len(tasks_repo.rows) == 3
    assert audit_repo.actions("employees") == ["UPDATE"]


def test_bad_template_changes_nothing():
    engine, tasks_repo, employees_repo, audit_repo = _build()

    with pytest.raises(NotFoundError):
        engine.start_onboarding(actor=HR, employee_id=2, template_id=99)

    assert employees_repo.get(2).status == EmploymentStatus.ACTIVE
    assert tasks_repo.rows == {}
    assert audit_repo.entries == []


def test_start_onboarding_records_lifecycle_event_once():
    lifecycle_repo = FakeLifecycleRepo()
    engine, *_ = _build(lifecycle_repo=lifecycle_repo)

    engine.start_onboarding(actor=HR, employee_id=2)
    engine.start_onboarding(actor=HR, employee_id=2)

    [event] = lifecycle_repo.list_for_employee(2)
    assert event.event_type.value == "onboarding"
    assert event.event_date == TODAY
    assert event.triggered_by == HR.actor_id
    assert event.details == {"previous_status": "active", "template_id": 1}


def test_bulk_start_reports_each_employee_separately():
    engine, *_ = _build()

    results = engine.apply_bulk(actor=HR, employee_ids=[2, 99, 3, 2])

    assert list(results) == [2, 99, 3]
    assert len(results[2]) == 3
    assert "not found" in results[99]
    assert len(results[3]) == 3


def test_bulk_start_checks_permission_up_front():
    engine, tasks_repo, *_ = _build()

    with pytest.raises(AuthorizationError):
        engine.apply_bulk(actor=MANAGER, employee_ids=[2])
    assert tasks_repo.rows == {}


def test_parse_blueprints_validates_each_item():
    parsed = parse_blueprints([{"name": "Badge", "offset_days": "2"}])
    assert parsed[0].offset_days == 2
    assert parsed[0].kind == TaskKind.GENERAL

    with pytest.raises(ValidationError):
        parse_blueprints([{"name": "Badge", "offset_days": -1}])
    with pytest.raises(ValidationError):
        parse_blueprints([{"kind": "document"}])
    with pytest.raises(ValidationError):
        parse_blueprints({"name": "not a list"})


def test_template_service_default_switch():
    guard = AccessGuard()
    repo = FakeTemplateRepo([DEFAULT_TEMPLATE])
    svc = TemplateService(repo, guard, AuditService(FakeAuditRepo(), guard, sleep=lambda s: None))

    created = svc.create(actor=HR, name="Sales", blueprints=[{"name": "CRM access"}], make_default=True)

    assert repo.get_default().template_id == created.template_id
    assert repo.get(1).is_default is False

    svc.deactivate(actor=HR, template_id=created.template_id)
    assert repo.get_default() is None
    with pytest.raises(ValidationError):
        svc.set_default(actor=HR, template_id=created.template_id)
    with pytest.raises(AuthorizationError):
        svc.create(actor=MANAGER, name="x", blueprints=[])
