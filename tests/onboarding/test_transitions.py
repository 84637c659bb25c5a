from __future__ import annotations

from datetime import date

import pytest

from src.hr_onboarding.hr_onboarding.core.enums import Priority, TaskKind, TaskStatus
from src.hr_onboarding.hr_onboarding.core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    ValidationError,
)
from src.hr_onboarding.hr_onboarding.onboarding.model import OnboardingTask
from src.hr_onboarding.hr_onboarding.onboarding.transitions import (
    TRANSITIONS,
    allowed_targets,
    find_rule,
    plan_transition,
    require_actor,
)

from tests.fakes import EMPLOYEE, FIXED_NOW, HR, MANAGER


def _task(status=TaskStatus.PENDING, kind=TaskKind.GENERAL, **kw) -> OnboardingTask:
    return OnboardingTask(
        task_id=1,
        employee_id=2,
        name="Sign contract",
        kind=kind,
        status=status,
        priority=Priority.MEDIUM,
        due_date=date(2024, 1, 20),
        **kw,
    )


def test_terminal_statuses_have_no_outgoing_edges():
    assert allowed_targets(TaskStatus.VERIFIED) == []
    assert allowed_targets(TaskStatus.COMPLETED) == []
    assert set(allowed_targets(TaskStatus.SUBMITTED)) == {TaskStatus.VERIFIED, TaskStatus.REJECTED}
    assert len(TRANSITIONS) == 5


@pytest.mark.parametrize(
    "frm,to",
    [
        (TaskStatus.PENDING, TaskStatus.VERIFIED),
        (TaskStatus.REJECTED, TaskStatus.VERIFIED),
        (TaskStatus.VERIFIED, TaskStatus.PENDING),
        (TaskStatus.COMPLETED, TaskStatus.SUBMITTED),
        (TaskStatus.SUBMITTED, TaskStatus.PENDING),
    ],
)
def test_edges_outside_the_table_are_rejected(frm, to):
    with pytest.raises(InvalidTransitionError):
        find_rule(frm, to)


def test_closed_task_message_mentions_closed():
    with pytest.raises(InvalidTransitionError, match="closed"):
        find_rule(TaskStatus.VERIFIED, TaskStatus.REJECTED)


def test_reviewer_targets_need_hr_or_admin():
    require_actor(TaskStatus.VERIFIED, HR, is_owner=False)
    with pytest.raises(AuthorizationError):
        require_actor(TaskStatus.VERIFIED, MANAGER, is_owner=False)
    with pytest.raises(AuthorizationError):
        require_actor(TaskStatus.REJECTED, EMPLOYEE, is_owner=True)


def test_owner_targets_need_the_task_owner():
    require_actor(TaskStatus.SUBMITTED, EMPLOYEE, is_owner=True)
    with pytest.raises(AuthorizationError):
        require_actor(TaskStatus.SUBMITTED, HR, is_owner=False)


def test_document_task_needs_url_to_submit():
    task = _task(kind=TaskKind.DOCUMENT)

    with pytest.raises(ValidationError):
        plan_transition(task, TaskStatus.SUBMITTED, actor=EMPLOYEE, now=FIXED_NOW)

    fields = plan_transition(
        task,
        TaskStatus.SUBMITTED,
        actor=EMPLOYEE,
        now=FIXED_NOW,
        document_url="https://files/contract.pdf",
    )
    assert fields == {
        "status": TaskStatus.SUBMITTED,
        "document_url": "https://files/contract.pdf",
        "rejection_reason": None,
    }


def test_self_completion_only_for_policy_training_general():
    fields = plan_transition(_task(kind=TaskKind.TRAINING), TaskStatus.COMPLETED, actor=EMPLOYEE, now=FIXED_NOW)
    assert fields["completed_by"] == EMPLOYEE.actor_id
    assert fields["completed_at"] == FIXED_NOW

    with pytest.raises(InvalidTransitionError):
        plan_transition(_task(kind=TaskKind.IT_SETUP), TaskStatus.COMPLETED, actor=EMPLOYEE, now=FIXED_NOW)


def test_reject_requires_reason():
    task = _task(status=TaskStatus.SUBMITTED)

    with pytest.raises(ValidationError):
        plan_transition(task, TaskStatus.REJECTED, actor=HR, now=FIXED_NOW, reason="   ")
    fields = plan_transition(task, TaskStatus.REJECTED, actor=HR, now=FIXED_NOW, reason=" missing signature ")
    assert fields["rejection_reason"] == "missing signature"


def test_verify_stamps_reviewer():
    fields = plan_transition(_task(status=TaskStatus.SUBMITTED), TaskStatus.VERIFIED, actor=HR, now=FIXED_NOW)
    assert fields == {"status": TaskStatus.VERIFIED, "verified_by": HR.actor_id, "verified_at": FIXED_NOW}
