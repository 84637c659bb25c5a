from __future__ import annotations

import logging

import pytest

from src.hr_onboarding.hr_onboarding.access.guard import AccessGuard
from src.hr_onboarding.hr_onboarding.audit.model import AuditFilter
from src.hr_onboarding.hr_onboarding.audit.service import AuditService
from src.hr_onboarding.hr_onboarding.core.enums import AuditAction
from src.hr_onboarding.hr_onboarding.core.exceptions import AuthorizationError

from tests.fakes import ADMIN, HR, FakeAuditRepo


class FlakyAuditRepo(FakeAuditRepo):
    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures
        self.attempts = 0

    def append(self, **kwargs):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise ConnectionError("audit store unavailable")
        return super().append(**kwargs)


def test_record_retries_with_exponential_backoff():
    repo = FlakyAuditRepo(failures=2)
    sleeps: list[float] = []
    svc = AuditService(repo, AccessGuard(), attempts=3, backoff_seconds=0.5, sleep=sleeps.append)

    entry_id = svc.record(actor=HR, action=AuditAction.UPDATE, resource_type="employees", resource_id=7)

    assert entry_id == 1
    assert sleeps == [0.5, 1.0]
    assert repo.entries[0].resource_id == "7"
    assert repo.entries[0].actor_id == HR.actor_id


def test_exhausted_retries_raise_critical_alert(caplog):
    repo = FlakyAuditRepo(failures=10)
    svc = AuditService(repo, AccessGuard(), attempts=3, backoff_seconds=0.0, sleep=lambda s: None)

    with caplog.at_level(logging.WARNING):
        result = svc.record(
            actor=HR,
            action=AuditAction.TRANSITION,
            resource_type="onboarding_tasks",
            resource_id=1,
            before={"status": "submitted"},
            after={"status": "verified"},
        )

    assert result is None
    assert repo.attempts == 3
    alerts = [r for r in caplog.records if r.name == "hr_onboarding.alerts"]
    assert len(alerts) == 1
    assert alerts[0].levelno == logging.CRITICAL
    assert "verified" in alerts[0].getMessage()


def test_system_actor_is_recorded_as_none():
    repo = FakeAuditRepo()
    AuditService(repo, AccessGuard()).record(actor=None, action=AuditAction.CREATE, resource_type="x", resource_id=None)

    assert repo.entries[0].actor_id is None
    assert repo.entries[0].resource_id is None


def test_only_admin_reads_the_log():
    repo = FakeAuditRepo()
    svc = AuditService(repo, AccessGuard())
    svc.record(actor=HR, action=AuditAction.CREATE, resource_type="employees", resource_id=1)
    svc.record(actor=HR, action=AuditAction.DELETE, resource_type="employees", resource_id=1)

    entries = svc.list_entries(actor=ADMIN, filters=AuditFilter(action=AuditAction.DELETE))

    assert [e.action for e in entries] == [AuditAction.DELETE]
    with pytest.raises(AuthorizationError):
        svc.list_entries(actor=HR)
