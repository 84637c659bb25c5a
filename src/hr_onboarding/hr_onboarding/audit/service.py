from __future__ import annotations

import io
import logging
import time
from typing import Any, Callable, Optional, Sequence

from ..access.guard import AccessGuard
from ..access.model import Actor
from ..common.excel import rows_to_xlsx
from ..core.constants import (
    DEFAULT_AUDIT_LIST_LIMIT,
    DEFAULT_AUDIT_RETRY_ATTEMPTS,
    DEFAULT_AUDIT_RETRY_BACKOFF_SECONDS,
)
from ..core.enums import Action, AuditAction, Resource
from .model import AuditFilter, AuditLogEntry
from .repository import AuditRepository

logger = logging.getLogger(__name__)
alert_logger = logging.getLogger("hr_onboarding.alerts")


class AuditService:
    """Audit sink.

    Entries are written right after the mutation they describe has committed.
    A failed write is retried with exponential backoff; when every attempt
    fails the entry is escalated to the operator alert log (CRITICAL) together
    with its full payload, so it can be replayed by hand.
    """

    def __init__(
        self,
        audit: AuditRepository,
        guard: AccessGuard,
        *,
        attempts: int = DEFAULT_AUDIT_RETRY_ATTEMPTS,
        backoff_seconds: float = DEFAULT_AUDIT_RETRY_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._audit = audit
        self._guard = guard
        self._attempts = max(1, int(attempts))
        self._backoff = float(backoff_seconds)
        self._sleep = sleep

    def record(
        self,
        *,
        actor: Optional[Actor],
        action: AuditAction,
        resource_type: str,
        resource_id: Any,
        before: Optional[dict[str, Any]] = None,
        after: Optional[dict[str, Any]] = None,
    ) -> Optional[int]:
        actor_id = actor.actor_id if actor else None
        rid = str(resource_id) if resource_id is not None else None

        last_error: Optional[Exception] = None
        for attempt in range(1, self._attempts + 1):
            try:
                return self._audit.append(
                    actor_id=actor_id,
                    action=action,
                    resource_type=resource_type,
                    resource_id=rid,
                    before=before,
                    after=after,
                )
            except Exception as e:
                last_error = e
                logger.warning(
                    "Audit write failed (attempt %d/%d) for %s %s/%s: %s",
                    attempt,
                    self._attempts,
                    action.value,
                    resource_type,
                    rid,
                    e,
                )
                if attempt < self._attempts:
                    self._sleep(self._backoff * (2 ** (attempt - 1)))

        alert_logger.critical(
            "AUDIT RECORD LOST after %d attempts: actor=%s action=%s resource=%s/%s before=%r after=%r error=%s",
            self._attempts,
            actor_id,
            action.value,
            resource_type,
            rid,
            before,
            after,
            last_error,
        )
        return None

    def list_entries(
        self,
        *,
        actor: Actor,
        filters: Optional[AuditFilter] = None,
        limit: int = DEFAULT_AUDIT_LIST_LIMIT,
    ) -> Sequence[AuditLogEntry]:
        self._guard.require(actor, Resource.AUDIT_LOGS, Action.READ)
        return self._audit.list(filters=filters or AuditFilter(), limit=int(limit))

    def export_xlsx(self, *, actor: Actor, filters: Optional[AuditFilter] = None) -> io.BytesIO:
        entries = self.list_entries(actor=actor, filters=filters, limit=10_000)
        rows = [
            {
                "Date": e.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                "Actor": e.actor_id or "system",
                "Action": e.action.value,
                "Resource": e.resource_type,
                "Resource ID": e.resource_id or "",
            }
            for e in entries
        ]
        return rows_to_xlsx(rows, columns=["Date", "Actor", "Action", "Resource", "Resource ID"], sheet_name="AuditLogs")
