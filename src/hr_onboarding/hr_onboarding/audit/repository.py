from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from ..core.enums import AuditAction
from .model import AuditFilter, AuditLogEntry


class AuditRepository(Protocol):
    """Append-only store: there is deliberately no update or delete."""

    def append(
        self,
        *,
        actor_id: Optional[str],
        action: AuditAction,
        resource_type: str,
        resource_id: Optional[str],
        before: Optional[dict[str, Any]],
        after: Optional[dict[str, Any]],
    ) -> int:
        raise NotImplementedError

    def list(self, *, filters: AuditFilter, limit: int) -> Sequence[AuditLogEntry]:
        raise NotImplementedError
