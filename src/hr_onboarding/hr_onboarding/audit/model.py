from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from ..core.enums import AuditAction


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable record of one mutation. Never updated or deleted."""

    entry_id: int
    actor_id: Optional[str]
    action: AuditAction
    resource_type: str
    resource_id: Optional[str]
    before: Optional[dict[str, Any]]
    after: Optional[dict[str, Any]]
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "entry_id": self.entry_id,
            "actor_id": self.actor_id,
            "action": self.action.value,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "before": self.before,
            "after": self.after,
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }


@dataclass(frozen=True)
class AuditFilter:
    action: Optional[AuditAction] = None
    resource_type: Optional[str] = None
    actor_id: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
