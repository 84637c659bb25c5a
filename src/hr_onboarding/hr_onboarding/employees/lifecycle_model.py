from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import format_date, format_datetime
from ..core.enums import LifecycleEventType


@dataclass(frozen=True)
class LifecycleEvent:
    """One milestone on an employee's timeline (hired, promoted, moved, left)."""

    event_id: int
    employee_id: int
    event_type: LifecycleEventType
    event_date: date
    details: dict[str, Any] = field(default_factory=dict)
    triggered_by: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "employee_id": self.employee_id,
            "event_type": self.event_type.value,
            "event_date": format_date(self.event_date),
            "details": dict(self.details),
            "triggered_by": self.triggered_by,
            "created_at": format_datetime(self.created_at),
        }


@dataclass(frozen=True)
class NewLifecycleEvent:
    employee_id: int
    event_type: LifecycleEventType
    event_date: date
    details: dict[str, Any] = field(default_factory=dict)
    triggered_by: Optional[str] = None
