from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .lifecycle_model import LifecycleEvent, NewLifecycleEvent


class LifecycleRepository(Protocol):
    def append(self, event: NewLifecycleEvent) -> int:
        raise NotImplementedError

    def get(self, event_id: int) -> Optional[LifecycleEvent]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int) -> Sequence[LifecycleEvent]:
        """Newest first: ``event_date`` descending, then insertion order descending."""

        raise NotImplementedError
