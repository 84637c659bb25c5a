from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import EmploymentStatus
from .model import Employee


class EmployeeRepository(Protocol):
    def get(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_profile_id(self, profile_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def list_all(self, *, status: Optional[EmploymentStatus] = None, limit: int = 200) -> Sequence[Employee]:
        raise NotImplementedError

    def list_direct_reports(self, manager_id: int) -> Sequence[Employee]:
        raise NotImplementedError

    def create(self, *, fields: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def update_fields(self, employee_id: int, *, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, employee_id: int) -> bool:
        raise NotImplementedError

    def link_profile(self, *, email: str, profile_id: str) -> Optional[int]:
        """Attach ``profile_id`` to the unlinked employee with this e-mail.

        Returns the employee id, or None when no unlinked row matches.
        """

        raise NotImplementedError
