from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Actor:
    """The caller, as vouched for by the identity provider.

    ``actor_id`` is the identity-provider user id; it is matched against
    ``Employee.profile_id`` to find the caller's own employee record.
    """

    actor_id: str
    role: Role

    @property
    def is_hr_or_admin(self) -> bool:
        return self.role in (Role.ADMIN, Role.HR)


@dataclass(frozen=True)
class Permission:
    can_create: bool = False
    can_read: bool = False
    can_update: bool = False
    can_delete: bool = False
