from __future__ import annotations

import logging
from typing import Mapping, Optional

from ..core.enums import Action, Resource, Role
from ..core.exceptions import AuthorizationError
from .model import Actor, Permission

logger = logging.getLogger(__name__)


def _p(c: bool, r: bool, u: bool, d: bool) -> Permission:
    return Permission(can_create=c, can_read=r, can_update=u, can_delete=d)


# Whitelist: any (role, resource) pair not listed here is denied.
PERMISSION_MATRIX: Mapping[tuple[Role, Resource], Permission] = {
    (Role.ADMIN, Resource.EMPLOYEES): _p(True, True, True, True),
    (Role.ADMIN, Resource.ONBOARDING_TASKS): _p(True, True, True, True),
    (Role.ADMIN, Resource.ONBOARDING_TEMPLATES): _p(True, True, True, True),
    (Role.ADMIN, Resource.AUDIT_LOGS): _p(False, True, False, False),
    (Role.ADMIN, Resource.NOTIFICATIONS): _p(True, True, True, True),
    (Role.ADMIN, Resource.SUPPORT_TICKETS): _p(True, True, True, True),

    (Role.HR, Resource.EMPLOYEES): _p(True, True, True, False),
    (Role.HR, Resource.ONBOARDING_TASKS): _p(True, True, True, True),
    (Role.HR, Resource.ONBOARDING_TEMPLATES): _p(True, True, True, False),
    (Role.HR, Resource.NOTIFICATIONS): _p(True, True, True, False),
    (Role.HR, Resource.SUPPORT_TICKETS): _p(True, True, True, False),

    (Role.MANAGER, Resource.EMPLOYEES): _p(False, True, False, False),
    (Role.MANAGER, Resource.ONBOARDING_TASKS): _p(False, True, False, False),
    (Role.MANAGER, Resource.NOTIFICATIONS): _p(False, True, True, False),
    (Role.MANAGER, Resource.SUPPORT_TICKETS): _p(True, True, False, False),

    (Role.EMPLOYEE, Resource.EMPLOYEES): _p(False, True, True, False),
    (Role.EMPLOYEE, Resource.ONBOARDING_TASKS): _p(False, True, True, False),
    (Role.EMPLOYEE, Resource.NOTIFICATIONS): _p(False, True, True, False),
    (Role.EMPLOYEE, Resource.SUPPORT_TICKETS): _p(True, True, False, False),
}


class AccessGuard:
    """Role x resource authorization check backed by a static matrix."""

    def __init__(self, matrix: Optional[Mapping[tuple[Role, Resource], Permission]] = None):
        self._matrix = PERMISSION_MATRIX if matrix is None else matrix

    def can_perform(self, role: Role, resource: Resource, action: Action) -> bool:
        permission = self._matrix.get((role, resource))
        if permission is None:
            return False

        if action == Action.CREATE:
            return permission.can_create
        if action == Action.READ:
            return permission.can_read
        if action == Action.UPDATE:
            return permission.can_update
        if action == Action.DELETE:
            return permission.can_delete
        return False

    def require(self, actor: Actor, resource: Resource, action: Action) -> None:
        if not self.can_perform(actor.role, resource, action):
            logger.info(
                "Denied %s %s on %s for actor=%s",
                actor.role.value,
                action.value,
                resource.value,
                actor.actor_id,
            )
            raise AuthorizationError(f"Role '{actor.role.value}' may not {action.value} {resource.value}")

    def permissions_for(self, role: Role) -> dict[str, dict[str, bool]]:
        out: dict[str, dict[str, bool]] = {}
        for resource in Resource:
            out[resource.value] = {a.value: self.can_perform(role, resource, a) for a in Action}
        return out
