from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from ..access.model import Actor
from ..common.validators import optional_text
from ..core.enums import TaskKind, TaskStatus
from ..core.exceptions import AuthorizationError, InvalidTransitionError, ValidationError
from .model import OnboardingTask


class TransitionActor(str, Enum):
    OWNER = "owner"
    REVIEWER = "reviewer"


@dataclass(frozen=True)
class TransitionRule:
    from_status: TaskStatus
    to_status: TaskStatus
    actor: TransitionActor


SELF_COMPLETABLE_KINDS = frozenset({TaskKind.POLICY, TaskKind.TRAINING, TaskKind.GENERAL})

# Whitelist; verified and completed have no outgoing edges.
TRANSITIONS: Mapping[tuple[TaskStatus, TaskStatus], TransitionRule] = {
    (r.from_status, r.to_status): r
    for r in (
        TransitionRule(TaskStatus.PENDING, TaskStatus.SUBMITTED, TransitionActor.OWNER),
        TransitionRule(TaskStatus.PENDING, TaskStatus.COMPLETED, TransitionActor.OWNER),
        TransitionRule(TaskStatus.SUBMITTED, TaskStatus.VERIFIED, TransitionActor.REVIEWER),
        TransitionRule(TaskStatus.SUBMITTED, TaskStatus.REJECTED, TransitionActor.REVIEWER),
        TransitionRule(TaskStatus.REJECTED, TaskStatus.SUBMITTED, TransitionActor.OWNER),
    )
}

# Who may move a task *into* a status, whatever it comes from.
_ACTOR_BY_TARGET: Mapping[TaskStatus, TransitionActor] = {
    r.to_status: r.actor for r in TRANSITIONS.values()
}


def allowed_targets(status: TaskStatus) -> list[TaskStatus]:
    return [to for (frm, to) in TRANSITIONS if frm == status]


def require_actor(to_status: TaskStatus, actor: Actor, *, is_owner: bool) -> None:
    """Role check for the target status; runs before the legality check."""

    required = _ACTOR_BY_TARGET.get(to_status)
    if required == TransitionActor.REVIEWER and not actor.is_hr_or_admin:
        raise AuthorizationError(f"Only HR or admin may mark a task {to_status.value}")
    if required == TransitionActor.OWNER and not is_owner:
        raise AuthorizationError(f"Only the task owner may mark a task {to_status.value}")


def find_rule(from_status: TaskStatus, to_status: TaskStatus) -> TransitionRule:
    rule = TRANSITIONS.get((from_status, to_status))
    if rule is None:
        detail = "task is closed" if from_status.is_terminal else ""
        raise InvalidTransitionError(from_status, to_status, detail)
    return rule


def plan_transition(
    task: OnboardingTask,
    to_status: TaskStatus,
    *,
    actor: Actor,
    now: datetime,
    document_url: Optional[str] = None,
    reason: Optional[str] = None,
) -> dict[str, Any]:
    """Check the edge's preconditions and return the column values to write."""

    find_rule(task.status, to_status)
    fields: dict[str, Any] = {"status": to_status}

    if to_status == TaskStatus.SUBMITTED:
        url = optional_text(document_url, "document_url") or task.document_url
        if task.kind == TaskKind.DOCUMENT and not url:
            raise ValidationError("A document must be attached before submitting this task")
        if url != task.document_url:
            fields["document_url"] = url
        fields["rejection_reason"] = None

    elif to_status == TaskStatus.COMPLETED:
        if task.kind not in SELF_COMPLETABLE_KINDS:
            raise InvalidTransitionError(
                task.status,
                to_status,
                f"{task.kind.value} tasks must be submitted for verification",
            )
        fields["completed_by"] = actor.actor_id
        fields["completed_at"] = now

    elif to_status == TaskStatus.VERIFIED:
        fields["verified_by"] = actor.actor_id
        fields["verified_at"] = now

    elif to_status == TaskStatus.REJECTED:
        text = optional_text(reason, "reason")
        if not text:
            raise ValidationError("A rejection reason is required")
        fields["rejection_reason"] = text

    return fields
