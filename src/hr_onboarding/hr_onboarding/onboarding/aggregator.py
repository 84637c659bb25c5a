from __future__ import annotations

import io
import logging
from collections import defaultdict
from datetime import date
from typing import Callable, Iterable, Sequence

from ..access.guard import AccessGuard
from ..access.model import Actor
from ..access.scope import can_view_employee, is_self
from ..common.datetime_utils import now_local
from ..common.excel import rows_to_xlsx
from ..core.constants import ORG_REPORT_EMPLOYEE_LIMIT
from ..core.enums import Action, EmploymentStatus, Resource, Role, TaskStatus
from ..core.exceptions import AuthorizationError, NotFoundError
from ..employees.repository import EmployeeRepository
from .model import OnboardingTask, OrgProgressRow, TaskStats
from .repository import TaskRepository

logger = logging.getLogger(__name__)


def compute_stats(tasks: Iterable[OnboardingTask], today: date) -> TaskStats:
    """Count tasks by bucket; ``completed`` covers both completed and verified."""

    total = completed = pending = submitted = rejected = overdue = 0
    for t in tasks:
        total += 1
        if t.status.is_terminal:
            completed += 1
        elif t.status == TaskStatus.PENDING:
            pending += 1
        elif t.status == TaskStatus.SUBMITTED:
            submitted += 1
        elif t.status == TaskStatus.REJECTED:
            rejected += 1
        if t.is_overdue(today):
            overdue += 1
    return TaskStats(
        total=total,
        completed=completed,
        pending=pending,
        submitted=submitted,
        rejected=rejected,
        overdue=overdue,
    )


class OnboardingAggregator:
    """Progress statistics, always computed from the live task rows."""

    def __init__(
        self,
        tasks: TaskRepository,
        employees: EmployeeRepository,
        guard: AccessGuard,
        *,
        clock: Callable = now_local,
        employee_limit: int = ORG_REPORT_EMPLOYEE_LIMIT,
    ):
        self._tasks = tasks
        self._employees = employees
        self._guard = guard
        self._clock = clock
        self._employee_limit = employee_limit

    def stats_for_employee(self, *, actor: Actor, employee_id: int) -> TaskStats:
        self._guard.require(actor, Resource.ONBOARDING_TASKS, Action.READ)
        employee = self._employees.get(int(employee_id))
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        if not (actor.is_hr_or_admin or is_self(actor, employee)):
            me = self._employees.get_by_profile_id(actor.actor_id)
            if not can_view_employee(actor, employee, actor_employee=me):
                raise AuthorizationError("You may not view this employee's onboarding")
        return compute_stats(self._tasks.list_by_employee(employee.employee_id), self._clock().date())

    def stats_org_wide(self, *, actor: Actor) -> list[OrgProgressRow]:
        """One row per employee that has tasks or is currently onboarding.

        HR/admin get the whole organisation, managers their direct reports.
        """

        self._guard.require(actor, Resource.ONBOARDING_TASKS, Action.READ)
        if actor.is_hr_or_admin:
            employees = self._employees.list_all(limit=self._employee_limit)
            if len(employees) >= self._employee_limit:
                logger.warning(
                    "Org-wide progress truncated at %d employees; employees past the limit are not reported",
                    self._employee_limit,
                )
        elif actor.role == Role.MANAGER:
            me = self._employees.get_by_profile_id(actor.actor_id)
            employees = self._employees.list_direct_reports(me.employee_id) if me else []
        else:
            raise AuthorizationError("Organisation-wide progress is restricted to HR, admins and managers")

        if not employees:
            return []

        by_employee: dict[int, list[OnboardingTask]] = defaultdict(list)
        for t in self._tasks.list_all():
            by_employee[t.employee_id].append(t)

        today = self._clock().date()
        rows: list[OrgProgressRow] = []
        for e in employees:
            tasks = by_employee.get(e.employee_id, [])
            if not tasks and e.status != EmploymentStatus.ONBOARDING:
                continue
            rows.append(
                OrgProgressRow(
                    employee_id=e.employee_id,
                    employee_code=e.employee_code,
                    full_name=e.full_name,
                    department=e.department,
                    stats=compute_stats(tasks, today),
                )
            )
        return rows

    def export_org_wide_xlsx(self, *, actor: Actor) -> io.BytesIO:
        rows = self.stats_org_wide(actor=actor)
        return rows_to_xlsx(
            _report_rows(rows),
            columns=["Code", "Employee", "Department", "Total", "Completed", "Progress (%)", "Overdue"],
            sheet_name="OnboardingProgress",
        )


def _report_rows(rows: Sequence[OrgProgressRow]) -> list[dict]:
    return [
        {
            "Code": r.employee_code,
            "Employee": r.full_name,
            "Department": r.department or "",
            "Total": r.stats.total,
            "Completed": r.stats.completed,
            "Progress (%)": r.progress_percent,
            "Overdue": r.overdue_count,
        }
        for r in rows
    ]
