from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import Priority, TaskKind, TaskStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import NewTask, OnboardingTask
from .repository import TASK_WRITABLE_FIELDS, TaskRepository

_SELECT = """
    SELECT task_id, employee_id, name, description, assigned_to, kind, status, priority,
           due_date, document_url, rejection_reason, verified_by, verified_at,
           completed_by, completed_at, version, created_at, updated_at
    FROM onboarding_tasks
"""

_INSERT = """
    INSERT INTO onboarding_tasks(
        employee_id, name, description, assigned_to, kind, status, priority, due_date, document_url
    )
    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
"""


def _insert_params(task: NewTask) -> tuple:
    return (
        int(task.employee_id),
        task.name,
        task.description,
        task.assigned_to,
        task.kind.value,
        TaskStatus.PENDING.value,
        task.priority.value,
        task.due_date,
        task.document_url,
    )


def _to_db(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _row_to_task(r: dict) -> OnboardingTask:
    return OnboardingTask(
        task_id=int(r["task_id"]),
        employee_id=int(r["employee_id"]),
        name=r["name"],
        description=r.get("description"),
        assigned_to=r.get("assigned_to"),
        kind=TaskKind(r["kind"]),
        status=TaskStatus(r["status"]),
        priority=Priority(r["priority"]),
        due_date=r.get("due_date"),
        document_url=r.get("document_url"),
        rejection_reason=r.get("rejection_reason"),
        verified_by=r.get("verified_by"),
        verified_at=r.get("verified_at"),
        completed_by=r.get("completed_by"),
        completed_at=r.get("completed_at"),
        version=int(r.get("version") or 1),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, task: NewTask) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_INSERT, _insert_params(task))
            return int(cur.lastrowid)

    def create_many(self, tasks: Sequence[NewTask]) -> list[int]:
        if not tasks:
            return []
        ids: list[int] = []
        # One db_cursor block is one transaction: a failing row rolls back the rows before it.
        with db_cursor(self._conn_factory) as (_, cur):
            for task in tasks:
                cur.execute(_INSERT, _insert_params(task))
                ids.append(int(cur.lastrowid))
        return ids

    def get(self, task_id: int) -> Optional[OnboardingTask]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE task_id=%s", (int(task_id),))
            row = fetchone(cur)
            return _row_to_task(row) if row else None

    def list_by_employee(self, employee_id: int) -> Sequence[OnboardingTask]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE employee_id=%s ORDER BY due_date IS NULL, due_date, task_id",
                (int(employee_id),),
            )
            return [_row_to_task(r) for r in fetchall(cur)]

    def list_all(self, *, status: Optional[TaskStatus] = None) -> Sequence[OnboardingTask]:
        with db_cursor(self._conn_factory) as (_, cur):
            if status is None:
                cur.execute(_SELECT + " ORDER BY employee_id, task_id")
            else:
                cur.execute(_SELECT + " WHERE status=%s ORDER BY employee_id, task_id", (status.value,))
            return [_row_to_task(r) for r in fetchall(cur)]

    def update(self, task_id: int, *, expected_version: int, fields: Mapping[str, Any]) -> bool:
        cols = [c for c in TASK_WRITABLE_FIELDS if c in fields]
        assignments = ", ".join([f"{c}=%s" for c in cols] + ["version=version+1"])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE onboarding_tasks SET {assignments} WHERE task_id=%s AND version=%s",
                tuple(_to_db(fields[c]) for c in cols) + (int(task_id), int(expected_version)),
            )
            return cur.rowcount == 1

    def delete(self, task_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM onboarding_tasks WHERE task_id=%s", (int(task_id),))
            return cur.rowcount > 0
