from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import LifecycleEventType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json
from .lifecycle_model import LifecycleEvent, NewLifecycleEvent
from .lifecycle_repository import LifecycleRepository

_SELECT = """
    SELECT event_id, employee_id, event_type, event_date, details, triggered_by, created_at
    FROM employee_lifecycle_events
"""


def _row_to_event(r: dict) -> LifecycleEvent:
    return LifecycleEvent(
        event_id=int(r["event_id"]),
        employee_id=int(r["employee_id"]),
        event_type=LifecycleEventType(r["event_type"]),
        event_date=r["event_date"],
        details=from_json(r.get("details")) or {},
        triggered_by=r.get("triggered_by"),
        created_at=r.get("created_at"),
    )


class MySQLLifecycleRepository(LifecycleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, event: NewLifecycleEvent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employee_lifecycle_events(employee_id, event_type, event_date, details, triggered_by)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (
                    int(event.employee_id),
                    event.event_type.value,
                    event.event_date,
                    to_json(event.details or {}),
                    event.triggered_by,
                ),
            )
            return int(cur.lastrowid)

    def get(self, event_id: int) -> Optional[LifecycleEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE event_id=%s", (int(event_id),))
            row = fetchone(cur)
            return _row_to_event(row) if row else None

    def list_for_employee(self, employee_id: int) -> Sequence[LifecycleEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE employee_id=%s ORDER BY event_date DESC, event_id DESC",
                (int(employee_id),),
            )
            return [_row_to_event(r) for r in fetchall(cur)]
