from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..core.enums import EmploymentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import WRITABLE_FIELDS, Employee
from .repository import EmployeeRepository

_SELECT = """
    SELECT employee_id, employee_code, full_name, email, hire_date, job_title, department,
           manager_id, status, profile_id, phone, address, created_at, updated_at
    FROM employees
"""


def _to_db(value: Any) -> Any:
    return value.value if isinstance(value, EmploymentStatus) else value


def _row_to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        employee_code=r["employee_code"],
        full_name=r["full_name"],
        email=r.get("email"),
        hire_date=r.get("hire_date"),
        job_title=r.get("job_title"),
        department=r.get("department"),
        manager_id=int(r["manager_id"]) if r.get("manager_id") is not None else None,
        status=EmploymentStatus(r["status"]),
        profile_id=r.get("profile_id"),
        phone=r.get("phone"),
        address=r.get("address"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE employee_id=%s", (int(employee_id),))
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def get_by_profile_id(self, profile_id: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE profile_id=%s", (profile_id,))
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def list_all(self, *, status: Optional[EmploymentStatus] = None, limit: int = 200) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            if status is None:
                cur.execute(_SELECT + " ORDER BY full_name, employee_id LIMIT %s", (int(limit),))
            else:
                cur.execute(
                    _SELECT + " WHERE status=%s ORDER BY full_name, employee_id LIMIT %s",
                    (status.value, int(limit)),
                )
            return [_row_to_employee(r) for r in fetchall(cur)]

    def list_direct_reports(self, manager_id: int) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE manager_id=%s ORDER BY full_name, employee_id", (int(manager_id),))
            return [_row_to_employee(r) for r in fetchall(cur)]

    def create(self, *, fields: Mapping[str, Any]) -> int:
        cols = [c for c in WRITABLE_FIELDS if c in fields]
        placeholders = ",".join(["%s"] * len(cols))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO employees({', '.join(cols)}) VALUES({placeholders})",
                tuple(_to_db(fields[c]) for c in cols),
            )
            return int(cur.lastrowid)

    def update_fields(self, employee_id: int, *, fields: Mapping[str, Any]) -> bool:
        cols = [c for c in WRITABLE_FIELDS if c in fields]
        if not cols:
            return False
        assignments = ", ".join(f"{c}=%s" for c in cols)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE employees SET {assignments} WHERE employee_id=%s",
                tuple(_to_db(fields[c]) for c in cols) + (int(employee_id),),
            )
            return cur.rowcount > 0

    def delete(self, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM employees WHERE employee_id=%s", (int(employee_id),))
            return cur.rowcount > 0

    def link_profile(self, *, email: str, profile_id: str) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id FROM employees
                WHERE LOWER(email)=LOWER(%s) AND profile_id IS NULL
                ORDER BY employee_id
                LIMIT 1
                FOR UPDATE
                """,
                (email,),
            )
            row = fetchone(cur)
            if not row:
                return None
            employee_id = int(row["employee_id"])
            cur.execute(
                "UPDATE employees SET profile_id=%s WHERE employee_id=%s AND profile_id IS NULL",
                (profile_id, employee_id),
            )
            return employee_id if cur.rowcount > 0 else None
