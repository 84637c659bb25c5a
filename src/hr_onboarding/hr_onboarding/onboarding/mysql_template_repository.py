from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json
from .model import OnboardingTemplate, TaskBlueprint
from .repository import TemplateRepository

_SELECT = """
    SELECT template_id, name, department, role, blueprints, is_active, is_default, created_at
    FROM onboarding_templates
"""


def _row_to_template(r: dict) -> OnboardingTemplate:
    raw = from_json(r.get("blueprints")) or []
    return OnboardingTemplate(
        template_id=int(r["template_id"]),
        name=r["name"],
        department=r.get("department"),
        role=r.get("role"),
        blueprints=tuple(TaskBlueprint.from_dict(b) for b in raw),
        is_active=bool(r.get("is_active", True)),
        is_default=bool(r.get("is_default", False)),
        created_at=r.get("created_at"),
    )


class MySQLTemplateRepository(TemplateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, template_id: int) -> Optional[OnboardingTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE template_id=%s", (int(template_id),))
            row = fetchone(cur)
            return _row_to_template(row) if row else None

    def get_default(self) -> Optional[OnboardingTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE is_active=1 AND is_default=1 ORDER BY template_id LIMIT 1")
            row = fetchone(cur)
            return _row_to_template(row) if row else None

    def list(self, *, include_inactive: bool = False) -> Sequence[OnboardingTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            if include_inactive:
                cur.execute(_SELECT + " ORDER BY name")
            else:
                cur.execute(_SELECT + " WHERE is_active=1 ORDER BY name")
            return [_row_to_template(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        name: str,
        blueprints: Sequence[TaskBlueprint],
        department: Optional[str] = None,
        role: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO onboarding_templates(name, department, role, blueprints, is_active, is_default)
                VALUES(%s,%s,%s,%s,1,0)
                """,
                (name, department, role, to_json([b.to_dict() for b in blueprints])),
            )
            return int(cur.lastrowid)

    def set_active(self, template_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            if is_active:
                cur.execute("UPDATE onboarding_templates SET is_active=1 WHERE template_id=%s", (int(template_id),))
            else:
                cur.execute(
                    "UPDATE onboarding_templates SET is_active=0, is_default=0 WHERE template_id=%s",
                    (int(template_id),),
                )
            return cur.rowcount > 0

    def set_default(self, template_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE onboarding_templates SET is_default=1 WHERE template_id=%s AND is_active=1",
                (int(template_id),),
            )
            if cur.rowcount == 0:
                return False
            cur.execute("UPDATE onboarding_templates SET is_default=0 WHERE template_id<>%s", (int(template_id),))
            return True
