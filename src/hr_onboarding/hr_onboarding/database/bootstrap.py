from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterable

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema/seed files (handles ';' inside quotes).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
            buf.append(ch)
            continue

        if ch == '"' and not in_single:
            in_double = not in_double
            buf.append(ch)
            continue

        if ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _exec_sql(cur, sql: str) -> int:
    count = 0
    for stmt in _iter_sql_statements(_strip_comments(sql)):
        cur.execute(stmt)
        count += 1
    return count


@contextmanager
def _connect(db_config: dict, *, with_database: bool = True):
    target = DBConfig.from_dict(db_config)
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    conn = mysql.connector.connect(**kwargs)
    try:
        yield conn
    finally:
        conn.close()


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    with _connect(db_config, with_database=False) as conn:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    with _connect(db_config) as conn:
        cur = conn.cursor()
        n = _exec_sql(cur, sql)
        conn.commit()
    logger.info("Applied schema %s (%d statements)", schema_path, n)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    sql = _strip_create_db_and_use(Path(seed_path).read_text(encoding="utf-8"))

    with _connect(db_config) as conn:
        cur = conn.cursor()
        n = _exec_sql(cur, sql)
        conn.commit()
    logger.info("Applied seed %s (%d statements)", seed_path, n)


def ensure_demo_employees(db_config: dict) -> None:
    """Upsert demo employees linked to demo identities (one per role)."""

    demo = [
        ("ADM-0001", "Admin Demo", "admin@example.com", "demo-admin", "Administrator", "Operations", "active"),
        ("HR-0001", "HR Demo", "hr@example.com", "demo-hr", "HR Generalist", "Human Resources", "active"),
        ("MGR-0001", "Manager Demo", "manager@example.com", "demo-manager", "Engineering Manager", "Engineering", "active"),
        ("EMP-0001", "Employee Demo", "employee@example.com", "demo-employee", "Software Engineer", "Engineering", "onboarding"),
    ]

    with _connect(db_config) as conn:
        cur = conn.cursor(dictionary=True)
        for code, full_name, email, profile_id, job_title, department, status in demo:
            cur.execute("SELECT employee_id FROM employees WHERE employee_code=%s", (code,))
            existing = cur.fetchone()
            if existing:
                cur.execute(
                    """
                    UPDATE employees
                    SET full_name=%s, email=%s, profile_id=%s, job_title=%s, department=%s, status=%s
                    WHERE employee_code=%s
                    """,
                    (full_name, email, profile_id, job_title, department, status, code),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO employees (employee_code, full_name, email, profile_id, hire_date, job_title, department, status)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (code, full_name, email, profile_id, date.today(), job_title, department, status),
                )

        cur.execute("SELECT employee_id FROM employees WHERE employee_code=%s", ("MGR-0001",))
        manager = cur.fetchone()
        if manager:
            cur.execute(
                "UPDATE employees SET manager_id=%s WHERE employee_code=%s",
                (int(manager["employee_id"]), "EMP-0001"),
            )

        conn.commit()


def list_tables(db_config: dict) -> list[str]:
    with _connect(db_config) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
