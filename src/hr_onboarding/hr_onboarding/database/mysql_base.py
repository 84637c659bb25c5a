from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import ConflictError, NotFoundError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Open a connection, yield ``(conn, cursor)`` and commit on success.

    Any exception rolls the whole transaction back, so every statement executed
    inside one ``with`` block is applied atomically.
    """

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.IntegrityError as e:
        conn.rollback()
        raise translate_integrity_error(e) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def translate_integrity_error(e: mysql.connector.IntegrityError) -> Exception:
    if e.errno == errorcode.ER_DUP_ENTRY:
        return ConflictError("Record already exists")
    if e.errno in (errorcode.ER_NO_REFERENCED_ROW, errorcode.ER_NO_REFERENCED_ROW_2):
        return NotFoundError("Referenced record does not exist")
    logger.warning("Unmapped integrity error errno=%s: %s", e.errno, e.msg)
    return ConflictError(str(e.msg or e))


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=str, sort_keys=True)


def from_json(value: Any) -> Any:
    """Decode JSON columns (mysql-connector may return str, bytes or already-decoded values)."""

    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value) if value else None
    return value
