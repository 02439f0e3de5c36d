from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@contextmanager
def db_cursor(conn_factory, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """DATETIME columns hold naive UTC; aware values are converted first."""
    if value is None:
        return None
    if value.tzinfo is None:
        raise ValueError("Refusing to store a naive timestamp; canonicalize it first")
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def load_json_column(value: Any) -> Dict[str, Any]:
    """Normalize MySQL JSON values across connector implementations.

    mysql-connector can return JSON as str, bytes/bytearray or (C extension
    with some settings) an already decoded dict.
    """
    if isinstance(value, dict):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    raise TypeError(f"Unsupported MySQL JSON value type: {type(value)!r}")
