from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..common.validators import require_descriptor
from ..core.exceptions import StoreUnavailable
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


def _rollback_quietly(conn) -> None:
    # On a dead connection ROLLBACK fails too; the server discards the transaction anyway.
    try:
        conn.rollback()
    except mysql.connector.Error as e:
        logger.warning("rollback failed: %s", e)


def _close_quietly(conn) -> None:
    try:
        conn.close()
    except mysql.connector.Error as e:
        logger.warning("closing connection failed: %s", e)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection + one transaction: commit on success, rollback on error.

    Connection-level failures surface as StoreUnavailable (retryable).
    """
    try:
        conn = conn_factory.connect()
    except (mysql.connector.InterfaceError, mysql.connector.OperationalError) as e:
        logger.error("database unreachable: %s", e)
        raise StoreUnavailable(str(e)) from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            try:
                cur.close()
            except mysql.connector.Error as e:
                logger.warning("closing cursor failed: %s", e)
    except (mysql.connector.InterfaceError, mysql.connector.OperationalError) as e:
        _rollback_quietly(conn)
        logger.error("database error mid-transaction: %s", e)
        raise StoreUnavailable(str(e)) from e
    except Exception:
        _rollback_quietly(conn)
        raise
    finally:
        _close_quietly(conn)


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def is_duplicate_key(error: mysql.connector.Error) -> bool:
    return getattr(error, "errno", None) == errorcode.ER_DUP_ENTRY


def dump_descriptor(descriptor: Optional[Sequence[float]]) -> Optional[str]:
    if descriptor is None:
        return None
    return json.dumps([float(v) for v in descriptor])


def load_descriptor(value: Any, *, required: bool = False) -> Optional[tuple[float, ...]]:
    """Decode a JSON descriptor column.

    Raises InvalidDescriptor when stored data is malformed; an empty/NULL
    column means "not enrolled" unless ``required``.
    """
    if value is None or value == "" or value == "[]":
        if required:
            return require_descriptor(None)
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    return require_descriptor(json.loads(value) if isinstance(value, str) else value)
