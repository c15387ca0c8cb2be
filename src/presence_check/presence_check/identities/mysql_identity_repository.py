from __future__ import annotations

from typing import Optional, Sequence

import mysql.connector

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key, load_descriptor
from .model import Identity
from .repository import IdentityRepository, StudentCodeRepository

_SELECT = "SELECT class_id, identity_id, display_name, code, descriptor FROM students"


def _row_to_identity(r: dict) -> Identity:
    return Identity(
        identity_id=str(r["identity_id"]),
        class_id=str(r["class_id"]),
        display_name=r["display_name"],
        code=r["code"],
        descriptor=load_descriptor(r.get("descriptor")),
    )


class MySQLIdentityRepository(IdentityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, class_id: str, identity_id: str) -> Optional[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE class_id=%s AND identity_id=%s", (class_id, identity_id))
            row = fetchone(cur)
            return _row_to_identity(row) if row else None

    def get_by_code(self, class_id: str, code: str) -> Optional[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE class_id=%s AND code=%s", (class_id, code))
            row = fetchone(cur)
            return _row_to_identity(row) if row else None

    def list_for_class(self, class_id: str) -> Sequence[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE class_id=%s ORDER BY code", (class_id,))
            return [_row_to_identity(r) for r in fetchall(cur)]


class MySQLStudentCodeRepository(StudentCodeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def reserve(self, class_id: str, code: str, owner_id: str) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO student_codes(class_id, code, owner_id) VALUES(%s,%s,%s)",
                    (class_id, code, owner_id),
                )
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                return False
            raise
        return True

    def release(self, class_id: str, code: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM student_codes WHERE class_id=%s AND code=%s", (class_id, code))
            return cur.rowcount > 0
