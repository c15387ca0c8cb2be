from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ClassRoom
from .repository import ClassRepository

_SELECT = "SELECT class_id, teacher_id, name, school FROM classes"


def _row_to_class(r: dict) -> ClassRoom:
    return ClassRoom(
        class_id=str(r["class_id"]),
        teacher_id=str(r["teacher_id"]),
        name=r["name"],
        school=r.get("school") or "",
    )


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, class_id: str) -> Optional[ClassRoom]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE class_id=%s", (class_id,))
            row = fetchone(cur)
            return _row_to_class(row) if row else None

    def list_for_teacher(self, teacher_id: str) -> Sequence[ClassRoom]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE teacher_id=%s ORDER BY created_at, name", (teacher_id,))
            return [_row_to_class(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[ClassRoom]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} ORDER BY school, name")
            return [_row_to_class(r) for r in fetchall(cur)]

    def create(self, classroom: ClassRoom) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO classes(class_id, teacher_id, name, school) VALUES(%s,%s,%s,%s)",
                (classroom.class_id, classroom.teacher_id, classroom.name, classroom.school),
            )

    def delete(self, class_id: str) -> bool:
        # Students, pending records, requests, slots, attendance and code
        # reservations go with it through ON DELETE CASCADE.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM classes WHERE class_id=%s", (class_id,))
            return cur.rowcount > 0
