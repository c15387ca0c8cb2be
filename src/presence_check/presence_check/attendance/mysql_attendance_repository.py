from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_SELECT = """
    SELECT slot_id, identity_id, class_id, recorded_at, distance_meters, confidence_score, manual
    FROM attendance
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        slot_id=str(r["slot_id"]),
        identity_id=str(r["identity_id"]),
        class_id=str(r["class_id"]),
        timestamp=r["recorded_at"],
        distance_meters=int(r["distance_meters"]),
        confidence_score=float(r["confidence_score"]),
        manual=bool(r.get("manual", False)),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, slot_id: str, identity_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE slot_id=%s AND identity_id=%s", (slot_id, identity_id))
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def upsert(self, record: AttendanceRecord) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(slot_id, identity_id, class_id, recorded_at, distance_meters, confidence_score, manual)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    class_id=VALUES(class_id),
                    recorded_at=VALUES(recorded_at),
                    distance_meters=VALUES(distance_meters),
                    confidence_score=VALUES(confidence_score),
                    manual=VALUES(manual)
                """,
                (
                    record.slot_id,
                    record.identity_id,
                    record.class_id,
                    record.timestamp,
                    int(record.distance_meters),
                    float(record.confidence_score),
                    1 if record.manual else 0,
                ),
            )

    def delete(self, slot_id: str, identity_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance WHERE slot_id=%s AND identity_id=%s", (slot_id, identity_id))
            return cur.rowcount > 0

    def list_for_slot(self, slot_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE slot_id=%s ORDER BY recorded_at", (slot_id,))
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_class(self, class_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE class_id=%s ORDER BY recorded_at", (class_id,))
            return [_row_to_record(r) for r in fetchall(cur)]
