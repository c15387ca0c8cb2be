from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..geofence.model import Coordinate
from .model import Slot
from .repository import SlotRepository

_SELECT = "SELECT class_id, slot_id, start_time, end_time, anchor_lat, anchor_lng, radius_meters FROM slots"


def _row_to_slot(r: dict) -> Slot:
    return Slot(
        slot_id=str(r["slot_id"]),
        class_id=str(r["class_id"]),
        start_time=r["start_time"],
        end_time=r["end_time"],
        anchor=Coordinate(lat=float(r["anchor_lat"]), lng=float(r["anchor_lng"])),
        radius_meters=float(r["radius_meters"]),
    )


class MySQLSlotRepository(SlotRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, slot: Slot) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO slots(class_id, slot_id, start_time, end_time, anchor_lat, anchor_lng, radius_meters)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    slot.class_id,
                    slot.slot_id,
                    slot.start_time,
                    slot.end_time,
                    slot.anchor.lat,
                    slot.anchor.lng,
                    slot.radius_meters,
                ),
            )

    def get(self, class_id: str, slot_id: str) -> Optional[Slot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE class_id=%s AND slot_id=%s", (class_id, slot_id))
            row = fetchone(cur)
            return _row_to_slot(row) if row else None

    def list_started_since(self, class_id: str, since: datetime) -> Sequence[Slot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE class_id=%s AND start_time > %s ORDER BY start_time DESC",
                (class_id, since),
            )
            return [_row_to_slot(r) for r in fetchall(cur)]

    def list_for_class(self, class_id: str) -> Sequence[Slot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE class_id=%s ORDER BY start_time", (class_id,))
            return [_row_to_slot(r) for r in fetchall(cur)]

    def delete(self, class_id: str, slot_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM slots WHERE class_id=%s AND slot_id=%s", (class_id, slot_id))
            return cur.rowcount > 0
