from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get(self, slot_id: str, identity_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def upsert(self, record: AttendanceRecord) -> None:
        """Write the record for (slot_id, identity_id), replacing any previous one."""

        raise NotImplementedError

    def delete(self, slot_id: str, identity_id: str) -> bool:
        raise NotImplementedError

    def list_for_slot(self, slot_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_class(self, class_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
