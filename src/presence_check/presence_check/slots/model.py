from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..geofence.model import Coordinate


@dataclass(frozen=True)
class Slot:
    """Time-boxed, geofenced attendance session of a class. Immutable once opened."""

    slot_id: str
    class_id: str
    start_time: datetime
    end_time: datetime
    anchor: Coordinate
    radius_meters: float

    def is_expired(self, now: datetime) -> bool:
        return now > self.end_time
