from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class AttendanceRecord:
    """Thực thể miền (domain): Bản ghi điểm danh, one per (slot, student)."""

    slot_id: str
    identity_id: str
    class_id: str
    timestamp: datetime
    distance_meters: int
    confidence_score: float
    manual: bool = False


@dataclass(frozen=True)
class Accepted:
    record: AttendanceRecord

    accepted = True


@dataclass(frozen=True)
class RejectedNoMatch:
    """Negative biometric decision. Nothing was written.

    The student may follow up with a face-update request for ``identity_id``.
    """

    identity_id: str
    confidence: float
    distance: float

    accepted = False


Outcome = Union[Accepted, RejectedNoMatch]


@dataclass(frozen=True)
class RosterRow:
    """Read-model for the manual attendance screen."""

    identity_id: str
    code: str
    display_name: str
    present: bool
    manual: bool = False
