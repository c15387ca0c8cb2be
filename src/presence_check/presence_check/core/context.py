from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RequestContext:
    """Explicit per-request selection (class, slot, acting teacher).

    Passed into every call instead of keeping a "current class/slot" around.
    """

    class_id: str
    slot_id: Optional[str] = None
    acting_teacher_id: Optional[str] = None
