from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Slot


class SlotRepository(Protocol):
    def create(self, slot: Slot) -> None:
        raise NotImplementedError

    def get(self, class_id: str, slot_id: str) -> Optional[Slot]:
        raise NotImplementedError

    def list_started_since(self, class_id: str, since: datetime) -> Sequence[Slot]:
        raise NotImplementedError

    def list_for_class(self, class_id: str) -> Sequence[Slot]:
        raise NotImplementedError

    def delete(self, class_id: str, slot_id: str) -> bool:
        raise NotImplementedError
