from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ClassRoom


class ClassRepository(Protocol):
    def get(self, class_id: str) -> Optional[ClassRoom]:
        raise NotImplementedError

    def list_for_teacher(self, teacher_id: str) -> Sequence[ClassRoom]:
        raise NotImplementedError

    def list_all(self) -> Sequence[ClassRoom]:
        raise NotImplementedError

    def create(self, classroom: ClassRoom) -> None:
        raise NotImplementedError

    def delete(self, class_id: str) -> bool:
        """Delete the class and everything keyed under it."""

        raise NotImplementedError
