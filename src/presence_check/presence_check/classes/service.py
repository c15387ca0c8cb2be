from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.ids import new_id
from ..common.validators import require_non_empty
from ..core.exceptions import AuthorizationError, NotFound
from ..identities.model import Identity
from ..identities.repository import IdentityRepository
from .model import ClassRoom
from .repository import ClassRepository

logger = logging.getLogger(__name__)


class ClassService:
    """Use case: teachers manage their classes; other services ask it for ownership checks."""

    def __init__(self, classes: ClassRepository, identities: IdentityRepository):
        self._classes = classes
        self._identities = identities

    def require_class(self, class_id: str) -> ClassRoom:
        classroom = self._classes.get(class_id)
        if not classroom:
            raise NotFound("Lớp không tồn tại")
        return classroom

    def require_owner(self, class_id: str, teacher_id: Optional[str]) -> ClassRoom:
        if not teacher_id:
            raise AuthorizationError("Vui lòng đăng nhập với tài khoản giáo viên")
        classroom = self.require_class(class_id)
        if classroom.teacher_id != teacher_id:
            logger.warning("teacher %s denied access to class %s", teacher_id, class_id)
            raise AuthorizationError("Không có quyền")
        return classroom

    def create_class(self, *, teacher_id: Optional[str], name: str, school: str = "") -> ClassRoom:
        if not teacher_id:
            raise AuthorizationError("Vui lòng đăng nhập với tài khoản giáo viên")
        classroom = ClassRoom(
            class_id=new_id("c"),
            teacher_id=teacher_id,
            name=require_non_empty(name, "Tên lớp"),
            school=self._canonical_school(school),
        )
        self._classes.create(classroom)
        logger.info("class %s created by teacher %s", classroom.class_id, teacher_id)
        return classroom

    def delete_class(self, *, teacher_id: Optional[str], class_id: str) -> None:
        self.require_owner(class_id, teacher_id)
        if not self._classes.delete(class_id):
            raise NotFound("Lớp không tồn tại")
        logger.info("class %s deleted by teacher %s", class_id, teacher_id)

    def list_my_classes(self, teacher_id: Optional[str]) -> Sequence[ClassRoom]:
        if not teacher_id:
            raise AuthorizationError("Vui lòng đăng nhập với tài khoản giáo viên")
        return self._classes.list_for_teacher(teacher_id)

    def list_students(self, *, teacher_id: Optional[str], class_id: str) -> Sequence[Identity]:
        self.require_owner(class_id, teacher_id)
        return self._identities.list_for_class(class_id)

    # Public directory: students pick school, then class, when registering.

    def list_schools(self) -> list[str]:
        seen: dict[str, str] = {}
        for c in self._classes.list_all():
            if c.school:
                seen.setdefault(c.school.casefold(), c.school)
        return sorted(seen.values(), key=str.casefold)

    def directory(self, school: Optional[str] = None) -> Sequence[ClassRoom]:
        classes = self._classes.list_all()
        if school is None:
            return classes
        wanted = " ".join(school.split()).casefold()
        return [c for c in classes if c.school.casefold() == wanted]

    def _canonical_school(self, school: Optional[str]) -> str:
        """Reuse the spelling of an existing school that differs only by case/spacing."""
        name = " ".join((school or "").split())
        for existing in self.list_schools():
            if existing.casefold() == name.casefold():
                return existing
        return name
