from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ClassRoom:
    """Thực thể miền (domain): Lớp học, thuộc về một giáo viên."""

    class_id: str
    teacher_id: str
    name: str
    # Free-text school name; students browse classes by it when registering.
    school: str = ""
