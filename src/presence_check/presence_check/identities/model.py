from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Identity:
    """Thực thể miền (domain): Sinh viên đã được duyệt vào lớp."""

    identity_id: str
    class_id: str
    display_name: str
    code: str
    # None until a face is enrolled; otherwise exactly 128 components.
    descriptor: Optional[tuple[float, ...]] = None

    @property
    def is_enrolled(self) -> bool:
        return self.descriptor is not None
