from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Identity


class IdentityRepository(Protocol):
    def get(self, class_id: str, identity_id: str) -> Optional[Identity]:
        raise NotImplementedError

    def get_by_code(self, class_id: str, code: str) -> Optional[Identity]:
        raise NotImplementedError

    def list_for_class(self, class_id: str) -> Sequence[Identity]:
        raise NotImplementedError


class StudentCodeRepository(Protocol):
    """Create-if-absent registry of (class_id, code) pairs.

    Shared by enrolled and pending students, so two concurrent registrations
    with the same code cannot both get through.
    """

    def reserve(self, class_id: str, code: str, owner_id: str) -> bool:
        """Return False if the code is already taken."""

        raise NotImplementedError

    def release(self, class_id: str, code: str) -> bool:
        raise NotImplementedError
