from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..identities.model import Identity
from .model import FaceUpdateRequest, PendingIdentity


class PendingIdentityRepository(Protocol):
    def create(self, pending: PendingIdentity) -> None:
        raise NotImplementedError

    def get(self, class_id: str, pending_id: str) -> Optional[PendingIdentity]:
        raise NotImplementedError

    def get_by_code(self, class_id: str, code: str) -> Optional[PendingIdentity]:
        raise NotImplementedError

    def list_for_classes(self, class_ids: Sequence[str]) -> Sequence[PendingIdentity]:
        raise NotImplementedError

    def promote(self, class_id: str, pending_id: str) -> Optional[Identity]:
        """Delete the pending record and create its Identity in one transaction.

        Returns None if the record is gone. If the Identity cannot be written
        the pending record is left untouched.
        """

        raise NotImplementedError

    def discard(self, class_id: str, pending_id: str) -> Optional[PendingIdentity]:
        """Delete the pending record and free its code in one transaction."""

        raise NotImplementedError


class FaceUpdateRequestRepository(Protocol):
    def put(self, request: FaceUpdateRequest) -> None:
        """Create or overwrite the request for (class_id, identity_id)."""

        raise NotImplementedError

    def get(self, class_id: str, identity_id: str) -> Optional[FaceUpdateRequest]:
        raise NotImplementedError

    def list_for_classes(self, class_ids: Sequence[str]) -> Sequence[FaceUpdateRequest]:
        raise NotImplementedError

    def take(self, class_id: str, identity_id: str) -> Optional[FaceUpdateRequest]:
        """Atomically read and delete. Only one concurrent caller gets the record."""

        raise NotImplementedError

    def apply(self, class_id: str, identity_id: str) -> Optional[FaceUpdateRequest]:
        """Copy the requested descriptor onto the student and delete the request, atomically.

        Returns None if there is no request; raises IdentityNotFound (and keeps
        the request) if the student no longer exists.
        """

        raise NotImplementedError
