from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import RequestStatus
from ..identities.model import Identity


@dataclass(frozen=True)
class PendingIdentity:
    """Self-registration awaiting a teacher decision."""

    pending_id: str
    class_id: str
    display_name: str
    code: str
    descriptor: tuple[float, ...]
    status: RequestStatus = RequestStatus.PENDING

    def to_identity(self) -> Identity:
        # The pending id becomes the identity id, so the code reservation owner stays valid.
        return Identity(
            identity_id=self.pending_id,
            class_id=self.class_id,
            display_name=self.display_name,
            code=self.code,
            descriptor=self.descriptor,
        )


@dataclass(frozen=True)
class FaceUpdateRequest:
    """Request to replace an enrolled student's descriptor. One per student."""

    identity_id: str
    class_id: str
    new_descriptor: tuple[float, ...]
    status: RequestStatus = RequestStatus.PENDING
