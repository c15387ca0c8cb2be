from __future__ import annotations

from enum import Enum


class RequestStatus(str, Enum):
    """State of a teacher-approval workflow (enrollment / face update)."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class SlotStatus(str, Enum):
    """Point-in-time status of an attendance slot, as seen by a poller."""

    OPEN = "OPEN"
    EXPIRED = "EXPIRED"
    # Deleted slots and slots that never existed look the same to callers.
    CLOSED = "CLOSED"


class GeolocationFailure(str, Enum):
    UNAVAILABLE = "unavailable"
    PERMISSION_DENIED = "permission_denied"
    TIMEOUT = "timeout"
