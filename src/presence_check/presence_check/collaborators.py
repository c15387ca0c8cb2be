"""Contracts for the external services the core consumes.

Implementations live outside this package (browser capture, device GPS,
a face-embedding model server, ...).
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from .geofence.model import Coordinate


class DescriptorExtractor(Protocol):
    def extract(self, frame: Any) -> Optional[Sequence[float]]:
        """Return a 128-d descriptor, or None when no face is detected.

        Service failures raise DescriptorExtractionFailed.
        """

        raise NotImplementedError


class GeolocationProvider(Protocol):
    def current_position(self) -> Coordinate:
        """Return the caller's position.

        Raises GeolocationUnavailable with reason ``unavailable``,
        ``permission_denied`` or ``timeout``; the provider enforces its own
        timeout.
        """

        raise NotImplementedError
