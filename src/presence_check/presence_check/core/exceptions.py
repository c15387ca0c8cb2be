from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a teacher acts on a class they do not own."""


class NotFound(DomainError):
    """Raised when a keyed record does not exist (or was already resolved)."""


class SlotNotFound(NotFound):
    """The slot does not exist or was closed."""


class SlotExpired(DomainError):
    """The slot exists but its end time has passed."""


class IdentityNotFound(NotFound):
    """No enrolled student matches the given code or id."""


class DuplicateCode(DomainError):
    """The student code is already used in the class (enrolled or pending)."""


class GeofenceViolation(DomainError):
    def __init__(self, distance: float, radius: float):
        super().__init__(f"Bạn ở quá xa ({round(distance)}m, cho phép {round(radius)}m)")
        self.distance = float(distance)
        self.radius = float(radius)


class InvalidCoordinate(ValidationError):
    """Latitude/longitude is NaN or out of range."""


class FaceNotDetected(ValidationError):
    """The extractor found no face in the frame."""


class DataIntegrityError(DomainError):
    """Programming or stored-data errors. Fatal to the request and logged."""


class InvalidDescriptor(DataIntegrityError):
    """Descriptor is absent, empty, non-numeric or not 128 components long."""


class DimensionMismatch(DataIntegrityError):
    """Two descriptors cannot be compared."""


class TransientError(Exception):
    """Infrastructure failure; the caller may retry with backoff."""


class StoreUnavailable(TransientError):
    """The backing database could not be reached."""


class GeolocationUnavailable(TransientError):
    def __init__(self, reason: str = "unavailable", message: Optional[str] = None):
        super().__init__(message or f"Không lấy được vị trí ({reason})")
        self.reason = reason


class DescriptorExtractionFailed(TransientError):
    """The descriptor-extraction service failed (distinct from 'no face')."""
