"""Domain error codes for the bookings module."""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from bookings.domain.models import BookingInterval
from bookings.domain.value_objects import BookingId, BookingStatus, ResourceId


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    UNKNOWN_RESOURCE = "UNKNOWN_RESOURCE"
    BOOKING_CONFLICT = "BOOKING_CONFLICT"
    RATE_NOT_FOUND = "RATE_NOT_FOUND"
    CONCURRENT_UPDATE = "CONCURRENT_UPDATE"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"


# Not frozen: contextlib assigns __traceback__ on exceptions leaving a
# generator-based context manager.
@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    retryable = False

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Raised when booking input is missing or malformed.

    ``field`` names the first field that failed validation.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(code=ErrorCode.VALIDATION_FAILED, message=message)
        self.field = field


class UnknownResourceError(ValidationError):
    """Raised when requested resources do not belong to the tenant."""

    def __init__(self, resource_ids: Iterable[ResourceId]) -> None:
        self.resource_ids = tuple(resource_ids)
        super().__init__(
            field="resource_ids",
            message="Unknown resource: " + ", ".join(str(r) for r in self.resource_ids),
        )
        self.code = ErrorCode.UNKNOWN_RESOURCE


class ConflictError(DomainError):
    """Raised when requested resources are already booked for the window."""

    def __init__(self, conflicts: Iterable[BookingInterval]) -> None:
        self.conflicts = tuple(conflicts)
        super().__init__(
            code=ErrorCode.BOOKING_CONFLICT,
            message=f"Time slot conflicts with {len(self.conflicts)} existing booking(s)",
        )


class RateNotFoundError(DomainError):
    """Raised when no rate rule applies to a resource on a date."""

    def __init__(self, resource_id: ResourceId) -> None:
        super().__init__(
            code=ErrorCode.RATE_NOT_FOUND,
            message=f"No rate configured for resource {resource_id}",
        )
        self.resource_id = resource_id


class ConcurrencyError(DomainError):
    """Raised when resource locks cannot be acquired in time."""

    retryable = True

    def __init__(self, message: str = "Resources are being booked by another request") -> None:
        super().__init__(code=ErrorCode.CONCURRENT_UPDATE, message=message)


class PersistenceError(DomainError):
    """Raised when the store fails while committing a booking."""

    def __init__(self, message: str = "Booking could not be saved") -> None:
        super().__init__(code=ErrorCode.PERSISTENCE_FAILED, message=message)


class BookingNotFoundError(DomainError):
    """Raised when a booking is not found."""

    def __init__(self, booking_id: BookingId) -> None:
        super().__init__(
            code=ErrorCode.BOOKING_NOT_FOUND,
            message="Booking not found",
        )
        self.booking_id = booking_id


class InvalidStatusTransitionError(DomainError):
    """Raised when a booking cannot move to the requested status."""

    def __init__(self, current: BookingStatus, requested: BookingStatus) -> None:
        super().__init__(
            code=ErrorCode.INVALID_STATUS_TRANSITION,
            message=f"Cannot change booking from {current.value} to {requested.value}",
        )
        self.current = current
        self.requested = requested
