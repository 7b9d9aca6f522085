"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from contextlib import AbstractContextManager
from datetime import date

from bookings.domain import (
    Booking,
    BookingId,
    BookingInterval,
    BookingRequest,
    BookingStatus,
    PriceBreakdown,
    RateRule,
    Resource,
    ResourceId,
    TenantId,
)


class BookingStore(ABC):
    """Interface for booking persistence operations."""

    @abstractmethod
    def get_resources(
        self, tenant_id: TenantId, resource_ids: Iterable[ResourceId]
    ) -> list[Resource]:
        """Return the tenant's resources among ``resource_ids``; unknown ids are skipped."""
        ...

    @abstractmethod
    def tenant_timezone(self, tenant_id: TenantId) -> str | None:
        """Return the tenant's IANA timezone name, or None if not set."""
        ...

    @abstractmethod
    def active_intervals(
        self, tenant_id: TenantId, resource_ids: Iterable[ResourceId], on: date
    ) -> list[BookingInterval]:
        """Return active intervals on the given resources and date, as last committed."""
        ...

    @abstractmethod
    def rate_config(self, resource_id: ResourceId) -> Sequence[RateRule]:
        """Return the resource's rate rules in configuration order."""
        ...

    @abstractmethod
    def get_booking(self, booking_id: BookingId, for_update: bool = False) -> Booking | None:
        """Return a booking by ID, or None if not found.

        With ``for_update`` the booking is read for writing and stays locked
        until the enclosing ``lock_resources`` block ends, where the store
        supports row locks.
        """
        ...

    @abstractmethod
    def lock_resources(
        self, tenant_id: TenantId, resource_ids: Iterable[ResourceId], timeout: float
    ) -> AbstractContextManager[None]:
        """Hold exclusive access to the resources for the ``with`` block.

        Locks are taken in sorted id order. Raises ConcurrencyError if they
        cannot be acquired within ``timeout`` seconds.
        """
        ...

    @abstractmethod
    def persist_booking(
        self,
        booking_id: BookingId,
        request: BookingRequest,
        intervals: Sequence[BookingInterval],
        price: PriceBreakdown,
    ) -> BookingId:
        """Save the booking and its intervals as one unit.

        An existing booking with the same id is replaced together with its
        intervals. Raises PersistenceError, or ConcurrencyError when the write
        loses to contention, leaving nothing new visible either way.
        """
        ...

    @abstractmethod
    def update_booking_status(self, booking_id: BookingId, new_status: BookingStatus) -> Booking:
        """Set the booking status and its intervals' status.

        Raises BookingNotFoundError if the booking does not exist.
        """
        ...
