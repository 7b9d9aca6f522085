"""In-memory implementation of the BookingStore.

Keeps everything in dictionaries guarded by locks. Used for tests and for
running the engine without a database.
"""

import logging
import time
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from threading import Lock

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
from bookings.domain.errors import BookingNotFoundError, ConcurrencyError, PersistenceError
from bookings.stores.interfaces import BookingStore

logger = logging.getLogger(__name__)


class InMemoryBookingStore(BookingStore):
    """Dictionary-backed store with one lock per resource."""

    def __init__(self) -> None:
        self._state_lock = Lock()
        self._resource_locks: dict[ResourceId, Lock] = {}
        self._timezones: dict[TenantId, str | None] = {}
        self._resources: dict[ResourceId, Resource] = {}
        self._rates: dict[ResourceId, tuple[RateRule, ...]] = {}
        self._bookings: dict[BookingId, Booking] = {}
        self._intervals: dict[BookingId, tuple[BookingInterval, ...]] = {}

    # Seeding

    def add_tenant(self, tenant_id: TenantId, timezone: str | None = None) -> None:
        with self._state_lock:
            self._timezones[tenant_id] = timezone

    def add_resource(self, resource: Resource) -> None:
        with self._state_lock:
            self._timezones.setdefault(resource.tenant_id, None)
            self._resources[resource.id] = resource

    def set_rate_config(self, resource_id: ResourceId, rules: Iterable[RateRule]) -> None:
        with self._state_lock:
            self._rates[resource_id] = tuple(rules)

    def all_intervals(self) -> list[BookingInterval]:
        with self._state_lock:
            return [i for intervals in self._intervals.values() for i in intervals]

    # BookingStore

    def get_resources(
        self, tenant_id: TenantId, resource_ids: Iterable[ResourceId]
    ) -> list[Resource]:
        with self._state_lock:
            found = (self._resources.get(rid) for rid in resource_ids)
            return [r for r in found if r is not None and r.tenant_id == tenant_id]

    def tenant_timezone(self, tenant_id: TenantId) -> str | None:
        with self._state_lock:
            return self._timezones.get(tenant_id)

    def active_intervals(
        self, tenant_id: TenantId, resource_ids: Iterable[ResourceId], on: date
    ) -> list[BookingInterval]:
        wanted = set(resource_ids)
        with self._state_lock:
            return [
                interval
                for booking_id, intervals in self._intervals.items()
                if self._bookings[booking_id].tenant_id == tenant_id
                for interval in intervals
                if interval.resource_id in wanted and interval.date == on and interval.is_active
            ]

    def rate_config(self, resource_id: ResourceId) -> Sequence[RateRule]:
        with self._state_lock:
            return self._rates.get(resource_id, ())

    def get_booking(self, booking_id: BookingId, for_update: bool = False) -> Booking | None:
        # for_update is a no-op here; callers already hold the booking's resource locks.
        with self._state_lock:
            return self._bookings.get(booking_id)

    @contextmanager
    def lock_resources(
        self, tenant_id: TenantId, resource_ids: Iterable[ResourceId], timeout: float
    ) -> Iterator[None]:
        deadline = time.monotonic() + timeout
        held: list[Lock] = []
        try:
            for resource_id in sorted(set(resource_ids), key=lambda r: r.value):
                lock = self._lock_for(resource_id)
                if not lock.acquire(timeout=max(deadline - time.monotonic(), 0)):
                    logger.warning(
                        "Timed out locking resource %s for tenant %s", resource_id, tenant_id
                    )
                    raise ConcurrencyError(f"Resource {resource_id} is busy, please retry")
                held.append(lock)
            yield
        finally:
            for lock in reversed(held):
                lock.release()

    def persist_booking(
        self,
        booking_id: BookingId,
        request: BookingRequest,
        intervals: Sequence[BookingInterval],
        price: PriceBreakdown,
    ) -> BookingId:
        with self._state_lock:
            staged: list[BookingInterval] = []
            try:
                for interval in intervals:
                    self._stage_interval(staged, interval)
            except Exception as exc:
                logger.error("Failed to stage intervals for booking %s: %s", booking_id, exc)
                raise PersistenceError() from exc

            self._bookings[booking_id] = Booking(
                id=booking_id, request=request, price=price, status=request.status
            )
            self._intervals[booking_id] = tuple(staged)
        return booking_id

    def update_booking_status(self, booking_id: BookingId, new_status: BookingStatus) -> Booking:
        with self._state_lock:
            booking = self._bookings.get(booking_id)
            if booking is None:
                raise BookingNotFoundError(booking_id)
            updated = replace(
                booking,
                status=new_status,
                request=replace(booking.request, status=new_status),
            )
            self._bookings[booking_id] = updated
            self._intervals[booking_id] = tuple(
                replace(interval, status=new_status) for interval in self._intervals[booking_id]
            )
            return updated

    def _stage_interval(self, staged: list[BookingInterval], interval: BookingInterval) -> None:
        """Stage one interval of a pending write.

        Nothing is visible until every interval is staged. Subclasses override
        this to fail individual writes.
        """
        staged.append(interval)

    def _lock_for(self, resource_id: ResourceId) -> Lock:
        with self._state_lock:
            return self._resource_locks.setdefault(resource_id, Lock())
