"""Read model of active booking intervals per tenant, resource and date."""

from collections.abc import Iterable
from datetime import date

from bookings.domain import BookingInterval, ResourceId, TenantId
from bookings.stores.interfaces import BookingStore


class AvailabilityIndex:
    """Queries the store for intervals that still block their slot."""

    def __init__(self, store: BookingStore) -> None:
        self._store = store

    def active_intervals(
        self, tenant_id: TenantId, resource_ids: Iterable[ResourceId], on: date
    ) -> frozenset[BookingInterval]:
        """Return active intervals on the resources for the date.

        Pending, tentative and confirmed bookings are active; cancelled and
        completed ones never are.
        """
        resource_ids = tuple(resource_ids)
        if not resource_ids:
            return frozenset()
        return frozenset(
            interval
            for interval in self._store.active_intervals(tenant_id, resource_ids, on)
            if interval.is_active
        )
