"""Booking service - all admission logic lives here.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors

An admission attempt moves through
Received -> Normalized -> ConflictChecked -> Priced -> Committed, or ends
Rejected. Nothing is written before Committed, so abandoning an attempt
at any earlier point leaves no trace.
"""

import logging
import time
from collections.abc import Callable, Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any, TypeVar
from zoneinfo import ZoneInfo

from django.utils import timezone

from bookings.conf import EngineConfig
from bookings.domain import (
    AvailabilityResult,
    Booking,
    BookingConfirmation,
    BookingId,
    BookingInterval,
    BookingRequest,
    BookingStatus,
    PriceBreakdown,
    ResourceId,
    ResourcePrice,
    TenantId,
)
from bookings.domain.errors import (
    BookingNotFoundError,
    ConcurrencyError,
    ConflictError,
    DomainError,
    InvalidStatusTransitionError,
    RateNotFoundError,
    UnknownResourceError,
    ValidationError,
)
from bookings.services.availability import AvailabilityIndex
from bookings.services.conflicts import find_conflicts
from bookings.services.normalizer import normalize_booking_request
from bookings.services.pricing import calculate, price_booking, unpriced
from bookings.services.rates import resolve_rate
from bookings.stores.interfaces import BookingStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AdmissionStage(Enum):
    RECEIVED = "received"
    NORMALIZED = "normalized"
    CONFLICT_CHECKED = "conflict_checked"
    PRICED = "priced"
    COMMITTED = "committed"
    REJECTED = "rejected"


STATUS_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset(
        {
            BookingStatus.TENTATIVE,
            BookingStatus.CONFIRMED,
            BookingStatus.CANCELLED,
            BookingStatus.COMPLETED,
        }
    ),
    BookingStatus.TENTATIVE: frozenset(
        {BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.CANCELLED}
    ),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


class Admission:
    """Tracks one admission attempt through its stages."""

    def __init__(self, tenant_id: TenantId, booking_id: BookingId) -> None:
        self.tenant_id = tenant_id
        self.booking_id = booking_id
        self.stage = AdmissionStage.RECEIVED
        self.history = [AdmissionStage.RECEIVED]

    def advance(self, stage: AdmissionStage) -> None:
        logger.debug(
            "Admission %s for tenant %s: %s -> %s",
            self.booking_id,
            self.tenant_id,
            self.stage.value,
            stage.value,
        )
        self.stage = stage
        self.history.append(stage)

    def reject(self, error: DomainError) -> None:
        logger.info("Admission %s rejected at %s: %s", self.booking_id, self.stage.value, error)
        self.advance(AdmissionStage.REJECTED)


class BookingService:
    """Admits, prices and changes bookings for a tenant's resources."""

    def __init__(
        self,
        store: BookingStore,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] = timezone.now,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._store = store
        self._config = config or EngineConfig.from_settings()
        self._clock = clock
        self._sleep = sleep
        self._index = AvailabilityIndex(store)
        self.last_admission: Admission | None = None

    def today(self, tenant_id: TenantId) -> date:
        """Return the current date in the tenant's timezone."""
        tz_name = self._store.tenant_timezone(tenant_id) or self._config.default_timezone
        return self._clock().astimezone(ZoneInfo(tz_name)).date()

    def normalize(self, tenant_id: TenantId, raw: Mapping[str, Any]) -> BookingRequest:
        """Validate raw input against the tenant's calendar.

        Raises:
            ValidationError: If a field is missing or malformed.
        """
        return normalize_booking_request(tenant_id, raw, self.today(tenant_id))

    def check_availability(
        self, request: BookingRequest, exclude_booking_id: BookingId | None = None
    ) -> AvailabilityResult:
        """Report conflicts for the request without reserving anything."""
        conflicts = self._find_conflicts(request, exclude_booking_id)
        return AvailabilityResult(ok=not conflicts, conflicts=tuple(conflicts))

    def price_quote(self, request: BookingRequest) -> PriceBreakdown:
        """Price every requested resource; resources without rates price at zero."""
        lines = [self._price_resource(resource_id, request) for resource_id in request.resource_ids]
        return price_booking(lines, request.price_override)

    def submit_booking(
        self,
        tenant_id: TenantId,
        raw: Mapping[str, Any],
        editing_booking_id: BookingId | None = None,
    ) -> BookingConfirmation:
        """Admit a booking across all its resources, or reject it whole.

        With ``editing_booking_id`` the booking is updated in place and its
        own current slot is ignored when checking conflicts.

        Raises:
            ValidationError: If input is malformed or resources are unknown.
            BookingNotFoundError: If the edited booking does not exist.
            InvalidStatusTransitionError: If the edited booking is no longer active
                or cannot move to the requested status.
            ConflictError: If any requested resource is already booked.
            ConcurrencyError: If locks stay contended after all retries.
            PersistenceError: If the store fails to commit.
        """
        booking_id = editing_booking_id or BookingId.new()
        admission = Admission(tenant_id, booking_id)
        self.last_admission = admission
        try:
            existing = None
            if editing_booking_id is not None:
                existing = self._owned_booking(tenant_id, editing_booking_id)
                if not existing.status.is_active:
                    raise InvalidStatusTransitionError(existing.status, BookingStatus.PENDING)
                if not raw.get("status"):
                    raw = {**raw, "status": existing.status.value}

            request = self.normalize(tenant_id, raw)
            admission.advance(AdmissionStage.NORMALIZED)
            if existing is not None:
                _check_transition(existing.status, request.status)
            self._check_resources(request)

            # Advisory pass; the authoritative check runs under the locks.
            conflicts = self._find_conflicts(request, editing_booking_id)
            if conflicts:
                raise ConflictError(conflicts)

            return self._with_retry(
                booking_id, lambda: self._commit(admission, request, editing_booking_id)
            )
        except DomainError as exc:
            admission.reject(exc)
            raise

    def change_status(
        self, tenant_id: TenantId, booking_id: BookingId, new_status: BookingStatus
    ) -> Booking:
        """Move a booking to a new status.

        Cancelled and completed bookings are final, so a status change can
        never reactivate a slot. The change holds the booking's resource
        locks, so it serializes with edits of the same booking.

        Raises:
            BookingNotFoundError: If the booking does not exist for the tenant.
            InvalidStatusTransitionError: If the transition is not allowed.
            ConcurrencyError: If locks stay contended after all retries.
        """
        return self._with_retry(
            booking_id, lambda: self._change_status(tenant_id, booking_id, new_status)
        )

    def cancel_booking(self, tenant_id: TenantId, booking_id: BookingId) -> Booking:
        return self.change_status(tenant_id, booking_id, BookingStatus.CANCELLED)

    def _with_retry(self, booking_id: BookingId, operation: Callable[[], T]) -> T:
        attempt = 0
        while True:
            try:
                return operation()
            except ConcurrencyError:
                if attempt >= self._config.max_concurrency_retries:
                    raise
                attempt += 1
                logger.warning(
                    "Lock contention on booking %s, retry %d of %d",
                    booking_id,
                    attempt,
                    self._config.max_concurrency_retries,
                )
                self._sleep(self._config.retry_backoff_seconds * attempt)

    def _commit(
        self,
        admission: Admission,
        request: BookingRequest,
        editing_booking_id: BookingId | None,
    ) -> BookingConfirmation:
        booking_id = admission.booking_id
        resource_ids = set(request.resource_ids)
        existing = None
        if editing_booking_id is not None:
            # The old slot is released by this write, so it is locked too.
            existing = self._owned_booking(request.tenant_id, editing_booking_id)
            resource_ids.update(existing.request.resource_ids)

        with self._store.lock_resources(
            request.tenant_id, resource_ids, self._config.lock_timeout_seconds
        ):
            if existing is not None:
                current = self._reread_for_update(existing)
                _check_transition(current.status, request.status)

            conflicts = self._find_conflicts(request, editing_booking_id)
            if conflicts:
                raise ConflictError(conflicts)
            admission.advance(AdmissionStage.CONFLICT_CHECKED)

            price = self.price_quote(request)
            admission.advance(AdmissionStage.PRICED)

            self._store.persist_booking(
                booking_id, request, request.intervals_for(booking_id), price
            )
        admission.advance(AdmissionStage.COMMITTED)
        logger.info(
            "Booking %s committed for %s on %s %s, total %s",
            booking_id,
            ", ".join(str(r) for r in request.resource_ids),
            request.date,
            request.window,
            price.total,
        )
        return BookingConfirmation(booking_id=booking_id, price=price)

    def _change_status(
        self, tenant_id: TenantId, booking_id: BookingId, new_status: BookingStatus
    ) -> Booking:
        booking = self._owned_booking(tenant_id, booking_id)
        with self._store.lock_resources(
            tenant_id, booking.request.resource_ids, self._config.lock_timeout_seconds
        ):
            current = self._reread_for_update(booking)
            if current.status is new_status:
                return current
            _check_transition(current.status, new_status)
            updated = self._store.update_booking_status(booking_id, new_status)

        logger.info(
            "Booking %s moved from %s to %s", booking_id, current.status.value, new_status.value
        )
        return updated

    def _owned_booking(self, tenant_id: TenantId, booking_id: BookingId) -> Booking:
        booking = self._store.get_booking(booking_id)
        if booking is None or booking.tenant_id != tenant_id:
            raise BookingNotFoundError(booking_id)
        return booking

    def _reread_for_update(self, booking: Booking) -> Booking:
        """Read the booking again while its resource locks are held.

        Raises:
            BookingNotFoundError: If the booking disappeared.
            ConcurrencyError: If it moved to resources that are not locked.
        """
        current = self._store.get_booking(booking.id, for_update=True)
        if current is None:
            raise BookingNotFoundError(booking.id)
        if set(current.request.resource_ids) != set(booking.request.resource_ids):
            raise ConcurrencyError(f"Booking {booking.id} was changed, please retry")
        return current

    def _check_resources(self, request: BookingRequest) -> None:
        resources = self._store.get_resources(request.tenant_id, request.resource_ids)
        found = {resource.id for resource in resources}
        missing = [rid for rid in request.resource_ids if rid not in found]
        if missing:
            raise UnknownResourceError(missing)

        capacity = sum(resource.capacity for resource in resources)
        if request.guest_count is not None and capacity and request.guest_count > capacity:
            raise ValidationError(
                "guest_count",
                f"Guest count {request.guest_count} exceeds the selected capacity of {capacity}",
            )

    def _find_conflicts(
        self, request: BookingRequest, exclude_booking_id: BookingId | None
    ) -> list[BookingInterval]:
        existing = self._index.active_intervals(
            request.tenant_id, request.resource_ids, request.date
        )
        return find_conflicts(request, existing, exclude_booking_id)

    def _price_resource(self, resource_id: ResourceId, request: BookingRequest) -> ResourcePrice:
        try:
            rule = resolve_rate(
                resource_id, request.date, request.window, self._store.rate_config(resource_id)
            )
        except RateNotFoundError as exc:
            logger.info("%s; leaving it for manual pricing", exc)
            return unpriced(resource_id, request.window)
        return calculate(
            rule,
            request.date,
            request.window,
            full_day_hours=self._config.daily_full_day_hours,
        )


def _check_transition(current: BookingStatus, requested: BookingStatus) -> None:
    if requested is not current and requested not in STATUS_TRANSITIONS[current]:
        raise InvalidStatusTransitionError(current, requested)
