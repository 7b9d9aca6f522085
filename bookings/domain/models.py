"""Domain models for venue bookings and their pricing.

These are pure domain objects with no API input rules.
Django ORM models are in bookings/models.py (persistence layer).
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from bookings.domain.value_objects import (
    BookingId,
    BookingStatus,
    Money,
    ResourceId,
    TenantId,
    TimeWindow,
)


@dataclass(frozen=True)
class Resource:
    """A bookable hall or room owned by a tenant."""

    id: ResourceId
    tenant_id: TenantId
    name: str
    category: str
    capacity: int


@dataclass(frozen=True)
class BookingInterval:
    """One resource's occupied slot for one booking."""

    resource_id: ResourceId
    date: date
    window: TimeWindow
    status: BookingStatus
    booking_id: BookingId

    @property
    def is_active(self) -> bool:
        return self.status.is_active


@dataclass(frozen=True)
class CustomerDetails:
    name: str
    email: str
    phone: str


@dataclass(frozen=True)
class BookingRequest:
    """A validated request to book one or more resources for a time window.

    ``resource_ids`` keeps the caller's order; ``primary_resource_id`` is
    explicit and must be one of them.
    """

    tenant_id: TenantId
    customer: CustomerDetails
    event_type: str
    resource_ids: tuple[ResourceId, ...]
    primary_resource_id: ResourceId
    date: date
    window: TimeWindow
    status: BookingStatus = BookingStatus.PENDING
    price_override: Money | None = None
    guest_count: int | None = None
    notes: str = ""

    def __post_init__(self) -> None:
        if not self.resource_ids:
            raise ValueError("Booking request needs at least one resource")
        if len(set(self.resource_ids)) != len(self.resource_ids):
            raise ValueError("Booking request contains duplicate resources")
        if self.primary_resource_id not in self.resource_ids:
            raise ValueError("Primary resource must be one of the requested resources")
        if self.guest_count is not None and self.guest_count < 1:
            raise ValueError("Guest count must be at least 1")

    def intervals_for(self, booking_id: BookingId) -> tuple[BookingInterval, ...]:
        """Derive the interval each requested resource will occupy."""
        return tuple(
            BookingInterval(
                resource_id=resource_id,
                date=self.date,
                window=self.window,
                status=self.status,
                booking_id=booking_id,
            )
            for resource_id in self.resource_ids
        )


@dataclass(frozen=True)
class RateApplicability:
    """When a rate rule applies.

    Weekdays follow ``date.weekday()`` (Monday is 0). A predicate with
    neither weekdays nor a date range is the resource's default tier.
    """

    weekdays: frozenset[int] = frozenset()
    date_from: date | None = None
    date_to: date | None = None
    tier: str = "default"

    def __post_init__(self) -> None:
        if any(day not in range(7) for day in self.weekdays):
            raise ValueError("Weekdays must be between 0 (Monday) and 6 (Sunday)")
        if (self.date_from is None) != (self.date_to is None):
            raise ValueError("Date range needs both ends")
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("Date range starts after it ends")

    @property
    def is_default(self) -> bool:
        return not self.weekdays and self.date_from is None

    @property
    def span_days(self) -> int | None:
        """Inclusive length of the date range, or None when unbounded."""
        if self.date_from is None or self.date_to is None:
            return None
        return (self.date_to - self.date_from).days + 1

    def matches(self, on: date) -> bool:
        if self.weekdays and on.weekday() not in self.weekdays:
            return False
        if self.date_from is not None and not (self.date_from <= on <= self.date_to):
            return False
        return True


class PricingMode(Enum):
    FLAT = "flat"
    HOURLY = "hourly"
    TIERED = "tiered"
    DAILY = "daily"


@dataclass(frozen=True)
class DurationTier:
    """Fixed price for bookings up to ``max_hours`` long."""

    max_hours: Decimal
    amount: Money

    def __post_init__(self) -> None:
        if self.max_hours <= 0:
            raise ValueError("Tier length must be positive")


@dataclass(frozen=True)
class RateRule:
    """A pricing function plus the predicate saying when it applies.

    ``rate`` is the flat price, the hourly rate, the daily rate, or for
    tiered rules the hourly rate charged beyond the last tier.
    """

    id: str
    resource_id: ResourceId
    applicability: RateApplicability
    mode: PricingMode
    rate: Money
    tiers: tuple[DurationTier, ...] = ()
    label: str = ""

    def __post_init__(self) -> None:
        if self.mode is PricingMode.TIERED and not self.tiers:
            raise ValueError("Tiered rate rules need at least one tier")


@dataclass(frozen=True)
class ResourcePrice:
    """Computed price for one resource of a booking."""

    resource_id: ResourceId
    amount: Money
    duration_hours: Decimal
    rule_id: str | None = None
    label: str = ""
    pending_manual_pricing: bool = False


@dataclass(frozen=True)
class PriceBreakdown:
    """Per-resource prices, their subtotal and an optional manual override.

    The override replaces the invoiced total only; ``lines`` and
    ``subtotal`` always record the computed figures.
    """

    lines: tuple[ResourcePrice, ...]
    subtotal: Money
    override: Money | None = None

    @property
    def total(self) -> Money:
        return self.override if self.override is not None else self.subtotal

    @property
    def unpriced_resource_ids(self) -> tuple[ResourceId, ...]:
        return tuple(line.resource_id for line in self.lines if line.pending_manual_pricing)


@dataclass(frozen=True)
class Booking:
    """Domain representation of a persisted booking."""

    id: BookingId
    request: BookingRequest
    price: PriceBreakdown
    status: BookingStatus

    @property
    def tenant_id(self) -> TenantId:
        return self.request.tenant_id


@dataclass(frozen=True)
class AvailabilityResult:
    ok: bool
    conflicts: tuple[BookingInterval, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class BookingConfirmation:
    booking_id: BookingId
    price: PriceBreakdown

    @property
    def unpriced_resource_ids(self) -> tuple[ResourceId, ...]:
        return self.price.unpriced_resource_ids
