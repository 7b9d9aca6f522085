from bookings.domain.models import (
    AvailabilityResult,
    Booking,
    BookingConfirmation,
    BookingInterval,
    BookingRequest,
    CustomerDetails,
    DurationTier,
    PriceBreakdown,
    PricingMode,
    RateApplicability,
    RateRule,
    Resource,
    ResourcePrice,
)
from bookings.domain.value_objects import (
    ACTIVE_STATUSES,
    BookingId,
    BookingStatus,
    Money,
    ResourceId,
    TenantId,
    TimeOfDay,
    TimeWindow,
)

__all__ = [
    "AvailabilityResult",
    "Booking",
    "BookingConfirmation",
    "BookingInterval",
    "BookingRequest",
    "CustomerDetails",
    "DurationTier",
    "PriceBreakdown",
    "PricingMode",
    "RateApplicability",
    "RateRule",
    "Resource",
    "ResourcePrice",
    "ACTIVE_STATUSES",
    "BookingId",
    "BookingStatus",
    "Money",
    "ResourceId",
    "TenantId",
    "TimeOfDay",
    "TimeWindow",
]
