from bookings.services.availability import AvailabilityIndex
from bookings.services.booking_service import AdmissionStage, BookingService
from bookings.services.conflicts import find_conflicts, overlapping_pairs
from bookings.services.normalizer import normalize_booking_request
from bookings.services.pricing import calculate, price_booking
from bookings.services.rates import resolve_rate, rules_from_rate_card

__all__ = [
    "AdmissionStage",
    "AvailabilityIndex",
    "BookingService",
    "calculate",
    "find_conflicts",
    "normalize_booking_request",
    "overlapping_pairs",
    "price_booking",
    "resolve_rate",
    "rules_from_rate_card",
]
