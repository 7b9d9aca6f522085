from bookings.handlers.views import (
    AvailabilityView,
    BookingDetailView,
    BookingListView,
    BookingStatusView,
    QuoteView,
)

__all__ = [
    "AvailabilityView",
    "BookingDetailView",
    "BookingListView",
    "BookingStatusView",
    "QuoteView",
]
