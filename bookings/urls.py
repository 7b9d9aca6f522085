from django.urls import path

from bookings.handlers import (
    AvailabilityView,
    BookingDetailView,
    BookingListView,
    BookingStatusView,
    QuoteView,
)

urlpatterns = [
    path(
        "tenants/<str:tenant_id>/availability",
        AvailabilityView.as_view(),
        name="booking-availability",
    ),
    path("tenants/<str:tenant_id>/quotes", QuoteView.as_view(), name="booking-quote"),
    path("tenants/<str:tenant_id>/bookings", BookingListView.as_view(), name="booking-list"),
    path(
        "tenants/<str:tenant_id>/bookings/<str:booking_id>",
        BookingDetailView.as_view(),
        name="booking-detail",
    ),
    path(
        "tenants/<str:tenant_id>/bookings/<str:booking_id>/status",
        BookingStatusView.as_view(),
        name="booking-status",
    ),
]
