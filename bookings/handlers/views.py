"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import logging

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from bookings.domain import BookingId, BookingStatus, TenantId
from bookings.domain.errors import (
    BookingNotFoundError,
    ConcurrencyError,
    ConflictError,
    DomainError,
    InvalidStatusTransitionError,
    PersistenceError,
    ValidationError,
)
from bookings.handlers.serializers import (
    AvailabilitySerializer,
    BookingConfirmationSerializer,
    BookingIntervalSerializer,
    BookingSerializer,
    PriceBreakdownSerializer,
)
from bookings.services import BookingService
from bookings.stores.django_store import DjangoBookingStore

logger = logging.getLogger(__name__)


def get_booking_service() -> BookingService:
    return BookingService(DjangoBookingStore())


def error_response(error: DomainError) -> Response:
    """Map a domain error to a user-safe HTTP response."""
    body = {"code": error.code.value, "message": error.message, "retryable": error.retryable}

    if isinstance(error, ValidationError):
        body["field"] = error.field
        return Response(body, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(error, BookingNotFoundError):
        return Response(body, status=status.HTTP_404_NOT_FOUND)
    if isinstance(error, ConflictError):
        body["conflicts"] = BookingIntervalSerializer(error.conflicts, many=True).data
        return Response(body, status=status.HTTP_409_CONFLICT)
    if isinstance(error, InvalidStatusTransitionError):
        return Response(body, status=status.HTTP_409_CONFLICT)
    if isinstance(error, ConcurrencyError):
        return Response(body, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    if isinstance(error, PersistenceError):
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.error("Unmapped domain error: %s", error)
    return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def parse_booking_id(value: str) -> BookingId:
    try:
        return BookingId.from_string(value)
    except ValueError:
        raise ValidationError("booking_id", "Invalid booking ID format") from None


def parse_tenant_id(value: str) -> TenantId:
    try:
        return TenantId.from_string(value)
    except ValueError:
        raise ValidationError("tenant_id", "Invalid tenant ID") from None


class AvailabilityView(APIView):
    """Handler for POST /api/tenants/{tenant_id}/availability"""

    def post(self, request: Request, tenant_id: str) -> Response:
        service = get_booking_service()
        try:
            booking_request = service.normalize(parse_tenant_id(tenant_id), request.data)
            exclude = request.data.get("exclude_booking_id")
            result = service.check_availability(
                booking_request, parse_booking_id(exclude) if exclude else None
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(AvailabilitySerializer(result).data)


class QuoteView(APIView):
    """Handler for POST /api/tenants/{tenant_id}/quotes"""

    def post(self, request: Request, tenant_id: str) -> Response:
        service = get_booking_service()
        try:
            booking_request = service.normalize(parse_tenant_id(tenant_id), request.data)
            breakdown = service.price_quote(booking_request)
        except DomainError as exc:
            return error_response(exc)
        return Response(PriceBreakdownSerializer(breakdown).data)


class BookingListView(APIView):
    """Handler for POST /api/tenants/{tenant_id}/bookings"""

    def post(self, request: Request, tenant_id: str) -> Response:
        try:
            confirmation = get_booking_service().submit_booking(
                parse_tenant_id(tenant_id), request.data
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(
            BookingConfirmationSerializer(confirmation).data, status=status.HTTP_201_CREATED
        )


class BookingDetailView(APIView):
    """Handler for GET/PUT /api/tenants/{tenant_id}/bookings/{booking_id}"""

    def get(self, request: Request, tenant_id: str, booking_id: str) -> Response:
        store = DjangoBookingStore()
        try:
            parsed_id = parse_booking_id(booking_id)
            booking = store.get_booking(parsed_id)
            if booking is None or booking.tenant_id != parse_tenant_id(tenant_id):
                raise BookingNotFoundError(parsed_id)
        except DomainError as exc:
            return error_response(exc)
        return Response(BookingSerializer(booking).data)

    def put(self, request: Request, tenant_id: str, booking_id: str) -> Response:
        try:
            confirmation = get_booking_service().submit_booking(
                parse_tenant_id(tenant_id),
                request.data,
                editing_booking_id=parse_booking_id(booking_id),
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(BookingConfirmationSerializer(confirmation).data)


class BookingStatusView(APIView):
    """Handler for PUT /api/tenants/{tenant_id}/bookings/{booking_id}/status"""

    def put(self, request: Request, tenant_id: str, booking_id: str) -> Response:
        try:
            new_status = BookingStatus(str(request.data.get("status", "")).strip().lower())
        except ValueError:
            return error_response(ValidationError("status", "Unknown booking status"))

        try:
            booking = get_booking_service().change_status(
                parse_tenant_id(tenant_id), parse_booking_id(booking_id), new_status
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(BookingSerializer(booking).data)
