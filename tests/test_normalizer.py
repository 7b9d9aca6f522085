"""Tests for turning raw booking input into a BookingRequest."""

from datetime import date
from decimal import Decimal

import pytest

from bookings.domain import BookingStatus, ResourceId, TenantId, TimeOfDay
from bookings.domain.errors import ErrorCode, ValidationError
from bookings.services.normalizer import normalize_booking_request

TODAY = date(2025, 5, 20)
TENANT = TenantId("tenant-1")


def normalize(raw):
    return normalize_booking_request(TENANT, raw, TODAY)


class TestNormalizeValidInput:
    def test_builds_request_from_form_fields(self, raw_booking):
        request = normalize(raw_booking(notes="  Bring chairs  "))

        assert request.tenant_id == TENANT
        assert request.customer.email == "ada@example.com"
        assert request.resource_ids == (ResourceId("hall-1"),)
        assert request.primary_resource_id == ResourceId("hall-1")
        assert request.date == date(2025, 6, 1)
        assert request.window.start == TimeOfDay(14 * 60)
        assert request.window.end == TimeOfDay(16 * 60)
        assert request.status is BookingStatus.PENDING
        assert request.price_override is None
        assert request.notes == "Bring chairs"

    def test_accepts_single_resource_id(self, raw_booking):
        raw = raw_booking()
        del raw["resource_ids"]
        raw["resource_id"] = "hall-2"

        assert normalize(raw).resource_ids == (ResourceId("hall-2"),)

    def test_keeps_resource_order_and_explicit_primary(self, raw_booking):
        request = normalize(
            raw_booking(resource_ids=["hall-2", "hall-1"], primary_resource_id="hall-1")
        )

        assert request.resource_ids == (ResourceId("hall-2"), ResourceId("hall-1"))
        assert request.primary_resource_id == ResourceId("hall-1")

    def test_today_is_not_in_the_past(self, raw_booking):
        assert normalize(raw_booking(booking_date="2025-05-20")).date == TODAY

    def test_parses_optional_fields(self, raw_booking):
        request = normalize(
            raw_booking(status="Confirmed", price_override="120", guest_count="80")
        )

        assert request.status is BookingStatus.CONFIRMED
        assert request.price_override.amount == Decimal("120.00")
        assert request.guest_count == 80

    def test_blank_optional_fields_are_ignored(self, raw_booking):
        request = normalize(raw_booking(status="", price_override="", guest_count=""))

        assert request.status is BookingStatus.PENDING
        assert request.price_override is None
        assert request.guest_count is None


class TestNormalizeRejections:
    """Each rejection names the first failing field."""

    @pytest.mark.parametrize(
        "field",
        [
            "customer_name",
            "customer_email",
            "customer_phone",
            "event_type",
            "booking_date",
            "start_time",
            "end_time",
        ],
    )
    def test_missing_required_field(self, raw_booking, field):
        with pytest.raises(ValidationError) as exc_info:
            normalize(raw_booking(**{field: "  "}))

        assert exc_info.value.field == field
        assert exc_info.value.code is ErrorCode.VALIDATION_FAILED

    def test_required_fields_checked_before_format(self, raw_booking):
        with pytest.raises(ValidationError) as exc_info:
            normalize(raw_booking(customer_email="nope", event_type=None))

        assert exc_info.value.field == "event_type"

    @pytest.mark.parametrize("email", ["nope", "a@b", "a b@example.com"])
    def test_invalid_email(self, raw_booking, email):
        with pytest.raises(ValidationError) as exc_info:
            normalize(raw_booking(customer_email=email))

        assert exc_info.value.field == "customer_email"

    @pytest.mark.parametrize("phone", ["0123456", "+1234567890123456789", "call me"])
    def test_invalid_phone(self, raw_booking, phone):
        with pytest.raises(ValidationError) as exc_info:
            normalize(raw_booking(customer_phone=phone))

        assert exc_info.value.field == "customer_phone"

    def test_past_date(self, raw_booking):
        with pytest.raises(ValidationError) as exc_info:
            normalize(raw_booking(booking_date="2025-05-19"))

        assert exc_info.value.field == "booking_date"
        assert exc_info.value.message == "Booking date cannot be in the past"

    def test_malformed_date(self, raw_booking):
        with pytest.raises(ValidationError) as exc_info:
            normalize(raw_booking(booking_date="01/06/2025"))

        assert exc_info.value.field == "booking_date"

    def test_malformed_time(self, raw_booking):
        with pytest.raises(ValidationError) as exc_info:
            normalize(raw_booking(start_time="2pm"))

        assert exc_info.value.field == "start_time"

    @pytest.mark.parametrize("end", ["14:00", "13:30"])
    def test_end_not_after_start(self, raw_booking, end):
        with pytest.raises(ValidationError) as exc_info:
            normalize(raw_booking(end_time=end))

        assert exc_info.value.field == "end_time"

    @pytest.mark.parametrize("resource_ids", [[], None, ["hall-1", " "], ["hall-1", "hall-1"]])
    def test_bad_resource_selection(self, raw_booking, resource_ids):
        with pytest.raises(ValidationError) as exc_info:
            normalize(raw_booking(resource_ids=resource_ids))

        assert exc_info.value.field == "resource_ids"

    def test_primary_outside_selection(self, raw_booking):
        with pytest.raises(ValidationError) as exc_info:
            normalize(raw_booking(primary_resource_id="hall-2"))

        assert exc_info.value.field == "primary_resource_id"

    @pytest.mark.parametrize("status", ["cancelled", "completed", "archived"])
    def test_new_booking_must_be_active(self, raw_booking, status):
        with pytest.raises(ValidationError) as exc_info:
            normalize(raw_booking(status=status))

        assert exc_info.value.field == "status"

    @pytest.mark.parametrize("price", ["-5", "free", "NaN"])
    def test_bad_price_override(self, raw_booking, price):
        with pytest.raises(ValidationError) as exc_info:
            normalize(raw_booking(price_override=price))

        assert exc_info.value.field == "price_override"

    @pytest.mark.parametrize("guests", ["0", "many"])
    def test_bad_guest_count(self, raw_booking, guests):
        with pytest.raises(ValidationError) as exc_info:
            normalize(raw_booking(guest_count=guests))

        assert exc_info.value.field == "guest_count"
