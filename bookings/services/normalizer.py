"""Turns raw booking input into a validated BookingRequest.

Pure function of its input: the caller supplies "today" in the tenant's
local calendar so the past-date check never reads a clock.
"""

import re
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from bookings.domain import (
    ACTIVE_STATUSES,
    BookingRequest,
    BookingStatus,
    CustomerDetails,
    Money,
    ResourceId,
    TenantId,
    TimeOfDay,
    TimeWindow,
)
from bookings.domain.errors import ValidationError

REQUIRED_FIELDS = (
    "customer_name",
    "customer_email",
    "customer_phone",
    "event_type",
    "booking_date",
    "start_time",
    "end_time",
)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")
PHONE_SEPARATORS = re.compile(r"[\s\-()]")


def normalize_booking_request(
    tenant_id: TenantId, raw: Mapping[str, Any], today: date
) -> BookingRequest:
    """Validate raw field values and build a BookingRequest.

    Raises:
        ValidationError: naming the first field that fails, checked in order:
            required fields, email, phone, date, time format, time order,
            resources, then the optional fields.
    """
    for name in REQUIRED_FIELDS:
        value = raw.get(name)
        if value is None or not str(value).strip():
            raise ValidationError(name, f"Please fill in the {name.replace('_', ' ')}")

    email = str(raw["customer_email"]).strip()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("customer_email", "Please enter a valid email address")

    phone = str(raw["customer_phone"]).strip()
    if not PHONE_PATTERN.match(PHONE_SEPARATORS.sub("", phone)):
        raise ValidationError("customer_phone", "Please enter a valid phone number")

    booking_date = _parse_date(raw["booking_date"])
    if booking_date < today:
        raise ValidationError("booking_date", "Booking date cannot be in the past")

    start = _parse_time("start_time", raw["start_time"])
    end = _parse_time("end_time", raw["end_time"])
    if end <= start:
        raise ValidationError("end_time", "End time must be after start time")

    resource_ids = _parse_resource_ids(raw)
    primary = raw.get("primary_resource_id")
    if primary is not None and str(primary).strip():
        primary_id = ResourceId.from_string(str(primary))
        if primary_id not in resource_ids:
            raise ValidationError(
                "primary_resource_id", "Primary resource must be one of the selected resources"
            )
    else:
        primary_id = resource_ids[0]

    return BookingRequest(
        tenant_id=tenant_id,
        customer=CustomerDetails(
            name=str(raw["customer_name"]).strip(),
            email=email,
            phone=phone,
        ),
        event_type=str(raw["event_type"]).strip(),
        resource_ids=resource_ids,
        primary_resource_id=primary_id,
        date=booking_date,
        window=TimeWindow(start=start, end=end),
        status=_parse_status(raw.get("status")),
        price_override=_parse_price_override(raw.get("price_override")),
        guest_count=_parse_guest_count(raw.get("guest_count")),
        notes=str(raw.get("notes") or "").strip(),
    )


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError("booking_date", "Please enter a valid date (YYYY-MM-DD)") from None


def _parse_time(field: str, value: Any) -> TimeOfDay:
    try:
        return TimeOfDay.from_string(str(value))
    except ValueError:
        raise ValidationError(field, "Please enter valid times in HH:MM format") from None


def _parse_resource_ids(raw: Mapping[str, Any]) -> tuple[ResourceId, ...]:
    value = raw.get("resource_ids")
    if value is None:
        value = raw.get("resource_id")
    if isinstance(value, str):
        value = [value]
    if not value:
        raise ValidationError("resource_ids", "Please select at least one hall")
    if not isinstance(value, (list, tuple)):
        raise ValidationError("resource_ids", "Hall selection must be a list")

    resource_ids: list[ResourceId] = []
    for item in value:
        if item is None or not str(item).strip():
            raise ValidationError("resource_ids", "Hall selection contains an empty value")
        resource_id = ResourceId.from_string(str(item))
        if resource_id in resource_ids:
            raise ValidationError("resource_ids", f"Hall {resource_id} is selected twice")
        resource_ids.append(resource_id)
    return tuple(resource_ids)


def _parse_status(value: Any) -> BookingStatus:
    if value is None or not str(value).strip():
        return BookingStatus.PENDING
    try:
        status = BookingStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError("status", f"Unknown booking status {value!r}") from None
    if status not in ACTIVE_STATUSES:
        raise ValidationError("status", f"A new booking cannot be {status.value}")
    return status


def _parse_price_override(value: Any) -> Money | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError("price_override", "Price must be a number") from None
    if not amount.is_finite() or amount < 0:
        raise ValidationError("price_override", "Price cannot be negative")
    return Money(amount)


def _parse_guest_count(value: Any) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        count = int(str(value).strip())
    except ValueError:
        raise ValidationError("guest_count", "Guest count must be a whole number") from None
    if count < 1:
        raise ValidationError("guest_count", "Guest count must be at least 1")
    return count
