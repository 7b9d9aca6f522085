"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
Times of day are stored as minutes since midnight.
"""

import uuid

from django.db import models


class Tenant(models.Model):
    """Persistence model for a venue owner."""

    id = models.CharField(primary_key=True, max_length=64)
    name = models.CharField(max_length=255)
    timezone = models.CharField(max_length=64, blank=True, default="")

    def __str__(self) -> str:
        return self.name


class Resource(models.Model):
    """Persistence model for bookable halls and rooms."""

    id = models.CharField(primary_key=True, max_length=64)
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="resources")
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=100, blank=True, default="")
    capacity = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return self.name


class RateRule(models.Model):
    """Persistence model for a resource's pricing rules."""

    class Mode(models.TextChoices):
        FLAT = "flat"
        HOURLY = "hourly"
        TIERED = "tiered"
        DAILY = "daily"

    resource = models.ForeignKey(Resource, on_delete=models.CASCADE, related_name="rate_rules")
    tier = models.CharField(max_length=50, default="default")
    label = models.CharField(max_length=100, blank=True, default="")
    weekdays = models.JSONField(default=list, blank=True)
    date_from = models.DateField(null=True, blank=True)
    date_to = models.DateField(null=True, blank=True)
    mode = models.CharField(max_length=10, choices=Mode.choices, default=Mode.HOURLY)
    rate = models.DecimalField(max_digits=10, decimal_places=2)
    # [{"max_hours": "4", "amount": "200.00"}, ...]
    tiers = models.JSONField(default=list, blank=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["resource", "position", "id"]

    def __str__(self) -> str:
        return f"{self.resource_id} - {self.tier} ({self.mode})"


class Booking(models.Model):
    """Persistence model for bookings."""

    class Status(models.TextChoices):
        PENDING = "pending"
        TENTATIVE = "tentative"
        CONFIRMED = "confirmed"
        CANCELLED = "cancelled"
        COMPLETED = "completed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="bookings")
    customer_name = models.CharField(max_length=255)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=32)
    event_type = models.CharField(max_length=100)
    primary_resource = models.ForeignKey(
        Resource, on_delete=models.PROTECT, related_name="primary_bookings"
    )
    resource_ids = models.JSONField(default=list)
    booking_date = models.DateField()
    start_minute = models.PositiveSmallIntegerField()
    end_minute = models.PositiveSmallIntegerField()
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    price_override = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    calculated_total = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    price_details = models.JSONField(default=list, blank=True)
    guest_count = models.PositiveIntegerField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["booking_date", "start_minute"]
        indexes = [
            models.Index(fields=["tenant", "booking_date"], name="booking_tenant_date_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.customer_name} - {self.booking_date}"


class BookingInterval(models.Model):
    """Persistence model for one resource's slot within a booking."""

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="intervals")
    resource = models.ForeignKey(Resource, on_delete=models.PROTECT, related_name="intervals")
    booking_date = models.DateField()
    start_minute = models.PositiveSmallIntegerField()
    end_minute = models.PositiveSmallIntegerField()
    status = models.CharField(
        max_length=16, choices=Booking.Status.choices, default=Booking.Status.PENDING
    )

    class Meta:
        ordering = ["resource", "booking_date", "start_minute"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_minute__gt=models.F("start_minute")),
                name="interval_ends_after_start",
            ),
            models.UniqueConstraint(
                fields=["booking", "resource"], name="one_interval_per_resource"
            ),
        ]
        indexes = [
            models.Index(
                fields=["resource", "booking_date", "status"], name="interval_resource_date_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.resource_id} {self.booking_date} {self.start_minute}-{self.end_minute}"
