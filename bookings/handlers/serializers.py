"""Serializers for transforming domain models to API responses."""

from rest_framework import serializers


class BookingIntervalSerializer(serializers.Serializer):
    """Serializer for BookingInterval domain model."""

    booking_id = serializers.CharField(source="booking_id.value")
    resource_id = serializers.CharField(source="resource_id.value")
    date = serializers.DateField()
    start_time = serializers.CharField(source="window.start")
    end_time = serializers.CharField(source="window.end")
    status = serializers.CharField(source="status.value")


class ResourcePriceSerializer(serializers.Serializer):
    """Serializer for ResourcePrice domain model."""

    resource_id = serializers.CharField(source="resource_id.value")
    amount = serializers.DecimalField(source="amount.amount", max_digits=12, decimal_places=2)
    duration_hours = serializers.DecimalField(max_digits=6, decimal_places=2)
    rule_id = serializers.CharField(allow_null=True)
    label = serializers.CharField()
    pending_manual_pricing = serializers.BooleanField()


class PriceBreakdownSerializer(serializers.Serializer):
    """Serializer for PriceBreakdown domain model."""

    lines = ResourcePriceSerializer(many=True)
    subtotal = serializers.DecimalField(source="subtotal.amount", max_digits=12, decimal_places=2)
    override = serializers.SerializerMethodField()
    total = serializers.DecimalField(source="total.amount", max_digits=12, decimal_places=2)
    unpriced_resource_ids = serializers.SerializerMethodField()

    def get_override(self, breakdown) -> str | None:
        return str(breakdown.override) if breakdown.override is not None else None

    def get_unpriced_resource_ids(self, breakdown) -> list[str]:
        return [resource_id.value for resource_id in breakdown.unpriced_resource_ids]


class AvailabilitySerializer(serializers.Serializer):
    ok = serializers.BooleanField()
    conflicts = BookingIntervalSerializer(many=True)


class BookingConfirmationSerializer(serializers.Serializer):
    booking_id = serializers.CharField(source="booking_id.value")
    price = PriceBreakdownSerializer()
    unpriced_resource_ids = serializers.SerializerMethodField()

    def get_unpriced_resource_ids(self, confirmation) -> list[str]:
        return [resource_id.value for resource_id in confirmation.unpriced_resource_ids]


class BookingSerializer(serializers.Serializer):
    """Serializer for Booking domain model."""

    id = serializers.CharField(source="id.value")
    status = serializers.CharField(source="status.value")
    customer_name = serializers.CharField(source="request.customer.name")
    event_type = serializers.CharField(source="request.event_type")
    primary_resource_id = serializers.CharField(source="request.primary_resource_id.value")
    resource_ids = serializers.SerializerMethodField()
    booking_date = serializers.DateField(source="request.date")
    start_time = serializers.CharField(source="request.window.start")
    end_time = serializers.CharField(source="request.window.end")
    price = PriceBreakdownSerializer()

    def get_resource_ids(self, booking) -> list[str]:
        return [resource_id.value for resource_id in booking.request.resource_ids]
