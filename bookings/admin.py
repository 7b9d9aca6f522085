from django.contrib import admin

from bookings.models import Booking, BookingInterval, RateRule, Resource, Tenant


class ResourceInline(admin.TabularInline):
    model = Resource
    extra = 1


class RateRuleInline(admin.TabularInline):
    model = RateRule
    extra = 1


class BookingIntervalInline(admin.TabularInline):
    model = BookingInterval
    extra = 0
    can_delete = False
    readonly_fields = ["resource", "booking_date", "start_minute", "end_minute", "status"]


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ["id", "name", "timezone"]
    search_fields = ["id", "name"]
    inlines = [ResourceInline]


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    list_display = ["id", "name", "tenant", "category", "capacity"]
    list_filter = ["tenant", "category"]
    inlines = [RateRuleInline]


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ["customer_name", "event_type", "booking_date", "primary_resource", "status"]
    list_filter = ["tenant", "status", "booking_date"]
    search_fields = ["customer_name", "customer_email"]
    # Slots are only written through the booking service.
    readonly_fields = [
        "primary_resource",
        "resource_ids",
        "booking_date",
        "start_minute",
        "end_minute",
        "status",
        "calculated_total",
        "price_details",
    ]
    inlines = [BookingIntervalInline]
