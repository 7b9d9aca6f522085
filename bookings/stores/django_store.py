"""Django ORM implementation of the BookingStore."""

import logging
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import date
from decimal import Decimal

from django.core.cache import cache
from django.db import DatabaseError, OperationalError, connection, transaction

from bookings import models
from bookings.domain import (
    ACTIVE_STATUSES,
    Booking,
    BookingId,
    BookingInterval,
    BookingRequest,
    BookingStatus,
    CustomerDetails,
    DurationTier,
    Money,
    PriceBreakdown,
    PricingMode,
    RateApplicability,
    RateRule,
    Resource,
    ResourceId,
    ResourcePrice,
    TenantId,
    TimeOfDay,
    TimeWindow,
)
from bookings.domain.errors import BookingNotFoundError, ConcurrencyError, PersistenceError
from bookings.stores.interfaces import BookingStore

logger = logging.getLogger(__name__)

RATE_CACHE_TIMEOUT = 60 * 15


def rate_cache_key(resource_id: str) -> str:
    return f"rates:{resource_id}"


class DjangoBookingStore(BookingStore):
    """Relational store using Django ORM row locks on resources."""

    def get_resources(
        self, tenant_id: TenantId, resource_ids: Iterable[ResourceId]
    ) -> list[Resource]:
        rows = models.Resource.objects.filter(
            tenant_id=tenant_id.value, id__in=[r.value for r in resource_ids]
        )
        return [
            Resource(
                id=ResourceId(row.id),
                tenant_id=TenantId(row.tenant_id),
                name=row.name,
                category=row.category,
                capacity=row.capacity,
            )
            for row in rows
        ]

    def tenant_timezone(self, tenant_id: TenantId) -> str | None:
        timezone = (
            models.Tenant.objects.filter(pk=tenant_id.value)
            .values_list("timezone", flat=True)
            .first()
        )
        return timezone or None

    def active_intervals(
        self, tenant_id: TenantId, resource_ids: Iterable[ResourceId], on: date
    ) -> list[BookingInterval]:
        rows = models.BookingInterval.objects.filter(
            booking__tenant_id=tenant_id.value,
            resource_id__in=[r.value for r in resource_ids],
            booking_date=on,
            status__in=[s.value for s in ACTIVE_STATUSES],
        )
        return [_to_interval(row) for row in rows]

    def rate_config(self, resource_id: ResourceId) -> Sequence[RateRule]:
        key = rate_cache_key(resource_id.value)
        rules = cache.get(key)
        if rules is None:
            rows = models.RateRule.objects.filter(resource_id=resource_id.value)
            rules = tuple(_to_rule(row) for row in rows)
            cache.set(key, rules, RATE_CACHE_TIMEOUT)
        return rules

    def get_booking(self, booking_id: BookingId, for_update: bool = False) -> Booking | None:
        rows = models.Booking.objects.all()
        if for_update:
            rows = rows.select_for_update()
        row = rows.filter(pk=booking_id.value).first()
        return _to_booking(row) if row is not None else None

    @contextmanager
    def lock_resources(
        self, tenant_id: TenantId, resource_ids: Iterable[ResourceId], timeout: float
    ) -> Iterator[None]:
        with transaction.atomic():
            self._acquire_row_locks(tenant_id, resource_ids, timeout)
            yield

    def _acquire_row_locks(
        self, tenant_id: TenantId, resource_ids: Iterable[ResourceId], timeout: float
    ) -> None:
        ids = sorted({r.value for r in resource_ids})
        try:
            if connection.vendor == "postgresql":
                with connection.cursor() as cursor:
                    cursor.execute(f"SET LOCAL lock_timeout = {max(int(timeout * 1000), 1)}")
            # Evaluating the queryset takes the row locks in primary key order.
            list(
                models.Resource.objects.select_for_update()
                .filter(tenant_id=tenant_id.value, id__in=ids)
                .order_by("id")
                .values_list("id", flat=True)
            )
        except OperationalError as exc:
            logger.warning("Could not lock resources %s: %s", ids, exc)
            raise ConcurrencyError("Resources are locked by another booking, please retry") from exc

    def persist_booking(
        self,
        booking_id: BookingId,
        request: BookingRequest,
        intervals: Sequence[BookingInterval],
        price: PriceBreakdown,
    ) -> BookingId:
        try:
            with transaction.atomic():
                row, _ = models.Booking.objects.update_or_create(
                    id=booking_id.value,
                    defaults={
                        "tenant_id": request.tenant_id.value,
                        "customer_name": request.customer.name,
                        "customer_email": request.customer.email,
                        "customer_phone": request.customer.phone,
                        "event_type": request.event_type,
                        "primary_resource_id": request.primary_resource_id.value,
                        "resource_ids": [r.value for r in request.resource_ids],
                        "booking_date": request.date,
                        "start_minute": request.window.start.minutes,
                        "end_minute": request.window.end.minutes,
                        "status": request.status.value,
                        "price_override": price.override.amount if price.override else None,
                        "calculated_total": price.subtotal.amount,
                        "price_details": [_line_to_json(line) for line in price.lines],
                        "guest_count": request.guest_count,
                        "notes": request.notes,
                    },
                )
                row.intervals.all().delete()
                models.BookingInterval.objects.bulk_create(
                    models.BookingInterval(
                        booking=row,
                        resource_id=interval.resource_id.value,
                        booking_date=interval.date,
                        start_minute=interval.window.start.minutes,
                        end_minute=interval.window.end.minutes,
                        status=interval.status.value,
                    )
                    for interval in intervals
                )
        except OperationalError as exc:
            logger.warning("Database busy persisting booking %s: %s", booking_id, exc)
            raise ConcurrencyError("The database is busy, please retry") from exc
        except DatabaseError as exc:
            logger.exception("Failed to persist booking %s", booking_id)
            raise PersistenceError() from exc
        return booking_id

    def update_booking_status(self, booking_id: BookingId, new_status: BookingStatus) -> Booking:
        with transaction.atomic():
            row = models.Booking.objects.select_for_update().filter(pk=booking_id.value).first()
            if row is None:
                raise BookingNotFoundError(booking_id)
            row.status = new_status.value
            # post_save carries the status over to the booking's intervals
            row.save(update_fields=["status", "updated_at"])
        return _to_booking(row)

    def save_rate_rules(self, resource_id: ResourceId, rules: Sequence[RateRule]) -> None:
        """Replace the resource's rules in every tier that ``rules`` covers."""
        tiers = {rule.applicability.tier for rule in rules}
        with transaction.atomic():
            models.RateRule.objects.filter(resource_id=resource_id.value, tier__in=tiers).delete()
            for position, rule in enumerate(rules):
                models.RateRule.objects.create(
                    resource_id=resource_id.value,
                    tier=rule.applicability.tier,
                    label=rule.label,
                    weekdays=sorted(rule.applicability.weekdays),
                    date_from=rule.applicability.date_from,
                    date_to=rule.applicability.date_to,
                    mode=rule.mode.value,
                    rate=rule.rate.amount,
                    tiers=[
                        {"max_hours": str(tier.max_hours), "amount": str(tier.amount.amount)}
                        for tier in rule.tiers
                    ],
                    position=position,
                )
        logger.info(
            "Saved %d rate rules for %s in tiers %s", len(rules), resource_id, sorted(tiers)
        )


def _window(start_minute: int, end_minute: int) -> TimeWindow:
    return TimeWindow(start=TimeOfDay(start_minute), end=TimeOfDay(end_minute))


def _to_interval(row: models.BookingInterval) -> BookingInterval:
    return BookingInterval(
        resource_id=ResourceId(row.resource_id),
        date=row.booking_date,
        window=_window(row.start_minute, row.end_minute),
        status=BookingStatus(row.status),
        booking_id=BookingId(row.booking_id),
    )


def _to_rule(row: models.RateRule) -> RateRule:
    return RateRule(
        id=str(row.pk),
        resource_id=ResourceId(row.resource_id),
        applicability=RateApplicability(
            weekdays=frozenset(int(day) for day in row.weekdays),
            date_from=row.date_from,
            date_to=row.date_to,
            tier=row.tier,
        ),
        mode=PricingMode(row.mode),
        rate=Money(row.rate),
        tiers=tuple(
            DurationTier(
                max_hours=Decimal(str(tier["max_hours"])),
                amount=Money(Decimal(str(tier["amount"]))),
            )
            for tier in row.tiers
        ),
        label=row.label,
    )


def _line_to_json(line: ResourcePrice) -> dict:
    return {
        "resource_id": line.resource_id.value,
        "amount": str(line.amount),
        "duration_hours": str(line.duration_hours),
        "rule_id": line.rule_id,
        "label": line.label,
        "pending_manual_pricing": line.pending_manual_pricing,
    }


def _line_from_json(data: dict) -> ResourcePrice:
    return ResourcePrice(
        resource_id=ResourceId(data["resource_id"]),
        amount=Money(Decimal(data["amount"])),
        duration_hours=Decimal(data["duration_hours"]),
        rule_id=data.get("rule_id"),
        label=data.get("label", ""),
        pending_manual_pricing=data.get("pending_manual_pricing", False),
    )


def _to_booking(row: models.Booking) -> Booking:
    status = BookingStatus(row.status)
    request = BookingRequest(
        tenant_id=TenantId(row.tenant_id),
        customer=CustomerDetails(
            name=row.customer_name,
            email=row.customer_email,
            phone=row.customer_phone,
        ),
        event_type=row.event_type,
        resource_ids=tuple(ResourceId(r) for r in row.resource_ids),
        primary_resource_id=ResourceId(row.primary_resource_id),
        date=row.booking_date,
        window=_window(row.start_minute, row.end_minute),
        status=status,
        price_override=Money(row.price_override) if row.price_override is not None else None,
        guest_count=row.guest_count,
        notes=row.notes,
    )
    price = PriceBreakdown(
        lines=tuple(_line_from_json(line) for line in row.price_details),
        subtotal=Money(row.calculated_total),
        override=request.price_override,
    )
    return Booking(id=BookingId(row.id), request=request, price=price, status=status)
