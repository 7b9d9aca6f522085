"""Tests for the Django ORM store.

Requires database access.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest
from django.db import DatabaseError, OperationalError, transaction

from bookings import models
from bookings.domain import BookingId, BookingStatus, Money, ResourceId, TenantId
from bookings.domain.errors import (
    BookingNotFoundError,
    ConcurrencyError,
    ConflictError,
    InvalidStatusTransitionError,
    PersistenceError,
)
from bookings.services import BookingService
from bookings.stores.django_store import DjangoBookingStore

BOOKING_DAY = date(2025, 6, 1)
NOW = datetime(2025, 5, 20, 9, 0, tzinfo=UTC)
TENANT = TenantId("tenant-1")
HALL_1 = ResourceId("hall-1")
HALL_2 = ResourceId("hall-2")


@pytest.fixture
def django_store(venue) -> DjangoBookingStore:
    return DjangoBookingStore()


@pytest.fixture
def db_service(django_store, engine_config) -> BookingService:
    return BookingService(django_store, engine_config, clock=lambda: NOW, sleep=lambda s: None)


@pytest.mark.django_db
class TestDjangoStoreReads:
    def test_get_resources_skips_other_tenants(self, django_store):
        resources = django_store.get_resources(TENANT, [HALL_1, ResourceId("hall-9")])

        assert [r.id for r in resources] == [HALL_1]
        assert resources[0].capacity == 120

    def test_tenant_timezone(self, django_store):
        assert django_store.tenant_timezone(TENANT) == "Australia/Sydney"
        assert django_store.tenant_timezone(TenantId("tenant-2")) is None

    def test_rate_config_maps_rows_to_rules(self, django_store):
        models.RateRule.objects.create(
            resource_id="hall-2",
            tier="weekend",
            weekdays=[5, 6],
            mode=models.RateRule.Mode.TIERED,
            rate=Decimal("30"),
            tiers=[{"max_hours": "4", "amount": "200.00"}],
        )

        (rule,) = django_store.rate_config(HALL_2)

        assert rule.applicability.weekdays == frozenset({5, 6})
        assert rule.tiers[0].amount == Money(Decimal("200"))

    def test_get_booking_unknown(self, django_store):
        assert django_store.get_booking(BookingId.new()) is None


@pytest.mark.django_db
class TestDjangoAdmission:
    """End-to-end admission against the database."""

    def test_booking_is_persisted_with_intervals(self, db_service, django_store, raw_booking):
        confirmation = db_service.submit_booking(
            TENANT, raw_booking(resource_ids=["hall-1", "hall-2"], price_override="90")
        )

        row = models.Booking.objects.get(pk=confirmation.booking_id.value)
        assert row.calculated_total == Decimal("100.00")
        assert row.price_override == Decimal("90.00")
        assert sorted(row.intervals.values_list("resource_id", flat=True)) == ["hall-1", "hall-2"]

        booking = django_store.get_booking(confirmation.booking_id)
        assert booking.price.total == Money(Decimal("90"))
        assert booking.price.unpriced_resource_ids == (HALL_2,)
        assert booking.request.date == BOOKING_DAY

    def test_overlap_is_rejected(self, db_service, raw_booking):
        db_service.submit_booking(TENANT, raw_booking())

        with pytest.raises(ConflictError):
            db_service.submit_booking(
                TENANT, raw_booking(resource_ids=["hall-2", "hall-1"], start_time="15:30")
            )

        assert models.BookingInterval.objects.count() == 1

    def test_edit_replaces_intervals(self, db_service, raw_booking):
        original = db_service.submit_booking(TENANT, raw_booking(resource_ids=["hall-1", "hall-2"]))

        db_service.submit_booking(
            TENANT,
            raw_booking(resource_ids=["hall-1"], start_time="18:00", end_time="20:00"),
            editing_booking_id=original.booking_id,
        )

        intervals = models.BookingInterval.objects.filter(booking_id=original.booking_id.value)
        assert [(i.resource_id, i.start_minute) for i in intervals] == [("hall-1", 18 * 60)]

    def test_status_change_reaches_intervals(self, db_service, raw_booking):
        confirmation = db_service.submit_booking(TENANT, raw_booking())

        db_service.cancel_booking(TENANT, confirmation.booking_id)

        assert list(models.BookingInterval.objects.values_list("status", flat=True)) == [
            "cancelled"
        ]
        db_service.submit_booking(TENANT, raw_booking())

    def test_update_unknown_booking(self, django_store):
        with pytest.raises(BookingNotFoundError):
            django_store.update_booking_status(BookingId.new(), BookingStatus.CONFIRMED)


@pytest.mark.django_db
class TestDjangoStoreFailures:
    def test_write_failure_rolls_back_the_booking(
        self, db_service, raw_booking, monkeypatch
    ):
        def fail(*args, **kwargs):
            raise DatabaseError("disk I/O error")

        monkeypatch.setattr(models.BookingInterval.objects, "bulk_create", fail)

        with pytest.raises(PersistenceError):
            db_service.submit_booking(TENANT, raw_booking(resource_ids=["hall-1", "hall-2"]))

        assert models.Booking.objects.count() == 0
        assert models.BookingInterval.objects.count() == 0

    def test_lock_failure_maps_to_concurrency_error(self, django_store, monkeypatch):
        def busy(*args, **kwargs):
            raise OperationalError("database is locked")

        monkeypatch.setattr(models.Resource.objects, "select_for_update", busy)

        with pytest.raises(ConcurrencyError):
            with django_store.lock_resources(TENANT, [HALL_1], timeout=0.1):
                pass

    def test_locks_are_held_inside_a_transaction(self, django_store):
        with django_store.lock_resources(TENANT, [HALL_2, HALL_1], timeout=1):
            assert transaction.get_connection().in_atomic_block

    def test_busy_database_on_write_is_retried(self, db_service, raw_booking, monkeypatch):
        calls = []
        bulk_create = models.BookingInterval.objects.bulk_create

        def busy_once(*args, **kwargs):
            calls.append(1)
            if len(calls) == 1:
                raise OperationalError("database is locked")
            return bulk_create(*args, **kwargs)

        monkeypatch.setattr(models.BookingInterval.objects, "bulk_create", busy_once)

        confirmation = db_service.submit_booking(TENANT, raw_booking())

        assert len(calls) == 2
        assert list(
            models.BookingInterval.objects.values_list("booking_id", flat=True)
        ) == [confirmation.booking_id.value]

    def test_busy_database_on_write_maps_to_concurrency_error(
        self, db_service, raw_booking, monkeypatch
    ):
        def busy(*args, **kwargs):
            raise OperationalError("database is locked")

        monkeypatch.setattr(models.BookingInterval.objects, "bulk_create", busy)

        with pytest.raises(ConcurrencyError):
            db_service.submit_booking(TENANT, raw_booking())

        assert models.Booking.objects.count() == 0
        assert models.BookingInterval.objects.count() == 0


class CancellingStore(DjangoBookingStore):
    """Cancels ``target`` once, just before the next writer takes its locks."""

    target = None

    def lock_resources(self, tenant_id, resource_ids, timeout):
        if self.target is not None:
            target, self.target = self.target, None
            self.update_booking_status(target, BookingStatus.CANCELLED)
        return super().lock_resources(tenant_id, resource_ids, timeout)


@pytest.mark.django_db
class TestDjangoEditRace:
    def test_cancel_during_edit_is_not_undone(self, venue, engine_config, raw_booking):
        store = CancellingStore()
        service = BookingService(store, engine_config, clock=lambda: NOW, sleep=lambda s: None)
        original = service.submit_booking(TENANT, raw_booking())
        store.target = original.booking_id

        with pytest.raises(InvalidStatusTransitionError):
            service.submit_booking(
                TENANT, raw_booking(end_time="17:00"), editing_booking_id=original.booking_id
            )

        row = models.Booking.objects.get(pk=original.booking_id.value)
        assert row.status == "cancelled"
        assert row.end_minute == 16 * 60
        assert list(models.BookingInterval.objects.values_list("status", flat=True)) == [
            "cancelled"
        ]
