"""Pytest configuration and shared fixtures."""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from bookings.conf import EngineConfig
from bookings.domain import (
    BookingId,
    BookingInterval,
    BookingRequest,
    BookingStatus,
    CustomerDetails,
    Money,
    PricingMode,
    RateApplicability,
    RateRule,
    Resource,
    ResourceId,
    TenantId,
    TimeWindow,
)
from bookings.services import BookingService
from bookings.stores.memory_store import InMemoryBookingStore

TENANT = TenantId("tenant-1")
OTHER_TENANT = TenantId("tenant-2")
BOOKING_DAY = date(2025, 6, 1)
NOW = datetime(2025, 5, 20, 9, 0, tzinfo=UTC)


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def tenant_id() -> TenantId:
    return TENANT


@pytest.fixture
def hourly_rule() -> RateRule:
    return RateRule(
        id="hall-1:default",
        resource_id=ResourceId("hall-1"),
        applicability=RateApplicability(),
        mode=PricingMode.HOURLY,
        rate=Money(Decimal("50")),
        label="Standard hourly",
    )


@pytest.fixture
def seed(hourly_rule: RateRule):
    """Load two halls for tenant-1 (only hall-1 priced) and one for tenant-2."""

    def load(store: InMemoryBookingStore) -> InMemoryBookingStore:
        store.add_tenant(TENANT, "Australia/Sydney")
        store.add_tenant(OTHER_TENANT)
        store.add_resource(Resource(ResourceId("hall-1"), TENANT, "Main Hall", "hall", 120))
        store.add_resource(Resource(ResourceId("hall-2"), TENANT, "Garden Room", "room", 40))
        store.add_resource(Resource(ResourceId("hall-9"), OTHER_TENANT, "Annex", "hall", 30))
        store.set_rate_config(ResourceId("hall-1"), [hourly_rule])
        return store

    return load


@pytest.fixture
def store(seed) -> InMemoryBookingStore:
    return seed(InMemoryBookingStore())


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig(
        default_timezone="UTC",
        lock_timeout_seconds=0.2,
        max_concurrency_retries=2,
        retry_backoff_seconds=0,
    )


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_service(engine_config: EngineConfig, sleeps: list[float]):
    def build(store, now: datetime = NOW) -> BookingService:
        return BookingService(store, engine_config, clock=lambda: now, sleep=sleeps.append)

    return build


@pytest.fixture
def service(store: InMemoryBookingStore, make_service) -> BookingService:
    return make_service(store)


@pytest.fixture
def raw_booking():
    """Build raw form input; keyword arguments override fields."""

    def build(**overrides) -> dict:
        data = {
            "customer_name": "Ada Lovelace",
            "customer_email": "ada@example.com",
            "customer_phone": "+61 (2) 5550-1234",
            "event_type": "Wedding",
            "resource_ids": ["hall-1"],
            "booking_date": BOOKING_DAY.isoformat(),
            "start_time": "14:00",
            "end_time": "16:00",
        }
        data.update(overrides)
        return data

    return build


@pytest.fixture
def booking_request():
    """Build a validated BookingRequest directly."""

    def build(
        resource_ids=("hall-1",),
        day: date = BOOKING_DAY,
        start: str = "14:00",
        end: str = "16:00",
        status: BookingStatus = BookingStatus.PENDING,
        price_override: Money | None = None,
        tenant: TenantId = TENANT,
    ) -> BookingRequest:
        ids = tuple(ResourceId(r) for r in resource_ids)
        return BookingRequest(
            tenant_id=tenant,
            customer=CustomerDetails("Ada Lovelace", "ada@example.com", "+61255501234"),
            event_type="Wedding",
            resource_ids=ids,
            primary_resource_id=ids[0],
            date=day,
            window=TimeWindow.from_strings(start, end),
            status=status,
            price_override=price_override,
        )

    return build


@pytest.fixture
def interval():
    """Build an existing BookingInterval."""

    def build(
        resource_id: str = "hall-1",
        start: str = "14:00",
        end: str = "16:00",
        status: BookingStatus = BookingStatus.CONFIRMED,
        day: date = BOOKING_DAY,
        booking_id: BookingId | None = None,
    ) -> BookingInterval:
        return BookingInterval(
            resource_id=ResourceId(resource_id),
            date=day,
            window=TimeWindow.from_strings(start, end),
            status=status,
            booking_id=booking_id or BookingId.new(),
        )

    return build


@pytest.fixture
def venue(db):
    """Database rows mirroring the in-memory ``store`` fixture."""
    from bookings import models

    tenant = models.Tenant.objects.create(
        id="tenant-1", name="Harbour Venues", timezone="Australia/Sydney"
    )
    other = models.Tenant.objects.create(id="tenant-2", name="Inland Halls")
    hall = models.Resource.objects.create(
        id="hall-1", tenant=tenant, name="Main Hall", category="hall", capacity=120
    )
    models.Resource.objects.create(
        id="hall-2", tenant=tenant, name="Garden Room", category="room", capacity=40
    )
    models.Resource.objects.create(
        id="hall-9", tenant=other, name="Annex", category="hall", capacity=30
    )
    models.RateRule.objects.create(
        resource=hall, label="Standard hourly", mode=models.RateRule.Mode.HOURLY, rate=Decimal("50")
    )
    return tenant
