"""Tests for cache behavior.

Run with: pytest tests/test_cache.py -v
"""

from decimal import Decimal

import pytest
from django.core.cache import cache

from bookings import models
from bookings.domain import Money, ResourceId
from bookings.stores.django_store import DjangoBookingStore, rate_cache_key

HALL_1 = ResourceId("hall-1")


@pytest.mark.django_db
class TestRateCache:
    """Tests for rate configuration caching."""

    def test_rate_config_is_cached(self, venue, django_assert_num_queries):
        store = DjangoBookingStore()
        store.rate_config(HALL_1)

        with django_assert_num_queries(0):
            (rule,) = store.rate_config(HALL_1)

        assert rule.rate == Money(Decimal("50"))
        assert cache.get(rate_cache_key("hall-1")) is not None


@pytest.mark.django_db
class TestCacheInvalidation:
    """Tests for cache invalidation on model changes."""

    def test_rule_save_invalidates_rate_cache(self, venue):
        store = DjangoBookingStore()
        store.rate_config(HALL_1)
        rule = models.RateRule.objects.get(resource_id="hall-1")

        rule.rate = Decimal("65")
        rule.save()

        assert cache.get(rate_cache_key("hall-1")) is None
        assert store.rate_config(HALL_1)[0].rate == Money(Decimal("65"))

    def test_new_rule_invalidates_rate_cache(self, venue):
        store = DjangoBookingStore()
        store.rate_config(HALL_1)

        models.RateRule.objects.create(
            resource_id="hall-1", tier="weekend", weekdays=[5, 6], rate=Decimal("80")
        )

        assert len(store.rate_config(HALL_1)) == 2

    def test_rule_delete_invalidates_rate_cache(self, venue):
        store = DjangoBookingStore()
        store.rate_config(HALL_1)

        models.RateRule.objects.filter(resource_id="hall-1").delete()

        assert store.rate_config(HALL_1) == ()

    def test_other_resources_stay_cached(self, venue):
        store = DjangoBookingStore()
        store.rate_config(HALL_1)

        models.RateRule.objects.create(resource_id="hall-2", rate=Decimal("20"))

        assert cache.get(rate_cache_key("hall-1")) is not None
