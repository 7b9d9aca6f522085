"""Django signals for cache invalidation and interval status propagation."""

from django.core.cache import cache
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from bookings.models import Booking, BookingInterval, RateRule
from bookings.stores.django_store import rate_cache_key


@receiver([post_save, post_delete], sender=RateRule)
def invalidate_rate_cache(sender, instance, **kwargs):
    """Invalidate the resource's cached rate config when a rule changes."""
    cache.delete(rate_cache_key(instance.resource_id))


@receiver(post_save, sender=Booking)
def propagate_booking_status(sender, instance, created, **kwargs):
    """Keep interval statuses in step with their booking."""
    if created:
        return
    BookingInterval.objects.filter(booking=instance).exclude(status=instance.status).update(
        status=instance.status
    )
