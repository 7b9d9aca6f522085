from decimal import Decimal, InvalidOperation

from django.core.management.base import BaseCommand, CommandError

from bookings import models
from bookings.domain import ResourceId
from bookings.services.rates import RATE_CARD_MODES, rules_from_rate_card
from bookings.stores.django_store import DjangoBookingStore


def amount(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise CommandError(f"Invalid amount {value!r}") from None


class Command(BaseCommand):
    help = "Load a weekday/weekend rate card for a resource as day-of-week rate rules"

    def add_arguments(self, parser):
        parser.add_argument("resource_id")
        parser.add_argument("rate_type", choices=sorted(RATE_CARD_MODES))
        parser.add_argument("weekday_rate")
        parser.add_argument("weekend_rate")

    def handle(self, *args, **options):
        resource_id = options["resource_id"]
        if not models.Resource.objects.filter(pk=resource_id).exists():
            raise CommandError(f"Unknown resource {resource_id!r}")

        try:
            rules = rules_from_rate_card(
                ResourceId(resource_id),
                options["rate_type"],
                amount(options["weekday_rate"]),
                amount(options["weekend_rate"]),
            )
        except ValueError as exc:
            raise CommandError(str(exc)) from exc

        DjangoBookingStore().save_rate_rules(ResourceId(resource_id), rules)
        self.stdout.write(
            self.style.SUCCESS(f"Loaded {len(rules)} {options['rate_type']} rules for {resource_id}")
        )
