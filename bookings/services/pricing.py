"""Deterministic price calculation for booking windows."""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from bookings.domain import (
    Money,
    PriceBreakdown,
    PricingMode,
    RateRule,
    ResourceId,
    ResourcePrice,
    TimeWindow,
)

MINUTES_PER_HOUR = Decimal(60)


def duration_hours(window: TimeWindow) -> Decimal:
    """Elapsed hours of the window, never negative."""
    return max(Decimal(window.duration_minutes), Decimal(0)) / MINUTES_PER_HOUR


def calculate(
    rule: RateRule,
    on: date,
    window: TimeWindow,
    *,
    full_day_hours: int = 8,
) -> ResourcePrice:
    """Apply the rule's pricing function to the window's duration."""
    hours = duration_hours(window)

    if rule.mode is PricingMode.FLAT:
        amount = rule.rate.amount
    elif rule.mode is PricingMode.HOURLY:
        amount = rule.rate.amount * hours
    elif rule.mode is PricingMode.TIERED:
        amount = _tiered_amount(rule, hours)
    elif rule.mode is PricingMode.DAILY:
        # Short bookings pay half the day rate.
        amount = rule.rate.amount if hours >= full_day_hours else rule.rate.amount / 2
    else:
        raise ValueError(f"Unsupported pricing mode {rule.mode}")

    return ResourcePrice(
        resource_id=rule.resource_id,
        amount=Money(amount),
        duration_hours=hours,
        rule_id=rule.id,
        label=rule.label,
    )


def _tiered_amount(rule: RateRule, hours: Decimal) -> Decimal:
    tiers = sorted(rule.tiers, key=lambda tier: tier.max_hours)
    for tier in tiers:
        if hours <= tier.max_hours:
            return tier.amount.amount
    last = tiers[-1]
    return last.amount.amount + rule.rate.amount * (hours - last.max_hours)


def unpriced(resource_id: ResourceId, window: TimeWindow) -> ResourcePrice:
    """Zero line for a resource with no applicable rate."""
    return ResourcePrice(
        resource_id=resource_id,
        amount=Money.zero(),
        duration_hours=duration_hours(window),
        pending_manual_pricing=True,
    )


def price_booking(lines: Iterable[ResourcePrice], override: Money | None = None) -> PriceBreakdown:
    """Sum per-resource prices into a breakdown."""
    lines = tuple(lines)
    subtotal = sum((line.amount for line in lines), Money.zero())
    return PriceBreakdown(lines=lines, subtotal=subtotal, override=override)
