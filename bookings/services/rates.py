"""Selects the rate rule that prices a resource on a given date."""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from bookings.domain import (
    Money,
    PricingMode,
    RateApplicability,
    RateRule,
    ResourceId,
    TimeWindow,
)
from bookings.domain.errors import RateNotFoundError

WEEKDAYS = frozenset({0, 1, 2, 3, 4})
WEEKEND = frozenset({5, 6})

RATE_CARD_MODES = {"hourly": PricingMode.HOURLY, "daily": PricingMode.DAILY}


def resolve_rate(
    resource_id: ResourceId,
    on: date,
    window: TimeWindow,
    rules: Sequence[RateRule],
) -> RateRule:
    """Return the most specific rule for the resource on the date.

    Day-of-week and date-range rules win over the default tier. Among
    several matches the narrowest date range wins, then the fewest
    weekdays, then configuration order.

    Raises:
        RateNotFoundError: If nothing is configured or nothing applies.
    """
    own_rules = [rule for rule in rules if rule.resource_id == resource_id]

    specific = [
        (position, rule)
        for position, rule in enumerate(own_rules)
        if not rule.applicability.is_default and rule.applicability.matches(on)
    ]
    if specific:
        _, best = min(specific, key=_specificity)
        return best

    for rule in own_rules:
        if rule.applicability.is_default:
            return rule

    raise RateNotFoundError(resource_id)


def _specificity(entry: tuple[int, RateRule]) -> tuple[float, int, int]:
    position, rule = entry
    span = rule.applicability.span_days
    weekdays = len(rule.applicability.weekdays) or 7
    return (float("inf") if span is None else span, weekdays, position)


def rules_from_rate_card(
    resource_id: ResourceId,
    rate_type: str,
    weekday_rate: Decimal,
    weekend_rate: Decimal,
) -> list[RateRule]:
    """Expand a weekday/weekend rate card into day-of-week rules."""
    try:
        mode = RATE_CARD_MODES[rate_type]
    except KeyError:
        raise ValueError(f"Unknown rate type {rate_type!r}") from None

    return [
        RateRule(
            id=f"{resource_id}:weekday",
            resource_id=resource_id,
            applicability=RateApplicability(weekdays=WEEKDAYS, tier="weekday"),
            mode=mode,
            rate=Money(weekday_rate),
            label="Weekday rate",
        ),
        RateRule(
            id=f"{resource_id}:weekend",
            resource_id=resource_id,
            applicability=RateApplicability(weekdays=WEEKEND, tier="weekend"),
            mode=mode,
            rate=Money(weekend_rate),
            label="Weekend rate",
        ),
    ]
