"""Conflict detection between a candidate booking and existing intervals."""

from collections.abc import Iterable
from itertools import combinations

from bookings.domain import BookingId, BookingInterval, BookingRequest


def find_conflicts(
    candidate: BookingRequest,
    existing: Iterable[BookingInterval],
    exclude_booking_id: BookingId | None = None,
) -> list[BookingInterval]:
    """Return every active interval the candidate would overlap.

    An interval conflicts when it is on one of the candidate's resources,
    on the same date, active, not part of ``exclude_booking_id`` and its
    window overlaps the candidate's (half-open, so back-to-back is fine).
    """
    requested = set(candidate.resource_ids)
    conflicts = [
        interval
        for interval in existing
        if interval.resource_id in requested
        and interval.date == candidate.date
        and interval.is_active
        and interval.booking_id != exclude_booking_id
        and interval.window.overlaps(candidate.window)
    ]
    conflicts.sort(key=lambda i: (i.resource_id.value, i.window.start, str(i.booking_id)))
    return conflicts


def overlapping_pairs(
    intervals: Iterable[BookingInterval],
) -> list[tuple[BookingInterval, BookingInterval]]:
    """Return pairs of active intervals that double-book a resource."""
    active = [i for i in intervals if i.is_active]
    return [
        (a, b)
        for a, b in combinations(active, 2)
        if a.resource_id == b.resource_id
        and a.date == b.date
        and a.booking_id != b.booking_id
        and a.window.overlaps(b.window)
    ]
