"""Domain primitives that enforce validity at creation time."""

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Self
from uuid import UUID, uuid4

_CENTS = Decimal("0.01")
_TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class TenantId:
    """Identifier of the tenant owning a set of resources."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError("Tenant id cannot be empty")

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=value.strip())

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ResourceId:
    """Identifier of a bookable resource, e.g. ``hall-1``."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError("Resource id cannot be empty")

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=value.strip())

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BookingId:
    """Unique identifier for a Booking."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    @classmethod
    def new(cls) -> Self:
        return cls(value=uuid4())

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Money:
    """Price representation with validation, always held to the cent."""

    amount: Decimal

    def __post_init__(self) -> None:
        amount = Decimal(self.amount)
        if amount < 0:
            raise ValueError("Money amount cannot be negative")
        object.__setattr__(self, "amount", amount.quantize(_CENTS, rounding=ROUND_HALF_UP))

    @classmethod
    def zero(cls) -> Self:
        return cls(amount=Decimal("0"))

    def __add__(self, other: "Money") -> "Money":
        return Money(self.amount + other.amount)

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """Wall-clock time inside a booking date, as minutes since midnight."""

    minutes: int

    def __post_init__(self) -> None:
        if not 0 <= self.minutes < MINUTES_PER_DAY:
            raise ValueError(f"Time of day out of range: {self.minutes}")

    @classmethod
    def from_string(cls, value: str) -> Self:
        """Parse ``HH:MM`` (24-hour clock, leading zero optional)."""
        match = _TIME_PATTERN.match(value.strip())
        if match is None:
            raise ValueError(f"Invalid time format: {value!r}")
        return cls(minutes=int(match.group(1)) * 60 + int(match.group(2)))

    def __str__(self) -> str:
        return f"{self.minutes // 60:02d}:{self.minutes % 60:02d}"


@dataclass(frozen=True)
class TimeWindow:
    """Half-open time range ``[start, end)`` within a single day."""

    start: TimeOfDay
    end: TimeOfDay

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError("Time window must end after it starts")

    @classmethod
    def from_strings(cls, start: str, end: str) -> Self:
        return cls(start=TimeOfDay.from_string(start), end=TimeOfDay.from_string(end))

    @property
    def duration_minutes(self) -> int:
        return self.end.minutes - self.start.minutes

    def overlaps(self, other: "TimeWindow") -> bool:
        """Back-to-back windows do not overlap."""
        return self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


class BookingStatus(Enum):
    """Booking lifecycle states."""

    PENDING = "pending"
    TENTATIVE = "tentative"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_STATUSES


# Tentative holds block slots the same way pending and confirmed bookings do.
ACTIVE_STATUSES = frozenset(
    {BookingStatus.PENDING, BookingStatus.TENTATIVE, BookingStatus.CONFIRMED}
)
