"""Engine configuration read from the ``BOOKING_ENGINE`` Django setting."""

from dataclasses import dataclass
from typing import Self

from django.conf import settings

DEFAULTS = {
    "DEFAULT_TIMEZONE": "UTC",
    "LOCK_TIMEOUT_SECONDS": 5.0,
    "MAX_CONCURRENCY_RETRIES": 3,
    "RETRY_BACKOFF_SECONDS": 0.05,
    "DAILY_FULL_DAY_HOURS": 8,
}


@dataclass(frozen=True)
class EngineConfig:
    default_timezone: str = DEFAULTS["DEFAULT_TIMEZONE"]
    lock_timeout_seconds: float = DEFAULTS["LOCK_TIMEOUT_SECONDS"]
    max_concurrency_retries: int = DEFAULTS["MAX_CONCURRENCY_RETRIES"]
    retry_backoff_seconds: float = DEFAULTS["RETRY_BACKOFF_SECONDS"]
    daily_full_day_hours: int = DEFAULTS["DAILY_FULL_DAY_HOURS"]

    def __post_init__(self) -> None:
        if self.lock_timeout_seconds <= 0:
            raise ValueError("Lock timeout must be positive")
        if self.max_concurrency_retries < 0:
            raise ValueError("Retry count cannot be negative")

    @classmethod
    def from_settings(cls) -> Self:
        values = {**DEFAULTS, **getattr(settings, "BOOKING_ENGINE", {})}
        return cls(
            default_timezone=values["DEFAULT_TIMEZONE"],
            lock_timeout_seconds=float(values["LOCK_TIMEOUT_SECONDS"]),
            max_concurrency_retries=int(values["MAX_CONCURRENCY_RETRIES"]),
            retry_backoff_seconds=float(values["RETRY_BACKOFF_SECONDS"]),
            daily_full_day_hours=int(values["DAILY_FULL_DAY_HOURS"]),
        )
