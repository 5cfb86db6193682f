"""
Booking configuration and time helpers for the slot engine.

Times travel as "HH:MM" strings in a single operating timezone,
dates as "YYYY-MM-DD".
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from functools import lru_cache


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the booking/slots engine.

    Attributes:
        supported_durations: Booking lengths a member may pick (minutes)
        default_slot_interval_minutes: Interval used when a date override
            does not carry its own and there is no weekday config
        min_slot_interval_minutes / max_slot_interval_minutes: Allowed
            range for staff-configured intervals
        max_days_ahead: Booking horizon for the member-facing listing
        stats_cache_ttl_seconds: Redis TTL for cached per-day stats
    """
    supported_durations: tuple[int, ...] = (30, 60)
    default_slot_interval_minutes: int = 30
    min_slot_interval_minutes: int = 15
    max_slot_interval_minutes: int = 60
    max_days_ahead: int = 30
    stats_cache_ttl_seconds: int = 300

    def __post_init__(self):
        """Validate configuration."""
        if not (
            self.min_slot_interval_minutes
            <= self.default_slot_interval_minutes
            <= self.max_slot_interval_minutes
        ):
            raise ValueError(
                f"default_slot_interval_minutes must be within "
                f"{self.min_slot_interval_minutes}..{self.max_slot_interval_minutes}, "
                f"got {self.default_slot_interval_minutes}"
            )
        if not self.supported_durations:
            raise ValueError("supported_durations must not be empty")

    def is_valid_interval(self, minutes: int) -> bool:
        return self.min_slot_interval_minutes <= minutes <= self.max_slot_interval_minutes


@lru_cache
def get_booking_config() -> BookingConfig:
    """Get booking configuration (singleton), seeded from settings."""
    from ...config import settings

    return BookingConfig(
        max_days_ahead=settings.max_days_ahead,
        stats_cache_ttl_seconds=settings.stats_cache_ttl_seconds,
    )


# ── Time helpers ─────────────────────────────────────────────────────────


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" (or "HH:MM:SS") to minutes since midnight."""
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time value: {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours <= 24 and 0 <= minutes < 60) or (hours == 24 and minutes):
        raise ValueError(f"Invalid time value: {value!r}")
    return hours * 60 + minutes


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time(value: str) -> str:
    """"9:00", "09:00:00" → "09:00"."""
    return minutes_to_time_str(time_str_to_minutes(value))


def iso_weekday(target_date: date) -> int:
    """1 = Monday ... 7 = Sunday."""
    return target_date.isoweekday()


def slot_start_datetime(target_date: date, start_time: str) -> datetime:
    return datetime.combine(target_date, datetime.min.time()) + timedelta(
        minutes=time_str_to_minutes(start_time)
    )


def date_range(start_date: date, end_date: date) -> list[date]:
    """
    Dates in [start_date, end_date], both inclusive.

    Reversed bounds are swapped.
    """
    if start_date > end_date:
        start_date, end_date = end_date, start_date

    dates = []
    current = start_date
    while current <= end_date:
        dates.append(current)
        current += timedelta(days=1)
    return dates
