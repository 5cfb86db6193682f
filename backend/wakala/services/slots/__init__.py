# backend/wakala/services/slots/__init__.py
"""
Slot availability & reservation engine.

hours → calculator → store ← reservation
                      ↑
          regeneration / availability
"""

from .config import BookingConfig, get_booking_config
from .errors import (
    SlotError,
    NotFound,
    AlreadyClaimed,
    Blocked,
    InvalidSelection,
    ClosedDay,
    PartialFailure,
    ReservationResult,
)
from .hours import EffectiveHours, DayResolution, resolve_day, resolve_hours
from .calculator import SlotSpec, calculate_day_slots
from .store import SlotStore
from .reservation import ReservationCoordinator
from .regeneration import (
    diff_slots,
    regenerate_for_date,
    regenerate_bulk,
    regenerate_all_services,
)
from .availability import (
    AvailabilityStat,
    calculate_availability_stats,
    list_bookable_starts,
)
from .invalidator import invalidate_stats_cache

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "SlotError",
    "NotFound",
    "AlreadyClaimed",
    "Blocked",
    "InvalidSelection",
    "ClosedDay",
    "PartialFailure",
    "ReservationResult",
    "EffectiveHours",
    "DayResolution",
    "resolve_day",
    "resolve_hours",
    "SlotSpec",
    "calculate_day_slots",
    "SlotStore",
    "ReservationCoordinator",
    "diff_slots",
    "regenerate_for_date",
    "regenerate_bulk",
    "regenerate_all_services",
    "AvailabilityStat",
    "calculate_availability_stats",
    "list_bookable_starts",
    "invalidate_stats_cache",
]
