from .generated import (
    Base,
    metadata,
    BookingServices,
    WorkingHoursConfig,
    DaySpecificHours,
    BlockedDates,
    AvailabilitySlots,
    WakalaApplications,
)

__all__ = [
    "Base",
    "metadata",
    "BookingServices",
    "WorkingHoursConfig",
    "DaySpecificHours",
    "BlockedDates",
    "AvailabilitySlots",
    "WakalaApplications",
]
