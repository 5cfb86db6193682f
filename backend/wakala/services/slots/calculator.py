"""
Slot grid calculation.

Expands effective working hours into an ordered list of fixed-length
slots for one (service, date):

  t = start_time
  while t <= last_appointment_time and t + interval <= end_time:
      emit [t, t + interval) unless it overlaps a break
      t += interval

Pure: no database, no clock. Same inputs → same slots.
"""

from dataclasses import dataclass
from datetime import date

from .config import minutes_to_time_str, time_str_to_minutes
from .hours import EffectiveHours


@dataclass(frozen=True, order=True)
class SlotSpec:
    """A slot the schedule wants to exist (not yet persisted)."""
    service_id: int
    date: date
    start_time: str
    end_time: str

    @property
    def key(self) -> tuple[str, str]:
        return self.start_time, self.end_time


def calculate_day_slots(
    service_id: int,
    target_date: date,
    hours: EffectiveHours | None,
) -> list[SlotSpec]:
    """
    Calculate the slot grid for a service on a date.

    Returns:
        SlotSpecs ordered by start time. Empty list = closed day.
    """
    if hours is None:
        return []

    step = hours.slot_interval_minutes
    if step <= 0:
        raise ValueError(f"slot_interval_minutes must be positive, got {step}")

    start_min = time_str_to_minutes(hours.start_time)
    end_min = time_str_to_minutes(hours.end_time)
    last_min = time_str_to_minutes(hours.last_appointment_time)
    breaks = [
        (time_str_to_minutes(b_start), time_str_to_minutes(b_end))
        for b_start, b_end in hours.breaks
    ]

    slots: list[SlotSpec] = []
    t = start_min
    while t <= last_min and t + step <= end_min:
        slot_end = t + step
        if not _overlaps_break(t, slot_end, breaks):
            slots.append(SlotSpec(
                service_id=service_id,
                date=target_date,
                start_time=minutes_to_time_str(t),
                end_time=minutes_to_time_str(slot_end),
            ))
        t += step

    return slots


def _overlaps_break(start: int, end: int, breaks: list[tuple[int, int]]) -> bool:
    # Half-open intervals: a slot ending exactly when a break starts is fine
    return any(start < b_end and end > b_start for b_start, b_end in breaks)


def intervals_overlap(a_start: str, a_end: str, b_start: str, b_end: str) -> bool:
    return (
        time_str_to_minutes(a_start) < time_str_to_minutes(b_end)
        and time_str_to_minutes(a_end) > time_str_to_minutes(b_start)
    )
