"""Slot grid calculation (pure, no database)."""
from datetime import date

import pytest

from wakala.services.slots import EffectiveHours, SlotSpec, calculate_day_slots
from wakala.services.slots.calculator import intervals_overlap

DAY = date(2030, 3, 4)


def starts(slots: list[SlotSpec]) -> list[str]:
    return [s.start_time for s in slots]


def test_nine_slots_from_ten_to_half_past_two():
    hours = EffectiveHours("10:00", "14:30", "14:00", 30)

    slots = calculate_day_slots(1, DAY, hours)

    assert len(slots) == 9
    assert slots[0] == SlotSpec(1, DAY, "10:00", "10:30")
    assert slots[-1] == SlotSpec(1, DAY, "14:00", "14:30")


def test_break_removes_overlapping_slot_and_leaves_gap():
    hours = EffectiveHours("10:00", "14:30", "14:00", 30, breaks=(("12:00", "12:30"),))

    slots = calculate_day_slots(1, DAY, hours)

    assert len(slots) == 8
    assert "12:00" not in starts(slots)
    assert "11:30" in starts(slots)
    assert "12:30" in starts(slots)


def test_slot_ending_at_break_start_is_kept():
    hours = EffectiveHours("10:00", "12:00", "11:30", 30, breaks=(("11:00", "11:45"),))

    assert starts(calculate_day_slots(1, DAY, hours)) == ["10:00", "10:30"]


def test_last_appointment_time_caps_starts():
    hours = EffectiveHours("09:00", "17:00", "10:00", 30)

    assert starts(calculate_day_slots(1, DAY, hours)) == ["09:00", "09:30", "10:00"]


def test_slot_must_fit_before_end():
    hours = EffectiveHours("09:00", "10:15", "10:00", 30)

    assert starts(calculate_day_slots(1, DAY, hours)) == ["09:00", "09:30"]


def test_closed_day_has_no_slots():
    assert calculate_day_slots(1, DAY, None) == []


def test_same_inputs_give_same_slots():
    hours = EffectiveHours("08:00", "16:00", "15:30", 15, breaks=(("12:00", "13:00"),))

    assert calculate_day_slots(7, DAY, hours) == calculate_day_slots(7, DAY, hours)


def test_non_positive_interval_rejected():
    with pytest.raises(ValueError):
        calculate_day_slots(1, DAY, EffectiveHours("09:00", "10:00", "09:30", 0))


def test_intervals_overlap_is_half_open():
    assert intervals_overlap("09:00", "09:30", "09:15", "09:45")
    assert not intervals_overlap("09:00", "09:30", "09:30", "10:00")
