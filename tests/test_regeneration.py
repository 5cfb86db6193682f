"""Slot grid regeneration."""
from datetime import date, timedelta

import pytest

from wakala.models import DaySpecificHours, WorkingHoursConfig
from wakala.services.slots import (
    NotFound,
    SlotSpec,
    SlotStore,
    diff_slots,
    regenerate_all_services,
    regenerate_bulk,
    regenerate_for_date,
)
from wakala.services.slots import regeneration
from wakala.services.slots.regeneration import ExistingSlot

DAY = date(2030, 3, 4)


def spec(start, end):
    return SlotSpec(1, DAY, start, end)


def stored_starts(db, service_id, target_date):
    db.expire_all()
    return [s.start_time for s in SlotStore(db).list_for_date(service_id, target_date)]


# ── diff_slots ───────────────────────────────────────────────────────────


def test_diff_creates_missing_and_deletes_stale():
    existing = [
        ExistingSlot(1, "08:00", "08:30", is_booked=False),
        ExistingSlot(2, "09:00", "09:30", is_booked=False),
    ]
    desired = [spec("09:00", "09:30"), spec("09:30", "10:00")]

    diff = diff_slots(existing, desired)

    assert diff.deletes == [1]
    assert diff.creates == [spec("09:30", "10:00")]
    assert diff.preserved == []


def test_diff_never_deletes_booked():
    existing = [ExistingSlot(7, "08:00", "08:30", is_booked=True)]

    diff = diff_slots(existing, [spec("10:00", "10:30")])

    assert diff.deletes == []
    assert diff.preserved == [7]
    assert diff.creates == [spec("10:00", "10:30")]


def test_diff_skips_desired_slot_overlapping_booked():
    existing = [ExistingSlot(7, "09:15", "09:45", is_booked=True)]
    desired = [spec("09:00", "09:30"), spec("09:30", "10:00"), spec("10:00", "10:30")]

    diff = diff_slots(existing, desired)

    assert diff.creates == [spec("10:00", "10:30")]


def test_diff_is_noop_when_in_sync():
    existing = [ExistingSlot(1, "09:00", "09:30", is_booked=False)]

    diff = diff_slots(existing, [spec("09:00", "09:30")])

    assert (diff.creates, diff.deletes, diff.preserved) == ([], [], [])


# ── regenerate_for_date ──────────────────────────────────────────────────


def test_regeneration_preserves_booking_outside_new_hours(
    db, redis, service, working_week, target_date, make_slots, make_booking
):
    booked, stale = make_slots(service.id, target_date, [("09:00", "09:30"), ("09:30", "10:00")])
    make_booking([booked])

    result = regenerate_for_date(db, service.id, target_date, redis=redis)

    assert result.preserved == 1
    assert result.removed == 1
    assert result.created == 9
    starts = stored_starts(db, service.id, target_date)
    assert starts[0] == "09:00"
    assert "09:30" not in starts
    assert starts[1:] == [
        "10:00", "10:30", "11:00", "11:30", "12:00", "12:30", "13:00", "13:30", "14:00",
    ]


def test_regeneration_is_idempotent(db, service, working_week, target_date):
    regenerate_for_date(db, service.id, target_date)
    again = regenerate_for_date(db, service.id, target_date)

    assert (again.created, again.removed, again.preserved) == (0, 0, 0)
    assert len(stored_starts(db, service.id, target_date)) == 9


def test_claimed_slot_without_booking_is_kept(db, service, target_date, make_slots):
    slot, = make_slots(service.id, target_date, [("08:00", "08:30")])
    SlotStore(db).claim(slot.id)

    # No working hours: the day is closed, every free slot would go
    result = regenerate_for_date(db, service.id, target_date)

    assert result.preserved == 1
    assert stored_starts(db, service.id, target_date) == ["08:00"]


def test_holiday_removes_free_slots(db, service, working_week, target_date):
    regenerate_for_date(db, service.id, target_date)
    db.add(DaySpecificHours(date=target_date.isoformat(), is_holiday=1))
    db.commit()

    result = regenerate_for_date(db, service.id, target_date)

    assert result.removed == 9
    assert stored_starts(db, service.id, target_date) == []


def test_regeneration_invalidates_cached_stats(db, redis, service, working_week, target_date):
    key = f"stats:day:{service.id}:{target_date.isoformat()}"
    redis.set(key, "{}")

    regenerate_for_date(db, service.id, target_date, redis=redis)

    assert redis.get(key) is None


def test_unknown_service(db, target_date):
    with pytest.raises(NotFound):
        regenerate_for_date(db, 999, target_date)


# ── bulk ─────────────────────────────────────────────────────────────────


def test_bulk_covers_inclusive_range(db, service, working_week, target_date):
    end = target_date + timedelta(days=2)

    bulk = regenerate_bulk(db, service.id, end, target_date)

    assert bulk.start_date == target_date
    assert bulk.end_date == end
    assert [d.date for d in bulk.days] == [target_date + timedelta(days=i) for i in range(3)]
    assert bulk.created == 27
    assert bulk.partial_failure is None


def test_bulk_continues_after_failed_date(db, service, working_week, target_date, monkeypatch):
    bad_day = target_date + timedelta(days=1)
    real = regeneration.regenerate_for_date

    def flaky(db, service_id, target, config=None, redis=None):
        if target == bad_day:
            raise RuntimeError("disk full")
        return real(db, service_id, target, config, redis)

    monkeypatch.setattr(regeneration, "regenerate_for_date", flaky)

    bulk = regenerate_bulk(db, service.id, target_date, target_date + timedelta(days=2))

    assert len(bulk.days) == 2
    assert bulk.failures == {bad_day: "disk full"}
    failure = bulk.partial_failure
    assert failure.to_dict()["failures"] == {bad_day.isoformat(): "disk full"}


def test_all_services_skips_inactive(db, service, working_week, target_date):
    from wakala.models import BookingServices

    inactive = BookingServices(name_en="Archived", is_active=0)
    db.add(inactive)
    db.commit()

    results = regenerate_all_services(db, target_date, target_date)

    assert [r.service_id for r in results] == [service.id]


def test_interval_change_rebuilds_grid(db, service, working_week, target_date):
    regenerate_for_date(db, service.id, target_date)
    row = db.query(WorkingHoursConfig).filter(
        WorkingHoursConfig.day_of_week == target_date.isoweekday()
    ).one()
    row.slot_interval_minutes = 60
    row.last_appointment_time = "13:00"
    db.commit()

    result = regenerate_for_date(db, service.id, target_date)

    assert result.removed == 9
    assert stored_starts(db, service.id, target_date) == ["10:00", "11:00", "12:00", "13:00"]


def test_slot_claimed_during_regeneration_blocks_colliding_creates(
    db, service, working_week, target_date, monkeypatch
):
    regenerate_for_date(db, service.id, target_date)
    first = SlotStore(db).list_for_date(service.id, target_date)[0]
    row = db.query(WorkingHoursConfig).filter(
        WorkingHoursConfig.day_of_week == target_date.isoweekday()
    ).one()
    row.slot_interval_minutes = 60
    row.last_appointment_time = "13:00"
    db.commit()

    real_delete = SlotStore.delete_if_free

    def delete_losing_race(self, slot_id):
        # 10:00 gets claimed between the read and the delete
        if slot_id == first.id:
            return False
        return real_delete(self, slot_id)

    monkeypatch.setattr(SlotStore, "delete_if_free", delete_losing_race)

    result = regenerate_for_date(db, service.id, target_date)

    assert result.preserved == 1
    assert result.removed == 8
    assert result.created == 3
    assert stored_starts(db, service.id, target_date) == ["10:00", "11:00", "12:00", "13:00"]
    kept = SlotStore(db).get(first.id)
    assert (kept.start_time, kept.end_time) == ("10:00", "10:30")
