"""Working hours resolution."""
import json

from wakala.models import DaySpecificHours, WorkingHoursConfig
from wakala.services.slots import resolve_day, resolve_hours
from wakala.services.slots.hours import parse_break_times


def add_override(db, target_date, **fields):
    obj = DaySpecificHours(date=target_date.isoformat(), **fields)
    db.add(obj)
    db.commit()
    return obj


def test_weekday_config_applies(db, working_week, target_date):
    resolution = resolve_day(db, target_date)

    assert resolution.is_open
    assert resolution.source == "weekday"
    assert resolution.hours.start_time == "10:00"
    assert resolution.hours.last_appointment_time == "14:00"
    assert resolution.hours.breaks == ()


def test_no_configuration_means_closed(db, target_date):
    resolution = resolve_day(db, target_date)

    assert not resolution.is_open
    assert resolution.source == "none"


def test_inactive_weekday_is_closed(db, working_week, target_date):
    row = db.query(WorkingHoursConfig).filter(
        WorkingHoursConfig.day_of_week == target_date.isoweekday()
    ).one()
    row.is_active = 0
    db.commit()

    assert resolve_hours(db, target_date) is None


def test_holiday_override_closes_the_day(db, working_week, target_date):
    add_override(
        db, target_date, is_holiday=1,
        holiday_reason_en="National day", holiday_reason_ar="اليوم الوطني",
    )

    resolution = resolve_day(db, target_date)

    assert not resolution.is_open
    assert resolution.is_holiday
    assert resolution.reason_en == "National day"


def test_override_replaces_weekday_hours_and_inherits_interval(db, working_week, target_date):
    add_override(
        db, target_date,
        start_time="08:00", end_time="12:00",
        break_times=json.dumps([{"start": "10:00", "end": "10:30"}]),
    )

    hours = resolve_hours(db, target_date)

    assert hours.start_time == "08:00"
    assert hours.end_time == "12:00"
    assert hours.slot_interval_minutes == 30
    # No last start given: end minus one interval
    assert hours.last_appointment_time == "11:30"
    assert hours.breaks == (("10:00", "10:30"),)


def test_override_without_window_is_closed(db, working_week, target_date):
    add_override(db, target_date, start_time="09:00")

    assert resolve_hours(db, target_date) is None


def test_override_without_weekday_uses_default_interval(db, target_date):
    add_override(db, target_date, start_time="09:00", end_time="10:00")

    hours = resolve_hours(db, target_date)

    assert hours.slot_interval_minutes == 30
    assert hours.last_appointment_time == "09:30"


def test_parse_break_times_variants():
    assert parse_break_times(None) == ()
    assert parse_break_times("") == ()
    assert parse_break_times("not json") == ()
    assert parse_break_times([["13:00", "13:30"], {"start": "9:00", "end": "09:15"}]) == (
        ("09:00", "09:15"),
        ("13:00", "13:30"),
    )
    # Inverted interval dropped
    assert parse_break_times([{"start": "12:00", "end": "11:00"}]) == ()
