"""
Working hours resolution.

Effective hours for a date =
  day_specific_hours[date]            (if present; holiday → closed)
  else working_hours_config[weekday]  (if present and active)
  else closed.

A date with no configuration at all is closed, never open.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date
from sqlalchemy.orm import Session

from .config import (
    BookingConfig,
    get_booking_config,
    iso_weekday,
    minutes_to_time_str,
    normalize_time,
    time_str_to_minutes,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EffectiveHours:
    start_time: str
    end_time: str
    last_appointment_time: str
    slot_interval_minutes: int
    breaks: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class DayResolution:
    """Resolver output: `hours` is None when the date is closed."""
    date: date
    hours: EffectiveHours | None
    source: str  # "day_specific" / "weekday" / "none"
    is_holiday: bool = False
    reason_en: str | None = None
    reason_ar: str | None = None

    @property
    def is_open(self) -> bool:
        return self.hours is not None


def resolve_day(
    db: Session,
    target_date: date,
    config: BookingConfig | None = None,
) -> DayResolution:
    """Resolve the working window in force on target_date."""
    config = config or get_booking_config()

    weekday_cfg = _get_weekday_config(db, iso_weekday(target_date))
    specific = _get_day_specific(db, target_date)

    if specific is not None:
        if specific.is_holiday:
            return DayResolution(
                date=target_date,
                hours=None,
                source="day_specific",
                is_holiday=True,
                reason_en=specific.holiday_reason_en,
                reason_ar=specific.holiday_reason_ar,
            )
        if not specific.start_time or not specific.end_time:
            logger.warning(
                f"day_specific_hours for {target_date} has no start/end, treating as closed"
            )
            return DayResolution(date=target_date, hours=None, source="day_specific")

        interval = specific.slot_interval_minutes
        if not interval:
            interval = (
                weekday_cfg.slot_interval_minutes
                if weekday_cfg is not None
                else config.default_slot_interval_minutes
            )
        end_min = time_str_to_minutes(specific.end_time)
        last = specific.last_appointment_time or minutes_to_time_str(end_min - interval)

        hours = EffectiveHours(
            start_time=normalize_time(specific.start_time),
            end_time=normalize_time(specific.end_time),
            last_appointment_time=normalize_time(last),
            slot_interval_minutes=interval,
            breaks=parse_break_times(specific.break_times),
        )
        return DayResolution(date=target_date, hours=hours, source="day_specific")

    if weekday_cfg is None:
        return DayResolution(date=target_date, hours=None, source="none")

    if not weekday_cfg.is_active:
        return DayResolution(date=target_date, hours=None, source="weekday")

    hours = EffectiveHours(
        start_time=normalize_time(weekday_cfg.start_time),
        end_time=normalize_time(weekday_cfg.end_time),
        last_appointment_time=normalize_time(weekday_cfg.last_appointment_time),
        slot_interval_minutes=weekday_cfg.slot_interval_minutes,
    )
    return DayResolution(date=target_date, hours=hours, source="weekday")


def resolve_hours(
    db: Session,
    target_date: date,
    config: BookingConfig | None = None,
) -> EffectiveHours | None:
    """Effective hours for target_date, or None when closed."""
    return resolve_day(db, target_date, config).hours


def parse_break_times(raw) -> tuple[tuple[str, str], ...]:
    """
    Parse stored break_times into sorted (start, end) pairs.

    Accepts a JSON string or an already decoded list of
    {"start": .., "end": ..} dicts / [start, end] pairs.
    Empty or inverted intervals are dropped.
    """
    if raw is None:
        return ()
    if isinstance(raw, str):
        try:
            raw = json.loads(raw) if raw.strip() else []
        except json.JSONDecodeError:
            logger.warning(f"Unparseable break_times: {raw!r}")
            return ()

    breaks: list[tuple[str, str]] = []
    for item in raw:
        if isinstance(item, dict):
            start, end = item.get("start"), item.get("end")
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            start, end = item
        else:
            continue
        if not start or not end:
            continue
        start, end = normalize_time(start), normalize_time(end)
        if time_str_to_minutes(start) < time_str_to_minutes(end):
            breaks.append((start, end))

    return tuple(sorted(breaks))


# ── Database helpers ─────────────────────────────────────────────────────


def _get_weekday_config(db: Session, day_of_week: int):
    from ...models.generated import WorkingHoursConfig
    return db.query(WorkingHoursConfig).filter(
        WorkingHoursConfig.day_of_week == day_of_week
    ).first()


def _get_day_specific(db: Session, target_date: date):
    from ...models.generated import DaySpecificHours
    return db.query(DaySpecificHours).filter(
        DaySpecificHours.date == target_date.isoformat()
    ).first()
