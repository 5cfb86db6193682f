"""
Availability aggregation (read side).

Per-date stats for calendar rendering, and the member-facing list of
bookable start times for a 30/60-minute booking.

Never writes domain state. The optional Redis cache is filled on miss
and emptied by invalidator.py on every mutation.
"""

import json
import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime
from redis import Redis, RedisError
from sqlalchemy.orm import Session

from ...models.generated import (
    AvailabilitySlots,
    BlockedDates,
    DaySpecificHours,
    WakalaApplications,
)
from .config import BookingConfig, date_range, get_booking_config, slot_start_datetime
from .errors import InvalidSelection
from .redis_store import StatsRedisStore
from .reservation import SLOTS_PER_DURATION
from .store import CANCELLED, SlotStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvailabilityStat:
    date: date
    total_slots: int
    available_slots: int
    booked_slots: int
    blocked_slots: int
    is_holiday: bool = False
    is_blocked: bool = False
    holiday_reason_en: str | None = None
    holiday_reason_ar: str | None = None
    blocked_reason_en: str | None = None
    blocked_reason_ar: str | None = None

    def to_cache(self) -> dict:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data

    @classmethod
    def from_cache(cls, data: dict) -> "AvailabilityStat":
        return cls(**{**data, "date": date.fromisoformat(data["date"])})


@dataclass(frozen=True)
class BookableStart:
    slot_id: int
    start_time: str
    end_time: str
    slot_ids: tuple[int, ...]


def calculate_availability_stats(
    db: Session,
    service_id: int,
    start_date: date,
    end_date: date,
    config: BookingConfig | None = None,
    redis: Redis | None = None,
) -> list[AvailabilityStat]:
    """Stats for every date in [start_date, end_date], in date order."""
    config = config or get_booking_config()
    dates = date_range(start_date, end_date)

    cached: dict[date, dict | None] = {}
    store = StatsRedisStore(redis, config) if redis is not None else None
    if store is not None:
        try:
            cached = store.mget_stats(service_id, dates)
        except (RedisError, json.JSONDecodeError) as e:
            logger.warning(f"Stats cache read failed, computing from database: {e}")
            cached = {}

    missing = [dt for dt in dates if cached.get(dt) is None]
    computed = _compute_stats(db, service_id, missing) if missing else {}

    if store is not None and computed:
        try:
            store.store_multiple_days(
                service_id, {dt: stat.to_cache() for dt, stat in computed.items()}
            )
        except RedisError as e:
            logger.warning(f"Stats cache write failed: {e}")

    return [
        computed[dt] if dt in computed else AvailabilityStat.from_cache(cached[dt])
        for dt in dates
    ]


def _compute_stats(db: Session, service_id: int, dates: list[date]) -> dict[date, AvailabilityStat]:
    first, last = min(dates).isoformat(), max(dates).isoformat()

    slots = (
        db.query(AvailabilitySlots)
        .filter(
            AvailabilitySlots.service_id == service_id,
            AvailabilitySlots.date >= first,
            AvailabilitySlots.date <= last,
        )
        .all()
    )
    booked_ids = _booked_slot_ids(db, service_id, first, last)
    holidays = {
        row.date: row
        for row in db.query(DaySpecificHours).filter(
            DaySpecificHours.date >= first,
            DaySpecificHours.date <= last,
            DaySpecificHours.is_holiday == 1,
        )
    }
    blocked_dates = {
        row.date: row
        for row in db.query(BlockedDates).filter(
            BlockedDates.date >= first,
            BlockedDates.date <= last,
        )
    }

    by_date: dict[str, list[AvailabilitySlots]] = {}
    for slot in slots:
        by_date.setdefault(slot.date, []).append(slot)

    result = {}
    for dt in dates:
        key = dt.isoformat()
        day_slots = by_date.get(key, [])
        holiday = holidays.get(key)
        blocked = blocked_dates.get(key)

        available = sum(
            1 for s in day_slots if s.is_available and not s.is_blocked_by_admin
        )
        result[dt] = AvailabilityStat(
            date=dt,
            total_slots=len(day_slots),
            # A blocked date offers nothing, whatever its slots say
            available_slots=0 if blocked else available,
            booked_slots=sum(1 for s in day_slots if s.id in booked_ids),
            blocked_slots=sum(1 for s in day_slots if s.is_blocked_by_admin),
            is_holiday=holiday is not None,
            is_blocked=blocked is not None,
            holiday_reason_en=holiday.holiday_reason_en if holiday else None,
            holiday_reason_ar=holiday.holiday_reason_ar if holiday else None,
            blocked_reason_en=blocked.reason_en if blocked else None,
            blocked_reason_ar=blocked.reason_ar if blocked else None,
        )
    return result


def _booked_slot_ids(db: Session, service_id: int, first: str, last: str) -> set[int]:
    rows = (
        db.query(WakalaApplications.slot_id, WakalaApplications.second_slot_id)
        .filter(
            WakalaApplications.service_id == service_id,
            WakalaApplications.booking_date >= first,
            WakalaApplications.booking_date <= last,
            WakalaApplications.status != CANCELLED,
        )
        .all()
    )
    return {sid for row in rows for sid in row if sid is not None}


def list_bookable_starts(
    db: Session,
    service_id: int,
    target_date: date,
    duration_minutes: int,
    now: datetime | None = None,
    config: BookingConfig | None = None,
) -> list[BookableStart]:
    """
    Start times a member can pick for a booking of duration_minutes.

    30 → every bookable slot; 60 → every bookable slot whose adjacent
    successor is bookable too (end = successor's end).
    """
    config = config or get_booking_config()
    if duration_minutes not in config.supported_durations:
        raise InvalidSelection(
            f"Unsupported duration: {duration_minutes} minutes", target_date=target_date
        )

    is_blocked = db.query(BlockedDates.id).filter(
        BlockedDates.date == target_date.isoformat()
    ).first() is not None
    if is_blocked:
        return []

    slots = SlotStore(db).list_for_date(service_id, target_date)

    def bookable(slot: AvailabilitySlots) -> bool:
        if not slot.is_available or slot.is_blocked_by_admin:
            return False
        return now is None or slot_start_datetime(target_date, slot.start_time) >= now

    starts: list[BookableStart] = []
    if SLOTS_PER_DURATION[duration_minutes] == 1:
        for slot in slots:
            if bookable(slot):
                starts.append(BookableStart(slot.id, slot.start_time, slot.end_time, (slot.id,)))
        return starts

    for current, following in zip(slots, slots[1:]):
        if (
            bookable(current)
            and bookable(following)
            and current.end_time == following.start_time
        ):
            starts.append(BookableStart(
                current.id, current.start_time, following.end_time, (current.id, following.id)
            ))
    return starts
