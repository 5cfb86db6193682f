"""
Slot grid regeneration.

Reconciles the stored slots of a (service, date) with the grid its
current effective hours produce:

  ✓ desired, missing          → create (available, unblocked)
  ✓ stored, not desired, free → delete
  ✗ stored, booked            → never touched, counted as preserved

The decision is the pure diff_slots(); I/O lives in regenerate_for_date().
Safe to re-run: a second pass over unchanged hours is a no-op.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from redis import Redis
from sqlalchemy.orm import Session

from ...models.generated import BookingServices
from .calculator import SlotSpec, calculate_day_slots, intervals_overlap
from .config import BookingConfig, date_range, get_booking_config
from .errors import NotFound, PartialFailure
from .hours import resolve_hours
from .invalidator import invalidate_stats_cache
from .store import SlotStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExistingSlot:
    id: int
    start_time: str
    end_time: str
    is_booked: bool


@dataclass
class SlotDiff:
    creates: list[SlotSpec] = field(default_factory=list)
    deletes: list[int] = field(default_factory=list)
    preserved: list[int] = field(default_factory=list)


@dataclass
class RegenerationResult:
    date: date
    created: int = 0
    preserved: int = 0
    removed: int = 0


@dataclass
class BulkRegenerationResult:
    service_id: int | None
    start_date: date
    end_date: date
    created: int = 0
    preserved: int = 0
    removed: int = 0
    days: list[RegenerationResult] = field(default_factory=list)
    failures: dict[date, str] = field(default_factory=dict)

    @property
    def partial_failure(self) -> PartialFailure | None:
        return PartialFailure(self.failures) if self.failures else None

    def add(self, day: RegenerationResult) -> None:
        self.days.append(day)
        self.created += day.created
        self.preserved += day.preserved
        self.removed += day.removed


def diff_slots(existing: list[ExistingSlot], desired: list[SlotSpec]) -> SlotDiff:
    """
    Decide creates/deletes for one date.

    - Booked slots are preserved whether or not they fit the new grid.
    - Unbooked slots whose (start, end) is not desired are deleted.
    - Desired slots already stored are left alone; missing ones are
      created unless they overlap a preserved booked slot.
    """
    diff = SlotDiff()
    desired_keys = {spec.key for spec in desired}

    booked = [slot for slot in existing if slot.is_booked]
    diff.preserved = [slot.id for slot in booked]

    stored_keys = set()
    for slot in existing:
        key = (slot.start_time, slot.end_time)
        if slot.is_booked or key in desired_keys:
            stored_keys.add(key)
        else:
            diff.deletes.append(slot.id)

    for spec in desired:
        if spec.key in stored_keys:
            continue
        if any(
            intervals_overlap(spec.start_time, spec.end_time, slot.start_time, slot.end_time)
            for slot in booked
        ):
            continue
        diff.creates.append(spec)

    return diff


def regenerate_for_date(
    db: Session,
    service_id: int,
    target_date: date,
    config: BookingConfig | None = None,
    redis: Redis | None = None,
) -> RegenerationResult:
    """Reconcile one date's slots with its effective hours."""
    config = config or get_booking_config()
    _require_service(db, service_id)

    hours = resolve_hours(db, target_date, config)
    desired = calculate_day_slots(service_id, target_date, hours)

    store = SlotStore(db)
    booked_ids = store.booked_slot_ids(service_id, target_date)
    existing = [
        ExistingSlot(
            id=slot.id,
            start_time=slot.start_time,
            end_time=slot.end_time,
            # A claimed slot without a booking yet is an in-flight reservation
            is_booked=slot.id in booked_ids or not slot.is_available,
        )
        for slot in store.list_for_date(service_id, target_date)
    ]

    diff = diff_slots(existing, desired)
    result = RegenerationResult(date=target_date, preserved=len(diff.preserved))

    by_id = {slot.id: slot for slot in existing}
    creates = list(diff.creates)
    try:
        for slot_id in diff.deletes:
            if store.delete_if_free(slot_id):
                result.removed += 1
                continue
            # Claimed between the read and the delete: keep it, and drop
            # any new slot that would collide with it
            result.preserved += 1
            kept = by_id[slot_id]
            creates = [
                spec for spec in creates
                if not intervals_overlap(spec.start_time, spec.end_time, kept.start_time, kept.end_time)
            ]
        store.create_many(creates)
        db.commit()
    except Exception:
        db.rollback()
        raise
    result.created = len(creates)

    invalidate_stats_cache(redis, service_id, [target_date])
    logger.info(
        f"Regenerated service={service_id} date={target_date}: "
        f"created={result.created} preserved={result.preserved} removed={result.removed}"
    )
    return result


def regenerate_bulk(
    db: Session,
    service_id: int,
    start_date: date,
    end_date: date,
    config: BookingConfig | None = None,
    redis: Redis | None = None,
) -> BulkRegenerationResult:
    """
    Regenerate every date in [start_date, end_date].

    A failing date is recorded in `failures` and the loop moves on.
    """
    config = config or get_booking_config()
    _require_service(db, service_id)

    dates = date_range(start_date, end_date)
    bulk = BulkRegenerationResult(
        service_id=service_id, start_date=dates[0], end_date=dates[-1]
    )

    for dt in dates:
        try:
            bulk.add(regenerate_for_date(db, service_id, dt, config, redis))
        except Exception as e:
            logger.exception(f"Regeneration failed for service={service_id} date={dt}")
            db.rollback()
            bulk.failures[dt] = str(e)

    if bulk.failures:
        logger.warning(
            f"Bulk regeneration for service={service_id} finished with "
            f"{len(bulk.failures)} failed date(s)"
        )
    return bulk


def regenerate_all_services(
    db: Session,
    start_date: date,
    end_date: date,
    config: BookingConfig | None = None,
    redis: Redis | None = None,
) -> list[BulkRegenerationResult]:
    """Bulk-regenerate the range for every active service."""
    service_ids = [
        row.id for row in
        db.query(BookingServices.id)
        .filter(BookingServices.is_active == 1)
        .order_by(BookingServices.id)
        .all()
    ]
    return [
        regenerate_bulk(db, service_id, start_date, end_date, config, redis)
        for service_id in service_ids
    ]


def _require_service(db: Session, service_id: int) -> None:
    if db.get(BookingServices, service_id) is None:
        raise NotFound(f"Service {service_id} not found")
