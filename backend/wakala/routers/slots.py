# backend/wakala/routers/slots.py
"""
Slots API endpoints.

Hours/grid:    GET /slots/hours, GET /slots/preview
Day detail:    GET /slots/day (staff view, or bookable starts for a duration)
Primitives:    POST /slots/{id}/claim|release|block|unblock
Reservations:  POST /slots/reserve, POST /slots/release
Maintenance:   POST /slots/regenerate
Calendar:      GET /slots/stats
"""

from datetime import date, datetime, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import BookingServices, WakalaApplications
from ..redis_client import get_redis
from ..schemas.slots import (
    AvailabilityStatRead,
    AvailabilityStatsResponse,
    BookableStartRead,
    BreakInterval,
    EffectiveHoursResponse,
    RegenerateRequest,
    RegenerateResponse,
    RegenerationDay,
    RegenerationServiceResult,
    ReservationResponse,
    ReserveRequest,
    SlotPreview,
    SlotRead,
    SlotsDayResponse,
    SlotsPreviewResponse,
)
from ..services.slots import (
    ClosedDay,
    NotFound,
    ReservationCoordinator,
    SlotStore,
    calculate_availability_stats,
    calculate_day_slots,
    get_booking_config,
    invalidate_stats_cache,
    list_bookable_starts,
    regenerate_all_services,
    regenerate_bulk,
    resolve_day,
)
from ..services.booking_records import CANCELLED


router = APIRouter(prefix="/slots", tags=["slots"])


def _require_service(db: Session, service_id: int) -> None:
    if db.get(BookingServices, service_id) is None:
        raise NotFound(f"Service {service_id} not found")


# ── Hours / grid ─────────────────────────────────────────────────────────


@router.get("/hours", response_model=EffectiveHoursResponse)
def get_effective_hours(
    target_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    """Effective working window for a date after overrides."""
    resolution = resolve_day(db, target_date)
    hours = resolution.hours

    return EffectiveHoursResponse(
        date=target_date,
        is_open=resolution.is_open,
        source=resolution.source,
        is_holiday=resolution.is_holiday,
        reason_en=resolution.reason_en,
        reason_ar=resolution.reason_ar,
        start_time=hours.start_time if hours else None,
        end_time=hours.end_time if hours else None,
        last_appointment_time=hours.last_appointment_time if hours else None,
        slot_interval_minutes=hours.slot_interval_minutes if hours else None,
        breaks=[BreakInterval(start=s, end=e) for s, e in hours.breaks] if hours else [],
    )


@router.get("/preview", response_model=SlotsPreviewResponse)
def preview_slots(
    service_id: int,
    target_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    """Slots the current schedule would generate for a date (nothing is stored)."""
    _require_service(db, service_id)
    resolution = resolve_day(db, target_date)
    if not resolution.is_open:
        reason = resolution.reason_en or "no working hours"
        raise ClosedDay(f"{target_date} is closed: {reason}", target_date=target_date)

    specs = calculate_day_slots(service_id, target_date, resolution.hours)
    return SlotsPreviewResponse(
        service_id=service_id,
        date=target_date,
        slots=[SlotPreview(start_time=s.start_time, end_time=s.end_time) for s in specs],
    )


# ── Day detail ───────────────────────────────────────────────────────────


@router.get("/day", response_model=SlotsDayResponse)
def get_slots_day(
    service_id: int,
    target_date: date = Query(..., alias="date"),
    duration: int | None = None,
    db: Session = Depends(get_db),
):
    """
    All slots of a day with their booking, and, when `duration` is given,
    the start times a member can book for that duration.
    """
    _require_service(db, service_id)
    config = get_booking_config()

    bookable = []
    if duration is not None:
        today = date.today()
        if target_date < today:
            raise HTTPException(status_code=400, detail="Date cannot be in the past")
        if target_date > today + timedelta(days=config.max_days_ahead):
            raise HTTPException(
                status_code=400,
                detail=f"Date cannot be more than {config.max_days_ahead} days ahead",
            )
        starts = list_bookable_starts(
            db, service_id, target_date, duration, now=datetime.now(), config=config
        )
        bookable = [
            BookableStartRead(
                slot_id=s.slot_id,
                start_time=s.start_time,
                end_time=s.end_time,
                slot_ids=list(s.slot_ids),
            )
            for s in starts
        ]

    booking_by_slot = {}
    for booking in (
        db.query(WakalaApplications)
        .filter(
            WakalaApplications.service_id == service_id,
            WakalaApplications.booking_date == target_date.isoformat(),
            WakalaApplications.status != CANCELLED,
        )
    ):
        for slot_id in (booking.slot_id, booking.second_slot_id):
            if slot_id is not None:
                booking_by_slot[slot_id] = booking.id

    slots = [
        SlotRead(
            id=slot.id,
            service_id=slot.service_id,
            date=slot.date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            is_available=bool(slot.is_available),
            is_blocked_by_admin=bool(slot.is_blocked_by_admin),
            booking_id=booking_by_slot.get(slot.id),
        )
        for slot in SlotStore(db).list_for_date(service_id, target_date)
    ]

    return SlotsDayResponse(
        service_id=service_id,
        date=target_date,
        slots=slots,
        duration_minutes=duration,
        bookable=bookable,
    )


# ── Primitives ───────────────────────────────────────────────────────────


@router.post("/{slot_id}/claim", response_model=ReservationResponse)
def claim_slot(
    slot_id: int,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    store = SlotStore(db)
    result = store.claim(slot_id).raise_for_error()
    slot = store.get(slot_id)
    invalidate_stats_cache(redis, slot.service_id, [date.fromisoformat(slot.date)])
    return ReservationResponse(success=True, slot_ids=result.slot_ids)


@router.post("/{slot_id}/release", response_model=ReservationResponse)
def release_slot(
    slot_id: int,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    store = SlotStore(db)
    released = store.release(slot_id)
    if released:
        slot = store.get(slot_id)
        invalidate_stats_cache(redis, slot.service_id, [date.fromisoformat(slot.date)])
    return ReservationResponse(success=True, slot_ids=[slot_id] if released else [])


def _set_blocked(slot_id: int, blocked: bool, db: Session, redis: Redis) -> SlotRead:
    slot = SlotStore(db).set_blocked(slot_id, blocked)
    invalidate_stats_cache(redis, slot.service_id, [date.fromisoformat(slot.date)])
    return SlotRead(
        id=slot.id,
        service_id=slot.service_id,
        date=slot.date,
        start_time=slot.start_time,
        end_time=slot.end_time,
        is_available=bool(slot.is_available),
        is_blocked_by_admin=bool(slot.is_blocked_by_admin),
    )


@router.post("/{slot_id}/block", response_model=SlotRead)
def block_slot(
    slot_id: int,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    return _set_blocked(slot_id, True, db, redis)


@router.post("/{slot_id}/unblock", response_model=SlotRead)
def unblock_slot(
    slot_id: int,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    return _set_blocked(slot_id, False, db, redis)


# ── Reservations ─────────────────────────────────────────────────────────


@router.post("/reserve", response_model=ReservationResponse)
def reserve_slots(
    data: ReserveRequest,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """Claim one (30 min) or two adjacent (60 min) slots."""
    coordinator = ReservationCoordinator(db, redis)
    result = coordinator.reserve(
        data.service_id, data.date, data.slot_id, data.duration_minutes, now=datetime.now()
    ).raise_for_error()
    return ReservationResponse(success=True, slot_ids=result.slot_ids)


@router.post("/release", response_model=ReservationResponse)
def release_reservation(
    data: ReserveRequest,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    coordinator = ReservationCoordinator(db, redis)
    result = coordinator.release(
        data.service_id, data.date, data.slot_id, data.duration_minutes
    ).raise_for_error()
    return ReservationResponse(success=True, slot_ids=result.slot_ids)


# ── Maintenance ──────────────────────────────────────────────────────────


@router.post("/regenerate", response_model=RegenerateResponse)
def regenerate_slots(
    data: RegenerateRequest,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """
    Reconcile stored slots with current hours. Booked slots are never touched.

    Dates that fail are listed per service; the rest of the range still runs.
    """
    end_date = data.end_date or data.start_date
    config = get_booking_config()

    if data.service_id is not None:
        results = [regenerate_bulk(db, data.service_id, data.start_date, end_date, config, redis)]
    else:
        results = regenerate_all_services(db, data.start_date, end_date, config, redis)

    services = [
        RegenerationServiceResult(
            service_id=bulk.service_id,
            created=bulk.created,
            preserved=bulk.preserved,
            removed=bulk.removed,
            days=[
                RegenerationDay(
                    date=day.date, created=day.created,
                    preserved=day.preserved, removed=day.removed,
                )
                for day in bulk.days
            ],
            failed_dates={d.isoformat(): msg for d, msg in sorted(bulk.failures.items())},
        )
        for bulk in results
    ]

    return RegenerateResponse(
        start_date=min(data.start_date, end_date),
        end_date=max(data.start_date, end_date),
        created=sum(s.created for s in services),
        preserved=sum(s.preserved for s in services),
        removed=sum(s.removed for s in services),
        partial_failure=any(s.failed_dates for s in services),
        services=services,
    )


# ── Calendar ─────────────────────────────────────────────────────────────


@router.get("/stats", response_model=AvailabilityStatsResponse)
def get_availability_stats(
    service_id: int,
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """Per-date slot counts for calendar rendering."""
    _require_service(db, service_id)
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    if (end_date - start_date).days > 366:
        raise HTTPException(status_code=400, detail="Range cannot exceed one year")

    stats = calculate_availability_stats(db, service_id, start_date, end_date, redis=redis)

    return AvailabilityStatsResponse(
        service_id=service_id,
        start_date=start_date,
        end_date=end_date,
        days=[AvailabilityStatRead.model_validate(stat) for stat in stats],
    )
