# backend/wakala/routers/bookings.py
# PATCH = 405 (use /status or /cancel), DELETE = 405 (bookings are cancelled, never deleted)

from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import WakalaApplications as DBBookings
from ..redis_client import get_redis
from ..schemas.bookings import (
    BookingAssign,
    BookingCancel,
    BookingCreate,
    BookingRead,
    BookingStatusUpdate,
)
from ..services.slots import ReservationCoordinator

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("/", response_model=list[BookingRead])
def list_bookings(
    service_id: int | None = None,
    booking_date: str | None = None,
    db: Session = Depends(get_db),
):
    query = db.query(DBBookings)
    if service_id is not None:
        query = query.filter(DBBookings.service_id == service_id)
    if booking_date is not None:
        query = query.filter(DBBookings.booking_date == booking_date)
    return query.order_by(DBBookings.booking_date, DBBookings.start_time).all()


@router.get("/{id}", response_model=BookingRead)
def get_booking(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBBookings, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """Reserve the slot(s) and record the booking in one call."""
    coordinator = ReservationCoordinator(db, redis)
    return coordinator.book(
        service_id=data.service_id,
        target_date=data.booking_date,
        start_slot_id=data.slot_id,
        duration_minutes=data.duration_minutes,
        full_name=data.full_name,
        now=datetime.now(),
        email=data.email,
        phone=data.phone,
        member_id=data.member_id,
        service_type=data.service_type,
    )


@router.post("/{id}/cancel", response_model=BookingRead)
def cancel_booking(
    id: int,
    data: BookingCancel | None = None,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    """Release the booking's slots and mark it cancelled. Safe to retry."""
    cancelled_by_user = data.cancelled_by_user if data else True
    coordinator = ReservationCoordinator(db, redis)
    return coordinator.cancel_booking(id, cancelled_by_user=cancelled_by_user)


@router.post("/{id}/status", response_model=BookingRead)
def update_booking_status(
    id: int,
    data: BookingStatusUpdate,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    coordinator = ReservationCoordinator(db, redis)
    return coordinator.set_status(id, data.status)


@router.post("/{id}/assign", response_model=BookingRead)
def assign_booking(
    id: int,
    data: BookingAssign,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    coordinator = ReservationCoordinator(db, redis)
    return coordinator.assign(id, data.assigned_admin_id)


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
