# backend/wakala/services/booking_records.py
"""
Booking record store (wakala_applications).

The slot engine only needs three things from bookings: which slots a
booking holds, creating a record after a successful reservation, and
flipping its status.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models.generated import WakalaApplications as DBApplication

logger = logging.getLogger(__name__)

STATUSES = ("submitted", "in_progress", "completed", "cancelled", "no_show", "incomplete")
CANCELLED = "cancelled"


@dataclass(frozen=True)
class BookingRef:
    id: int
    service_id: int
    date: date
    slot_ids: tuple[int, ...]
    duration_minutes: int
    status: str

    @property
    def is_active(self) -> bool:
        return self.status != CANCELLED


def _to_ref(obj: DBApplication) -> BookingRef:
    slot_ids = tuple(sid for sid in (obj.slot_id, obj.second_slot_id) if sid is not None)
    return BookingRef(
        id=obj.id,
        service_id=obj.service_id,
        date=date.fromisoformat(obj.booking_date),
        slot_ids=slot_ids,
        duration_minutes=obj.duration_minutes,
        status=obj.status,
    )


class BookingRecords:
    def __init__(self, db: Session):
        self.db = db

    def get_booking(self, booking_id: int) -> Optional[BookingRef]:
        obj = self.db.get(DBApplication, booking_id)
        return _to_ref(obj) if obj else None

    def create(
        self,
        service_id: int,
        booking_date: date,
        slots: list,
        duration_minutes: int,
        full_name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        member_id: Optional[str] = None,
        service_type: Optional[str] = None,
    ) -> DBApplication:
        """Insert a booking for already-claimed slots (ordered by time)."""
        obj = DBApplication(
            service_id=service_id,
            booking_date=booking_date.isoformat(),
            start_time=slots[0].start_time,
            end_time=slots[-1].end_time,
            duration_minutes=duration_minutes,
            slot_id=slots[0].id,
            second_slot_id=slots[1].id if len(slots) > 1 else None,
            full_name=full_name,
            email=email,
            phone=phone,
            member_id=member_id,
            service_type=service_type,
            status="submitted",
        )
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        logger.info(f"Booking {obj.id} recorded for slots {[s.id for s in slots]}")
        return obj

    def set_status(
        self,
        booking_id: int,
        status: str,
        cancelled_by_user: bool = False,
    ) -> DBApplication:
        """Write a status. Safe to repeat with the same arguments."""
        if status not in STATUSES:
            raise ValueError(f"Unknown booking status: {status}")

        obj = self.db.get(DBApplication, booking_id)
        if obj is None:
            raise LookupError(f"Booking {booking_id} not found")

        now = datetime.now().isoformat(timespec="seconds")
        obj.status = status
        obj.updated_at = now
        if status == CANCELLED and obj.cancelled_at is None:
            obj.cancelled_at = now
            obj.cancelled_by_user = 1 if cancelled_by_user else 0
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def assign(self, booking_id: int, admin_id: Optional[str]) -> DBApplication:
        """Hand a booking to a staff member (None clears the assignment)."""
        obj = self.db.get(DBApplication, booking_id)
        if obj is None:
            raise LookupError(f"Booking {booking_id} not found")

        obj.assigned_admin_id = admin_id
        obj.updated_at = datetime.now().isoformat(timespec="seconds")
        self.db.commit()
        self.db.refresh(obj)
        logger.info(f"Booking {booking_id} assigned to {admin_id}")
        return obj

    def active_booking_ids(self, slot_id: int) -> set[int]:
        """Ids of active bookings referencing slot_id."""
        rows = (
            self.db.query(DBApplication.id)
            .filter(
                or_(DBApplication.slot_id == slot_id, DBApplication.second_slot_id == slot_id),
                DBApplication.status != CANCELLED,
            )
            .all()
        )
        return {row.id for row in rows}

    def held_by_other_booking(self, slot_id: int, booking_id: int) -> bool:
        """True if another active booking references slot_id."""
        return (
            self.db.query(DBApplication.id)
            .filter(
                or_(DBApplication.slot_id == slot_id, DBApplication.second_slot_id == slot_id),
                DBApplication.id != booking_id,
                DBApplication.status != CANCELLED,
            )
            .first()
            is not None
        )
