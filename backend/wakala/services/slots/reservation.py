"""
Reservation coordination.

30 minutes → one slot, 60 minutes → two time-adjacent slots.

The 60-minute path is two independent claims, not one transaction:
if the second claim fails the first is released before returning,
so a half-held pair is never visible after the call.
"""

import logging
from datetime import date, datetime
from redis import Redis
from sqlalchemy.orm import Session

from ...models.generated import BlockedDates, WakalaApplications
from ..booking_records import CANCELLED, STATUSES, BookingRecords
from ..events import emit_event
from .config import BookingConfig, get_booking_config, slot_start_datetime
from .errors import Blocked, InvalidSelection, NotFound, ReservationResult
from .invalidator import invalidate_stats_cache
from .store import SlotStore

logger = logging.getLogger(__name__)

SLOTS_PER_DURATION = {30: 1, 60: 2}


class ReservationCoordinator:
    def __init__(
        self,
        db: Session,
        redis: Redis | None = None,
        config: BookingConfig | None = None,
    ):
        self.db = db
        self.redis = redis
        self.config = config or get_booking_config()
        self.store = SlotStore(db)
        self.records = BookingRecords(db)

    # ── Reserve / release ────────────────────────────────────────────────

    def reserve(
        self,
        service_id: int,
        target_date: date,
        start_slot_id: int,
        duration_minutes: int,
        now: datetime | None = None,
    ) -> ReservationResult:
        """Claim the slot(s) for a booking of duration_minutes."""
        if duration_minutes not in self.config.supported_durations:
            return ReservationResult.fail(InvalidSelection(
                f"Unsupported duration: {duration_minutes} minutes",
                slot_id=start_slot_id, target_date=target_date,
            ))

        first = self.store.get(start_slot_id)
        if first is None:
            return ReservationResult.fail(NotFound(
                f"Slot {start_slot_id} not found",
                slot_id=start_slot_id, target_date=target_date,
            ))
        if first.service_id != service_id or first.date != target_date.isoformat():
            return ReservationResult.fail(InvalidSelection(
                f"Slot {start_slot_id} does not belong to service {service_id} on {target_date}",
                slot_id=start_slot_id, target_date=target_date,
            ))
        if self._is_date_blocked(target_date):
            return ReservationResult.fail(Blocked(
                f"{target_date} is blocked for bookings",
                slot_id=start_slot_id, target_date=target_date,
            ))
        if now is not None and slot_start_datetime(target_date, first.start_time) < now:
            return ReservationResult.fail(InvalidSelection(
                f"Slot {start_slot_id} is in the past",
                slot_id=start_slot_id, target_date=target_date,
            ))

        if SLOTS_PER_DURATION[duration_minutes] == 1:
            result = self.store.claim(first.id)
        else:
            second = self.store.next_slot(first)
            if second is None or second.start_time != first.end_time:
                return ReservationResult.fail(InvalidSelection(
                    f"Slot {start_slot_id} has no adjacent following slot",
                    slot_id=start_slot_id, target_date=target_date,
                ))
            result = self._claim_pair(first.id, second.id)

        if result.success:
            invalidate_stats_cache(self.redis, service_id, [target_date])
        return result

    def _claim_pair(self, first_id: int, second_id: int) -> ReservationResult:
        first_result = self.store.claim(first_id)
        if not first_result.success:
            return first_result

        compensate = True
        try:
            second_result = self.store.claim(second_id)
            if second_result.success:
                compensate = False
                return ReservationResult.ok([first_id, second_id])
            return second_result
        finally:
            if compensate:
                logger.warning(
                    f"Second slot {second_id} unavailable, releasing first slot {first_id}"
                )
                self.db.rollback()
                self.store.release(first_id)

    def release(
        self,
        service_id: int,
        target_date: date,
        start_slot_id: int,
        duration_minutes: int,
    ) -> ReservationResult:
        """
        Release the slot(s) of a reservation. Idempotent.

        Unknown or already-free slots are not an error. For 60 minutes the
        following slot is only released when no other active booking
        holds it.
        """
        if duration_minutes not in self.config.supported_durations:
            return ReservationResult.fail(InvalidSelection(
                f"Unsupported duration: {duration_minutes} minutes",
                slot_id=start_slot_id, target_date=target_date,
            ))

        released: list[int] = []
        first = self.store.get(start_slot_id)
        if first is None:
            logger.warning(f"Release requested for unknown slot {start_slot_id}")
            return ReservationResult.ok(released)
        if first.service_id != service_id or first.date != target_date.isoformat():
            return ReservationResult.fail(InvalidSelection(
                f"Slot {start_slot_id} does not belong to service {service_id} on {target_date}",
                slot_id=start_slot_id, target_date=target_date,
            ))

        slot_ids = [first.id]
        if SLOTS_PER_DURATION[duration_minutes] == 2:
            second = self.store.next_slot(first)
            if second is None or second.start_time != first.end_time:
                logger.warning(f"No adjacent slot after {first.id} to release")
            elif self.records.active_booking_ids(second.id) - self.records.active_booking_ids(first.id):
                logger.warning(
                    f"Slot {second.id} is held by another booking, not releasing with {first.id}"
                )
            else:
                slot_ids.append(second.id)

        for slot_id in slot_ids:
            if self.store.release(slot_id):
                released.append(slot_id)

        invalidate_stats_cache(self.redis, service_id, [target_date])
        return ReservationResult.ok(released)

    # ── Booking lifecycle ────────────────────────────────────────────────

    def book(
        self,
        service_id: int,
        target_date: date,
        start_slot_id: int,
        duration_minutes: int,
        full_name: str,
        now: datetime | None = None,
        **contact,
    ) -> WakalaApplications:
        """
        Reserve slots and record the booking.

        If recording fails the slots are released again before the
        error propagates.
        """
        result = self.reserve(
            service_id, target_date, start_slot_id, duration_minutes, now=now
        ).raise_for_error()

        slots = [self.store.get(slot_id) for slot_id in result.slot_ids]
        try:
            booking = self.records.create(
                service_id=service_id,
                booking_date=target_date,
                slots=slots,
                duration_minutes=duration_minutes,
                full_name=full_name,
                **contact,
            )
        except Exception:
            logger.exception(f"Recording booking failed, releasing slots {result.slot_ids}")
            self.db.rollback()
            for slot_id in result.slot_ids:
                self.store.release(slot_id)
            invalidate_stats_cache(self.redis, service_id, [target_date])
            raise

        # Booked counts change only once the record exists
        invalidate_stats_cache(self.redis, service_id, [target_date])
        emit_event(self.redis, "booking_created", {
            "booking_id": booking.id,
            "service_id": service_id,
            "date": target_date.isoformat(),
            "slot_ids": result.slot_ids,
        })
        return booking

    def cancel_booking(self, booking_id: int, cancelled_by_user: bool = False) -> WakalaApplications:
        """
        Release the booking's slots, then mark it cancelled.

        If the status update fails after the release, the error propagates:
        slots stay released and the booking keeps its old status until
        the call is retried. Retrying never frees a slot that another
        active booking has taken meanwhile.
        """
        booking = self.records.get_booking(booking_id)
        if booking is None:
            raise NotFound(f"Booking {booking_id} not found")

        if booking.status == CANCELLED:
            logger.info(f"Booking {booking_id} already cancelled")
            return self.db.get(WakalaApplications, booking_id)

        for slot_id in booking.slot_ids:
            if self.records.held_by_other_booking(slot_id, booking_id):
                logger.warning(
                    f"Slot {slot_id} now belongs to another booking, not releasing for {booking_id}"
                )
                continue
            self.store.release(slot_id)

        try:
            obj = self.records.set_status(
                booking_id, CANCELLED, cancelled_by_user=cancelled_by_user
            )
        finally:
            # Also after a failed status write: the slots are free either way
            invalidate_stats_cache(self.redis, booking.service_id, [booking.date])

        emit_event(self.redis, "booking_status_changed", {
            "booking_id": booking_id,
            "old_status": booking.status,
            "new_status": CANCELLED,
            "cancelled_by_user": cancelled_by_user,
        })
        return obj

    def set_status(self, booking_id: int, status: str) -> WakalaApplications:
        """Staff status transition; cancellation goes through cancel_booking."""
        if status not in STATUSES:
            raise InvalidSelection(f"Unknown booking status: {status}")

        booking = self.records.get_booking(booking_id)
        if booking is None:
            raise NotFound(f"Booking {booking_id} not found")

        if status == CANCELLED:
            return self.cancel_booking(booking_id)
        if booking.status == CANCELLED:
            raise InvalidSelection(
                f"Booking {booking_id} is cancelled; its slots may already be rebooked",
                target_date=booking.date,
            )

        obj = self.records.set_status(booking_id, status)
        if booking.status != status:
            emit_event(self.redis, "booking_status_changed", {
                "booking_id": booking_id,
                "old_status": booking.status,
                "new_status": status,
            })
        return obj

    def assign(self, booking_id: int, admin_id: str | None) -> WakalaApplications:
        """Set or clear the staff member handling a booking. Slots are untouched."""
        booking = self.records.get_booking(booking_id)
        if booking is None:
            raise NotFound(f"Booking {booking_id} not found")

        obj = self.records.assign(booking_id, admin_id)
        emit_event(self.redis, "booking_assigned", {
            "booking_id": booking_id,
            "assigned_admin_id": admin_id,
        })
        return obj

    # ── Helpers ──────────────────────────────────────────────────────────

    def _is_date_blocked(self, target_date: date) -> bool:
        return self.db.query(BlockedDates.id).filter(
            BlockedDates.date == target_date.isoformat()
        ).first() is not None
