"""
SQL storage for availability slots.

claim() and delete_if_free() are single conditional statements; the
database serializes concurrent writers on the row, so two callers can
never both observe a slot as free and take it. Never replace them with
a SELECT followed by an UPDATE.
"""

import logging
from datetime import date
from sqlalchemy import delete, exists, or_, select, update
from sqlalchemy.orm import Session

from ...models.generated import AvailabilitySlots, WakalaApplications
from .calculator import SlotSpec
from .errors import AlreadyClaimed, Blocked, NotFound, ReservationResult

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"


def active_booking_exists(slot_id_column):
    """EXISTS clause: an active (not cancelled) booking references the slot."""
    return exists().where(
        or_(
            WakalaApplications.slot_id == slot_id_column,
            WakalaApplications.second_slot_id == slot_id_column,
        ),
        WakalaApplications.status != CANCELLED,
    )


class SlotStore:
    """Slot table wrapper. Every write primitive commits on its own."""

    def __init__(self, db: Session):
        self.db = db

    # ── Read ─────────────────────────────────────────────────────────────

    def get(self, slot_id: int) -> AvailabilitySlots | None:
        return self.db.get(AvailabilitySlots, slot_id)

    def list_for_date(self, service_id: int, target_date: date) -> list[AvailabilitySlots]:
        """Slots of (service, date) ordered by start time."""
        return (
            self.db.query(AvailabilitySlots)
            .filter(
                AvailabilitySlots.service_id == service_id,
                AvailabilitySlots.date == target_date.isoformat(),
            )
            .order_by(AvailabilitySlots.start_time)
            .all()
        )

    def next_slot(self, slot: AvailabilitySlots) -> AvailabilitySlots | None:
        """The slot immediately after `slot` in time order (same service/date)."""
        return (
            self.db.query(AvailabilitySlots)
            .filter(
                AvailabilitySlots.service_id == slot.service_id,
                AvailabilitySlots.date == slot.date,
                AvailabilitySlots.start_time > slot.start_time,
            )
            .order_by(AvailabilitySlots.start_time)
            .first()
        )

    def booked_slot_ids(self, service_id: int, target_date: date) -> set[int]:
        """Ids of the date's slots referenced by an active booking."""
        rows = self.db.execute(
            select(AvailabilitySlots.id).where(
                AvailabilitySlots.service_id == service_id,
                AvailabilitySlots.date == target_date.isoformat(),
                active_booking_exists(AvailabilitySlots.id),
            )
        ).scalars()
        return set(rows)

    # ── Claim / release ──────────────────────────────────────────────────

    def claim(self, slot_id: int) -> ReservationResult:
        """
        Atomically take a bookable slot.

        UPDATE ... SET is_available = 0
        WHERE id = :id AND is_available = 1 AND is_blocked_by_admin = 0

        Exactly one concurrent caller sees rowcount == 1. A loser is told
        why (not found / blocked / already claimed) without side effects.
        """
        result = self.db.execute(
            update(AvailabilitySlots)
            .where(
                AvailabilitySlots.id == slot_id,
                AvailabilitySlots.is_available == 1,
                AvailabilitySlots.is_blocked_by_admin == 0,
            )
            .values(is_available=0)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            self.db.commit()
            logger.info(f"Slot {slot_id} claimed")
            return ReservationResult.ok([slot_id])

        self.db.rollback()
        slot = self.get(slot_id)
        if slot is None:
            return ReservationResult.fail(NotFound(f"Slot {slot_id} not found", slot_id=slot_id))

        slot_date = date.fromisoformat(slot.date)
        if slot.is_blocked_by_admin:
            return ReservationResult.fail(
                Blocked(f"Slot {slot_id} is blocked", slot_id=slot_id, target_date=slot_date)
            )
        logger.debug(f"Slot {slot_id} lost to a concurrent claim")
        return ReservationResult.fail(
            AlreadyClaimed(
                f"Slot {slot_id} is already booked", slot_id=slot_id, target_date=slot_date
            )
        )

    def release(self, slot_id: int) -> bool:
        """
        Make a slot available again. Idempotent; never touches the admin block.

        Returns:
            False when the slot does not exist (nothing to release).
        """
        result = self.db.execute(
            update(AvailabilitySlots)
            .where(AvailabilitySlots.id == slot_id)
            .values(is_available=1)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        if result.rowcount == 0:
            logger.warning(f"Release of unknown slot {slot_id} ignored")
            return False
        logger.info(f"Slot {slot_id} released")
        return True

    # ── Staff block / unblock ────────────────────────────────────────────

    def set_blocked(self, slot_id: int, blocked: bool) -> AvailabilitySlots:
        result = self.db.execute(
            update(AvailabilitySlots)
            .where(AvailabilitySlots.id == slot_id)
            .values(is_blocked_by_admin=1 if blocked else 0)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            raise NotFound(f"Slot {slot_id} not found", slot_id=slot_id)
        self.db.commit()
        logger.info(f"Slot {slot_id} {'blocked' if blocked else 'unblocked'} by admin")
        return self.get(slot_id)

    # ── Grid maintenance (used by regeneration, caller commits) ──────────

    def create_many(self, specs: list[SlotSpec]) -> list[AvailabilitySlots]:
        rows = [
            AvailabilitySlots(
                service_id=spec.service_id,
                date=spec.date.isoformat(),
                start_time=spec.start_time,
                end_time=spec.end_time,
                is_available=1,
                is_blocked_by_admin=0,
            )
            for spec in specs
        ]
        self.db.add_all(rows)
        self.db.flush()
        return rows

    def delete_if_free(self, slot_id: int) -> bool:
        """
        Delete a slot only if nobody holds it.

        Conditional DELETE: the slot must still be available and must not
        be referenced by an active booking at the moment of deletion.
        """
        result = self.db.execute(
            delete(AvailabilitySlots)
            .where(
                AvailabilitySlots.id == slot_id,
                AvailabilitySlots.is_available == 1,
                ~active_booking_exists(slot_id),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
