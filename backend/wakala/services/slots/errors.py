"""
Slot engine errors.

Every error carries a stable `code` plus the slot id / date it concerns,
so callers can render a user-facing message without parsing text.
"""

from dataclasses import dataclass, field
from datetime import date


class SlotError(Exception):
    code = "slot_error"

    def __init__(
        self,
        message: str,
        slot_id: int | None = None,
        target_date: date | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.slot_id = slot_id
        self.date = target_date

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "code": self.code,
            "slot_id": self.slot_id,
            "date": self.date.isoformat() if self.date else None,
        }


class NotFound(SlotError):
    code = "not_found"


class AlreadyClaimed(SlotError):
    code = "already_claimed"


class Blocked(SlotError):
    code = "blocked"


class InvalidSelection(SlotError):
    code = "invalid_selection"


class ClosedDay(SlotError):
    code = "closed_day"


class PartialFailure(SlotError):
    """Some dates of a bulk operation failed; `failures` maps date → message."""

    code = "partial_failure"

    def __init__(self, failures: dict[date, str]):
        dates = ", ".join(d.isoformat() for d in sorted(failures))
        super().__init__(f"Failed dates: {dates}")
        self.failures = failures

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["failures"] = {d.isoformat(): msg for d, msg in sorted(self.failures.items())}
        return data


@dataclass
class ReservationResult:
    """Outcome of claim/reserve: `error` is set iff `success` is False."""

    success: bool
    error: SlotError | None = None
    slot_ids: list[int] = field(default_factory=list)

    @classmethod
    def ok(cls, slot_ids: list[int]) -> "ReservationResult":
        return cls(success=True, slot_ids=list(slot_ids))

    @classmethod
    def fail(cls, error: SlotError) -> "ReservationResult":
        return cls(success=False, error=error)

    def raise_for_error(self) -> "ReservationResult":
        if self.error is not None:
            raise self.error
        return self
