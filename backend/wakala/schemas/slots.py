# backend/wakala/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class BreakInterval(BaseModel):
    start: str
    end: str


class EffectiveHoursResponse(BaseModel):
    """Resolved working window for a date (ResolveHours)."""
    date: date
    is_open: bool
    source: str = Field(description="day_specific / weekday / none")
    is_holiday: bool = False
    reason_en: Optional[str] = None
    reason_ar: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    last_appointment_time: Optional[str] = None
    slot_interval_minutes: Optional[int] = None
    breaks: list[BreakInterval] = []


class SlotPreview(BaseModel):
    """A slot the current schedule would generate (not persisted)."""
    start_time: str
    end_time: str


class SlotsPreviewResponse(BaseModel):
    service_id: int
    date: date
    slots: list[SlotPreview]


class SlotRead(BaseModel):
    id: int
    service_id: int
    date: date
    start_time: str
    end_time: str
    is_available: bool
    is_blocked_by_admin: bool
    booking_id: Optional[int] = None

    model_config = {"from_attributes": True}


class BookableStartRead(BaseModel):
    slot_id: int
    start_time: str
    end_time: str
    slot_ids: list[int]

    model_config = {"from_attributes": True}


class SlotsDayResponse(BaseModel):
    """Slots of a day; `bookable` is filled when a duration is requested."""
    service_id: int
    date: date
    slots: list[SlotRead]
    duration_minutes: Optional[int] = None
    bookable: list[BookableStartRead] = []


class ReserveRequest(BaseModel):
    service_id: int
    date: date
    slot_id: int
    duration_minutes: int = Field(description="30 or 60")


class ReservationResponse(BaseModel):
    success: bool
    slot_ids: list[int] = []


class RegenerateRequest(BaseModel):
    """Regenerate one date or a range, for one service or all active ones."""
    service_id: Optional[int] = None
    start_date: date
    end_date: Optional[date] = None


class RegenerationDay(BaseModel):
    date: date
    created: int
    preserved: int
    removed: int

    model_config = {"from_attributes": True}


class RegenerationServiceResult(BaseModel):
    service_id: int
    created: int
    preserved: int
    removed: int
    days: list[RegenerationDay]
    failed_dates: dict[str, str] = {}


class RegenerateResponse(BaseModel):
    start_date: date
    end_date: date
    created: int
    preserved: int
    removed: int
    partial_failure: bool
    services: list[RegenerationServiceResult]


class AvailabilityStatRead(BaseModel):
    date: date
    total_slots: int
    available_slots: int
    booked_slots: int
    blocked_slots: int
    is_holiday: bool
    is_blocked: bool
    holiday_reason_en: Optional[str] = None
    holiday_reason_ar: Optional[str] = None
    blocked_reason_en: Optional[str] = None
    blocked_reason_ar: Optional[str] = None

    model_config = {"from_attributes": True}


class AvailabilityStatsResponse(BaseModel):
    service_id: int
    start_date: date
    end_date: date
    days: list[AvailabilityStatRead]
