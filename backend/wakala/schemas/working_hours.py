# backend/wakala/schemas/working_hours.py

import json
from datetime import date
from typing import Annotated, Optional
from pydantic import AfterValidator, BaseModel, Field, field_validator, model_validator

from ..services.slots.config import get_booking_config, normalize_time, time_str_to_minutes


def _check_time(value: str) -> str:
    try:
        return normalize_time(value)
    except ValueError as e:
        raise ValueError(f"time must be HH:MM, got {value!r}") from e


def _check_interval(value: int) -> int:
    config = get_booking_config()
    if not config.is_valid_interval(value):
        raise ValueError(
            f"slot_interval_minutes must be within "
            f"{config.min_slot_interval_minutes}..{config.max_slot_interval_minutes}"
        )
    return value


TimeStr = Annotated[str, AfterValidator(_check_time)]
SlotInterval = Annotated[int, AfterValidator(_check_interval)]


class BreakTime(BaseModel):
    start: TimeStr
    end: TimeStr

    @model_validator(mode="after")
    def check_order(self):
        if time_str_to_minutes(self.start) >= time_str_to_minutes(self.end):
            raise ValueError("break end must be after start")
        return self


# ── Weekly defaults ──────────────────────────────────────────────────────


class WorkingHoursUpdate(BaseModel):
    start_time: Optional[TimeStr] = None
    end_time: Optional[TimeStr] = None
    last_appointment_time: Optional[TimeStr] = None
    slot_interval_minutes: Optional[SlotInterval] = None
    is_active: Optional[bool] = None
    day_name_en: Optional[str] = None
    day_name_ar: Optional[str] = None

    model_config = {"from_attributes": True}


class WorkingHoursRead(BaseModel):
    id: int
    day_of_week: int
    day_name_en: Optional[str] = None
    day_name_ar: Optional[str] = None
    start_time: str
    end_time: str
    last_appointment_time: str
    slot_interval_minutes: int
    is_active: bool

    model_config = {"from_attributes": True}


# ── Per-date overrides ───────────────────────────────────────────────────


class DaySpecificHoursUpsert(BaseModel):
    start_time: Optional[TimeStr] = None
    end_time: Optional[TimeStr] = None
    last_appointment_time: Optional[TimeStr] = None
    slot_interval_minutes: Optional[SlotInterval] = None
    break_times: list[BreakTime] = Field(default_factory=list)
    is_holiday: bool = False
    holiday_reason_en: Optional[str] = None
    holiday_reason_ar: Optional[str] = None

    @model_validator(mode="after")
    def check_window(self):
        if self.is_holiday:
            return self
        if not self.start_time or not self.end_time:
            raise ValueError("start_time and end_time are required unless is_holiday")
        if time_str_to_minutes(self.start_time) >= time_str_to_minutes(self.end_time):
            raise ValueError("end_time must be after start_time")
        return self

    def to_columns(self) -> dict:
        data = self.model_dump()
        data["break_times"] = json.dumps(data["break_times"])
        data["is_holiday"] = 1 if self.is_holiday else 0
        return data


class DaySpecificHoursRead(BaseModel):
    id: int
    date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    last_appointment_time: Optional[str] = None
    slot_interval_minutes: Optional[int] = None
    break_times: list[BreakTime] = Field(default_factory=list)
    is_holiday: bool
    holiday_reason_en: Optional[str] = None
    holiday_reason_ar: Optional[str] = None

    @field_validator("break_times", mode="before")
    @classmethod
    def decode_breaks(cls, value):
        if isinstance(value, str):
            return json.loads(value) if value else []
        return value

    model_config = {"from_attributes": True}


# ── Blocked dates ────────────────────────────────────────────────────────


class BlockedDateCreate(BaseModel):
    date: date
    reason_en: str = Field(min_length=1)
    reason_ar: Optional[str] = None

    model_config = {"from_attributes": True}


class BlockedDateRead(BaseModel):
    id: int
    date: date
    reason_en: str
    reason_ar: Optional[str] = None

    model_config = {"from_attributes": True}
