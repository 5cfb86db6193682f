# backend/wakala/schemas/bookings.py

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class BookingCreate(BaseModel):
    service_id: int
    booking_date: date
    slot_id: int
    duration_minutes: int = Field(description="30 or 60")

    full_name: str = Field(min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    member_id: Optional[str] = None
    service_type: Optional[str] = None

    model_config = {"from_attributes": True}


class BookingStatusUpdate(BaseModel):
    status: str


class BookingAssign(BaseModel):
    assigned_admin_id: Optional[str] = Field(default=None, description="None clears the assignment")


class BookingCancel(BaseModel):
    cancelled_by_user: bool = True


class BookingRead(BaseModel):
    id: int

    service_id: int
    slot_id: Optional[int] = None
    second_slot_id: Optional[int] = None

    booking_date: date
    start_time: str
    end_time: str
    duration_minutes: int

    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    member_id: Optional[str] = None
    service_type: Optional[str] = None

    status: str
    assigned_admin_id: Optional[str] = None
    cancelled_at: Optional[str] = None
    cancelled_by_user: bool = False

    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}
