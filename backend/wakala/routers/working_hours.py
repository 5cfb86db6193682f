# backend/wakala/routers/working_hours.py
# PUT = update, POST/DELETE = 405 (one row per weekday, never deleted)
"""
Weekly default hours.

Editing hours does not touch existing slots; callers follow up with
POST /slots/regenerate for the dates they want rebuilt.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import WorkingHoursConfig as DBWorkingHours
from ..schemas.working_hours import WorkingHoursRead, WorkingHoursUpdate
from ..services.slots.config import time_str_to_minutes

router = APIRouter(prefix="/working_hours", tags=["working_hours"])


@router.get("/", response_model=list[WorkingHoursRead])
def list_working_hours(db: Session = Depends(get_db)):
    return db.query(DBWorkingHours).order_by(DBWorkingHours.day_of_week).all()


@router.get("/{day_of_week}", response_model=WorkingHoursRead)
def get_working_hours(day_of_week: int, db: Session = Depends(get_db)):
    obj = db.query(DBWorkingHours).filter(DBWorkingHours.day_of_week == day_of_week).first()
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.put("/{day_of_week}", response_model=WorkingHoursRead)
def update_working_hours(
    day_of_week: int,
    data: WorkingHoursUpdate,
    db: Session = Depends(get_db),
):
    if not 1 <= day_of_week <= 7:
        raise HTTPException(status_code=400, detail="day_of_week must be 1 (Monday) .. 7 (Sunday)")

    obj = db.query(DBWorkingHours).filter(DBWorkingHours.day_of_week == day_of_week).first()
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        if field == "is_active":
            value = 1 if value else 0
        setattr(obj, field, value)

    start = time_str_to_minutes(obj.start_time)
    end = time_str_to_minutes(obj.end_time)
    last = time_str_to_minutes(obj.last_appointment_time)
    if not start < end or not start <= last < end:
        db.rollback()
        raise HTTPException(
            status_code=400,
            detail="Require start_time <= last_appointment_time < end_time",
        )

    db.commit()
    db.refresh(obj)
    return obj


@router.post("/")
def create_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{day_of_week}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
