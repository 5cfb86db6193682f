# backend/wakala/routers/day_specific_hours.py
# PUT = upsert by date, DELETE = ALLOWED (hard, falls back to weekday default)

from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import DaySpecificHours as DBDaySpecificHours
from ..redis_client import get_redis
from ..schemas.working_hours import DaySpecificHoursRead, DaySpecificHoursUpsert
from ..services.slots import invalidate_stats_cache

router = APIRouter(prefix="/day_specific_hours", tags=["day_specific_hours"])


@router.get("/", response_model=list[DaySpecificHoursRead])
def list_day_specific_hours(
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
):
    query = db.query(DBDaySpecificHours)
    if start_date is not None:
        query = query.filter(DBDaySpecificHours.date >= start_date.isoformat())
    if end_date is not None:
        query = query.filter(DBDaySpecificHours.date <= end_date.isoformat())
    return query.order_by(DBDaySpecificHours.date).all()


@router.get("/{target_date}", response_model=DaySpecificHoursRead)
def get_day_specific_hours(target_date: date, db: Session = Depends(get_db)):
    obj = db.query(DBDaySpecificHours).filter(
        DBDaySpecificHours.date == target_date.isoformat()
    ).first()
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.put("/{target_date}", response_model=DaySpecificHoursRead)
def upsert_day_specific_hours(
    target_date: date,
    data: DaySpecificHoursUpsert,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    obj = db.query(DBDaySpecificHours).filter(
        DBDaySpecificHours.date == target_date.isoformat()
    ).first()
    if obj is None:
        obj = DBDaySpecificHours(date=target_date.isoformat())
        db.add(obj)

    for field, value in data.to_columns().items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    # Holiday flags show up in every service's stats
    invalidate_stats_cache(redis, None, [target_date])
    return obj


@router.delete("/{target_date}", status_code=status.HTTP_204_NO_CONTENT)
def delete_day_specific_hours(
    target_date: date,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    obj = db.query(DBDaySpecificHours).filter(
        DBDaySpecificHours.date == target_date.isoformat()
    ).first()
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    db.delete(obj)
    db.commit()
    invalidate_stats_cache(redis, None, [target_date])
