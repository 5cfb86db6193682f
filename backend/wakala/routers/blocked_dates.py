# backend/wakala/routers/blocked_dates.py
# PATCH = 405, DELETE = ALLOWED (hard)

from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import BlockedDates as DBBlockedDates
from ..redis_client import get_redis
from ..schemas.working_hours import BlockedDateCreate, BlockedDateRead
from ..services.slots import invalidate_stats_cache

router = APIRouter(prefix="/blocked_dates", tags=["blocked_dates"])


@router.get("/", response_model=list[BlockedDateRead])
def list_blocked_dates(db: Session = Depends(get_db)):
    return db.query(DBBlockedDates).order_by(DBBlockedDates.date).all()


@router.post(
    "/", response_model=BlockedDateRead, status_code=status.HTTP_201_CREATED
)
def create_blocked_date(
    data: BlockedDateCreate,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    existing = db.query(DBBlockedDates).filter(
        DBBlockedDates.date == data.date.isoformat()
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail="Date already blocked")

    obj = DBBlockedDates(
        date=data.date.isoformat(),
        reason_en=data.reason_en,
        reason_ar=data.reason_ar,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    invalidate_stats_cache(redis, None, [data.date])
    return obj


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_blocked_date(
    id: int,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    obj = db.get(DBBlockedDates, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    blocked = date.fromisoformat(obj.date)
    db.delete(obj)
    db.commit()
    invalidate_stats_cache(redis, None, [blocked])
