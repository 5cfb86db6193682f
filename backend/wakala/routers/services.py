# backend/wakala/routers/services.py
# PATCH = ALLOWED, DELETE = deactivate (slots and bookings are kept)
"""
Wakala service catalogue.

Every service owns its own slot grid. A deactivated service drops out of
bulk regeneration but its existing slots and bookings stay untouched.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from redis import Redis
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import BookingServices as DBService
from ..redis_client import get_redis
from ..schemas.services import ServiceCreate, ServiceRead, ServiceUpdate
from ..services.slots import invalidate_stats_cache

router = APIRouter(prefix="/services", tags=["services"])


def _get_or_404(db: Session, service_id: int) -> DBService:
    service = db.get(DBService, service_id)
    if service is None:
        raise HTTPException(status_code=404, detail="Not found")
    return service


def _ensure_unique_name(db: Session, name_en: str, exclude_id: int | None = None) -> None:
    query = db.query(DBService.id).filter(
        func.lower(DBService.name_en) == name_en.strip().lower(),
        DBService.is_active == 1,
    )
    if exclude_id is not None:
        query = query.filter(DBService.id != exclude_id)
    if query.first() is not None:
        raise HTTPException(status_code=409, detail=f"Service '{name_en}' already exists")


@router.get("/", response_model=list[ServiceRead])
def list_services(include_inactive: bool = False, db: Session = Depends(get_db)):
    query = db.query(DBService)
    if not include_inactive:
        query = query.filter(DBService.is_active == 1)
    return query.order_by(DBService.id).all()


@router.get("/{service_id}", response_model=ServiceRead)
def get_service(service_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, service_id)


@router.post("/", response_model=ServiceRead, status_code=status.HTTP_201_CREATED)
def create_service(data: ServiceCreate, db: Session = Depends(get_db)):
    _ensure_unique_name(db, data.name_en)

    service = DBService(name_en=data.name_en.strip(), name_ar=data.name_ar, is_active=1)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@router.patch("/{service_id}", response_model=ServiceRead)
def update_service(
    service_id: int,
    data: ServiceUpdate,
    db: Session = Depends(get_db),
):
    service = _get_or_404(db, service_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("name_en"):
        _ensure_unique_name(db, changes["name_en"], exclude_id=service_id)
        changes["name_en"] = changes["name_en"].strip()
    if "is_active" in changes:
        changes["is_active"] = 1 if changes["is_active"] else 0

    for field, value in changes.items():
        setattr(service, field, value)

    db.commit()
    db.refresh(service)
    return service


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_service(
    service_id: int,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    service = _get_or_404(db, service_id)
    service.is_active = 0
    db.commit()
    invalidate_stats_cache(redis, service_id)
