# backend/wakala/schemas/services.py

from typing import Optional
from pydantic import BaseModel


class ServiceCreate(BaseModel):
    name_en: str
    name_ar: Optional[str] = None

    model_config = {"from_attributes": True}


class ServiceUpdate(BaseModel):
    is_active: Optional[bool] = None
    name_en: Optional[str] = None
    name_ar: Optional[str] = None

    model_config = {"from_attributes": True}


class ServiceRead(BaseModel):
    id: int
    name_en: str
    name_ar: Optional[str] = None
    is_active: bool

    model_config = {"from_attributes": True}
