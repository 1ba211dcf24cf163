# backend/shopdb/apps/fleet/schemas.py

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class AircraftBase(BaseModel):
    registration: str = Field(..., min_length=1, max_length=16)
    make: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    year: Optional[int] = None
    customer_id: Optional[int] = None
    total_time: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None


class AircraftCreate(AircraftBase):
    pass


class AircraftUpdate(BaseModel):
    registration: Optional[str] = Field(None, min_length=1, max_length=16)
    make: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    year: Optional[int] = None
    customer_id: Optional[int] = None
    total_time: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None


class AircraftRead(AircraftBase):
    id: int
    shop_id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
