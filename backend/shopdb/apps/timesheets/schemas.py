# backend/shopdb/apps/timesheets/schemas.py

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from .models import TimesheetStatusEnum


class TimesheetEntryBase(BaseModel):
    work_order_id: Optional[int] = None
    description: Optional[str] = None
    task_type: Optional[str] = None
    start_time: Optional[str] = Field(None, max_length=8)
    end_time: Optional[str] = Field(None, max_length=8)
    is_billable: bool = True
    rate: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None


class TimesheetEntryCreate(TimesheetEntryBase):
    # Optional here so the service can answer with its own messages
    work_date: Optional[date] = None
    hours: Optional[Decimal] = None


class TimesheetEntryUpdate(BaseModel):
    work_order_id: Optional[int] = None
    description: Optional[str] = None
    task_type: Optional[str] = None
    work_date: Optional[date] = None
    start_time: Optional[str] = Field(None, max_length=8)
    end_time: Optional[str] = Field(None, max_length=8)
    hours: Optional[Decimal] = None
    is_billable: Optional[bool] = None
    rate: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None


class TimesheetEntryRead(TimesheetEntryBase):
    id: int
    shop_id: str
    user_id: str
    work_date: date
    hours: Decimal
    status: TimesheetStatusEnum
    approved_by_user_id: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
