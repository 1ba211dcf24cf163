# backend/shopdb/apps/work/schemas.py

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from .models import WorkOrderItemTypeEnum, WorkOrderStatusEnum


# ---------------------------------------------------------------------------
# WORK ORDER
# ---------------------------------------------------------------------------


class WorkOrderBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    work_type: Optional[str] = None
    priority: int = 0
    customer_id: Optional[int] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    hobbs_in: Optional[Decimal] = Field(None, ge=0)
    tach_in: Optional[Decimal] = Field(None, ge=0)
    estimated_labor: Optional[Decimal] = Field(None, ge=0)
    estimated_parts: Optional[Decimal] = Field(None, ge=0)
    assigned_mechanic: Optional[str] = None
    inspector: Optional[str] = None
    notes: Optional[str] = None


class WorkOrderCreate(WorkOrderBase):
    """Status is not accepted here: every work order starts as draft."""

    aircraft_id: int


class WorkOrderUpdate(BaseModel):
    """
    Partial update of descriptive, planning, meter and estimate fields.

    Status and the actual_start / actual_end stamps are not part of this
    payload; they only move through PATCH /work-orders/{id}/status.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    work_type: Optional[str] = None
    priority: Optional[int] = None
    customer_id: Optional[int] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    hobbs_in: Optional[Decimal] = Field(None, ge=0)
    hobbs_out: Optional[Decimal] = Field(None, ge=0)
    tach_in: Optional[Decimal] = Field(None, ge=0)
    tach_out: Optional[Decimal] = Field(None, ge=0)
    estimated_labor: Optional[Decimal] = Field(None, ge=0)
    estimated_parts: Optional[Decimal] = Field(None, ge=0)
    assigned_mechanic: Optional[str] = None
    inspector: Optional[str] = None
    notes: Optional[str] = None


class WorkOrderRead(WorkOrderBase):
    id: int
    shop_id: str
    wo_number: str
    aircraft_id: int
    status: WorkOrderStatusEnum
    actual_start: Optional[datetime] = None
    actual_end: Optional[datetime] = None
    hobbs_out: Optional[Decimal] = None
    tach_out: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime
    created_by_user_id: Optional[str] = None
    updated_by_user_id: Optional[str] = None

    class Config:
        from_attributes = True


class StatusChange(BaseModel):
    # Plain string so a missing or unknown value reaches the lifecycle,
    # which owns the error messages for both.
    status: Optional[str] = None


# ---------------------------------------------------------------------------
# LINE ITEMS
# ---------------------------------------------------------------------------


class WorkOrderItemCreate(BaseModel):
    item_type: Optional[WorkOrderItemTypeEnum] = None
    description: Optional[str] = None
    part_number: Optional[str] = None
    quantity: Optional[Decimal] = Field(None, gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    hours: Optional[Decimal] = Field(None, ge=0)
    rate: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None


class WorkOrderItemRead(BaseModel):
    id: int
    work_order_id: int
    item_type: WorkOrderItemTypeEnum
    description: str
    part_number: Optional[str] = None
    quantity: Decimal
    unit_price: Optional[Decimal] = None
    hours: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# ---------------------------------------------------------------------------
# BILLING
# ---------------------------------------------------------------------------


class BillingSummaryRead(BaseModel):
    work_order_id: int
    labor_rate: Decimal
    labor_hours: Decimal
    labor_total: Decimal
    parts_total: Decimal
    subcontract_total: Decimal
    grand_total: Decimal
    estimated_total: Decimal
    display_total: Decimal
    is_provisional: bool

    class Config:
        from_attributes = True


class InvoiceLaborLine(BaseModel):
    work_date: date
    description: Optional[str] = None
    mechanic: Optional[str] = None
    hours: Decimal
    rate: Decimal
    amount: Decimal


class InvoiceItemLine(BaseModel):
    item_type: WorkOrderItemTypeEnum
    description: str
    part_number: Optional[str] = None
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal


class InvoiceRead(BaseModel):
    invoice_number: str
    invoice_date: datetime
    work_order: WorkOrderRead
    shop_name: str
    aircraft_registration: str
    customer_name: Optional[str] = None
    labor_lines: List[InvoiceLaborLine] = Field(default_factory=list)
    parts_lines: List[InvoiceItemLine] = Field(default_factory=list)
    subcontract_lines: List[InvoiceItemLine] = Field(default_factory=list)
    summary: BillingSummaryRead
