# backend/shopdb/apps/work/models.py

"""
Work module ORM models.

- WorkOrder: a billable unit of maintenance work against one aircraft,
  moved through its status lifecycle only by `lifecycle.request_transition`.
- WorkOrderItem: billing detail line (labour, parts or subcontract) under a
  work order. Read by the billing rollup, never by the lifecycle.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship

from ...database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


# ---------------------------------------------------------------------------
# Enumerations – kept as strings to match API and DB values
# ---------------------------------------------------------------------------


class WorkOrderStatusEnum(str, Enum):
    """Lifecycle state of the work order."""

    DRAFT = "draft"
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    PENDING_PARTS = "pending_parts"
    COMPLETED = "completed"
    INVOICED = "invoiced"          # terminal
    CANCELLED = "cancelled"        # reopenable


class WorkOrderItemTypeEnum(str, Enum):
    LABOR = "labor"
    PARTS = "parts"
    SUBCONTRACT = "subcontract"


# ---------------------------------------------------------------------------
# Work order
# ---------------------------------------------------------------------------


class WorkOrder(Base):
    __tablename__ = "work_orders"
    __table_args__ = (
        UniqueConstraint("shop_id", "wo_number", name="uq_work_orders_shop_wo_number"),
    )

    id: int = Column(Integer, primary_key=True, index=True)

    # Denormalised from the aircraft so every lookup can filter on the tenant
    shop_id: str = Column(
        String(36),
        ForeignKey("shops.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # WO<YY><MM>-<seq>, assigned once at creation
    wo_number: str = Column(String(32), nullable=False, index=True)

    aircraft_id: int = Column(
        Integer,
        ForeignKey("aircraft.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    customer_id: int | None = Column(
        Integer,
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    title: str = Column(String(255), nullable=False)
    description: str | None = Column(Text, nullable=True)
    work_type: str | None = Column(String(64), nullable=True)  # annual, 100hr, repair ...
    priority: int = Column(Integer, nullable=False, default=0)

    status: WorkOrderStatusEnum = Column(
        SQLEnum(
            WorkOrderStatusEnum,
            name="work_order_status_enum",
            values_callable=_enum_values,
        ),
        nullable=False,
        default=WorkOrderStatusEnum.DRAFT,
        index=True,
    )

    # Planning
    scheduled_start: datetime | None = Column(DateTime(timezone=True), nullable=True)
    scheduled_end: datetime | None = Column(DateTime(timezone=True), nullable=True)

    # Execution, stamped by status transitions
    actual_start: datetime | None = Column(DateTime(timezone=True), nullable=True)
    actual_end: datetime | None = Column(DateTime(timezone=True), nullable=True)

    # Aircraft meters at induction / release
    hobbs_in: Decimal | None = Column(Numeric(10, 1), nullable=True)
    hobbs_out: Decimal | None = Column(Numeric(10, 1), nullable=True)
    tach_in: Decimal | None = Column(Numeric(10, 1), nullable=True)
    tach_out: Decimal | None = Column(Numeric(10, 1), nullable=True)

    estimated_labor: Decimal | None = Column(Numeric(12, 2), nullable=True)
    estimated_parts: Decimal | None = Column(Numeric(12, 2), nullable=True)

    assigned_mechanic: str | None = Column(String(255), nullable=True)
    inspector: str | None = Column(String(255), nullable=True)
    notes: str | None = Column(Text, nullable=True)

    created_at: datetime = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )
    created_by_user_id: str | None = Column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    updated_by_user_id: str | None = Column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    aircraft = relationship("Aircraft", back_populates="work_orders")
    customer = relationship("Customer", back_populates="work_orders")
    items = relationship(
        "WorkOrderItem",
        back_populates="work_order",
        cascade="all, delete-orphan",
        order_by="WorkOrderItem.id",
    )
    timesheet_entries = relationship("TimesheetEntry", back_populates="work_order")

    def __repr__(self) -> str:
        return f"<WorkOrder {self.wo_number} {self.status}>"


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------


class WorkOrderItem(Base):
    __tablename__ = "work_order_items"

    id: int = Column(Integer, primary_key=True, index=True)
    work_order_id: int = Column(
        Integer,
        ForeignKey("work_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    item_type: WorkOrderItemTypeEnum = Column(
        SQLEnum(
            WorkOrderItemTypeEnum,
            name="work_order_item_type_enum",
            values_callable=_enum_values,
        ),
        nullable=False,
    )
    description: str = Column(String(512), nullable=False)
    part_number: str | None = Column(String(64), nullable=True)
    quantity: Decimal = Column(Numeric(10, 2), nullable=False, default=Decimal("1"))
    unit_price: Decimal | None = Column(Numeric(12, 2), nullable=True)
    hours: Decimal | None = Column(Numeric(6, 2), nullable=True)
    rate: Decimal | None = Column(Numeric(10, 2), nullable=True)
    notes: str | None = Column(Text, nullable=True)

    created_at: datetime = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    work_order = relationship("WorkOrder", back_populates="items")
