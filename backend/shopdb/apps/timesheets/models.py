# backend/shopdb/apps/timesheets/models.py

"""
Timesheet entries: hours a user books against the shop, optionally
against a work order. Approved, billable entries feed the labour total
of the work order's billing rollup.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship

from ...database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimesheetStatusEnum(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TimesheetEntry(Base):
    __tablename__ = "timesheet_entries"

    id: int = Column(Integer, primary_key=True, index=True)

    shop_id: str = Column(
        String(36),
        ForeignKey("shops.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: str = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    work_order_id: int | None = Column(
        Integer,
        ForeignKey("work_orders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    description: str | None = Column(Text, nullable=True)
    task_type: str | None = Column(String(64), nullable=True)  # inspection, repair, admin ...
    work_date: date = Column(Date, nullable=False, index=True)
    start_time: str | None = Column(String(8), nullable=True)  # "HH:MM"
    end_time: str | None = Column(String(8), nullable=True)
    hours: Decimal = Column(Numeric(6, 2), nullable=False)
    is_billable: bool = Column(Boolean, nullable=False, default=True)
    rate: Decimal | None = Column(Numeric(10, 2), nullable=True)
    notes: str | None = Column(Text, nullable=True)

    status: TimesheetStatusEnum = Column(
        SQLEnum(
            TimesheetStatusEnum,
            name="timesheet_status_enum",
            values_callable=lambda enum_cls: [m.value for m in enum_cls],
        ),
        nullable=False,
        default=TimesheetStatusEnum.PENDING,
        index=True,
    )
    approved_by_user_id: str | None = Column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    approved_at: datetime | None = Column(DateTime(timezone=True), nullable=True)

    created_at: datetime = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    user = relationship("User", foreign_keys=[user_id])
    approved_by = relationship("User", foreign_keys=[approved_by_user_id])
    work_order = relationship("WorkOrder", back_populates="timesheet_entries")
