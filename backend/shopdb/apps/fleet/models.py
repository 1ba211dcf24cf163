# backend/shopdb/apps/fleet/models.py

"""
Fleet ORM models.

- Aircraft: a customer (or shop-owned) aircraft serviced by the shop.
  Registration is unique per shop; the same N-number may legitimately
  appear in two shops' records.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ...database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Aircraft(Base):
    __tablename__ = "aircraft"
    __table_args__ = (
        UniqueConstraint("shop_id", "registration", name="uq_aircraft_shop_registration"),
    )

    id: int = Column(Integer, primary_key=True, index=True)

    shop_id: str = Column(
        String(36),
        ForeignKey("shops.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    registration: str = Column(String(16), nullable=False, index=True)  # N-number / tail
    make: str | None = Column(String(64), nullable=True)
    model: str | None = Column(String(64), nullable=True)
    serial_number: str | None = Column(String(64), nullable=True)
    year: int | None = Column(Integer, nullable=True)

    customer_id: int | None = Column(
        Integer,
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Airframe total time in hours, as last recorded by the shop
    total_time: Decimal | None = Column(Numeric(10, 1), nullable=True)
    notes: str | None = Column(Text, nullable=True)

    created_at: datetime = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    customer = relationship("Customer", back_populates="aircraft")
    work_orders = relationship("WorkOrder", back_populates="aircraft")

    def __repr__(self) -> str:
        return f"<Aircraft {self.registration}>"
