# backend/shopdb/apps/customers/models.py

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ...database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Customer(Base):
    """Aircraft owner / operator billed for work orders."""

    __tablename__ = "customers"

    id: int = Column(Integer, primary_key=True, index=True)
    shop_id: str = Column(
        String(36),
        ForeignKey("shops.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: str = Column(String(255), nullable=False, index=True)
    contact_name: str | None = Column(String(255), nullable=True)
    email: str | None = Column(String(255), nullable=True)
    phone: str | None = Column(String(64), nullable=True)
    address: str | None = Column(String(255), nullable=True)
    city: str | None = Column(String(128), nullable=True)
    state: str | None = Column(String(64), nullable=True)
    zip_code: str | None = Column(String(16), nullable=True)
    notes: str | None = Column(Text, nullable=True)

    is_active: bool = Column(Boolean, nullable=False, default=True, index=True)

    created_at: datetime = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    aircraft = relationship("Aircraft", back_populates="customer")
    work_orders = relationship("WorkOrder", back_populates="customer")
