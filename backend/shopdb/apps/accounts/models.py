# backend/shopdb/apps/accounts/models.py

from __future__ import annotations

import enum
import os
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship

from shopdb.database import Base
from shopdb.utils.identifiers import generate_short_id

DEFAULT_LABOR_RATE = Decimal(os.getenv("DEFAULT_LABOR_RATE", "85.00"))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _shop_id() -> str:
    return generate_short_id("SHOP")


def _user_id() -> str:
    return generate_short_id("USR")


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class UserRole(str, enum.Enum):
    """Roles used across the shop portal."""

    ADMIN = "admin"            # shop owner / director of maintenance
    MANAGER = "manager"        # service manager, approves timesheets
    MECHANIC = "mechanic"      # A&P mechanic
    INSPECTOR = "inspector"    # IA
    VIEWER = "viewer"


# ---------------------------------------------------------------------------
# SHOP (tenant)
# ---------------------------------------------------------------------------


class Shop(Base):
    """
    Maintenance shop / repair station.

    The tenancy boundary: aircraft, customers, work orders and timesheets
    are always scoped to exactly one shop.
    """

    __tablename__ = "shops"

    id = Column(String(36), primary_key=True, default=_shop_id)
    code = Column(String(32), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
        doc="Login slug, e.g. 'demo-shop'",
    )

    address = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
    email = Column(String(255), nullable=True)
    faa_repair_station = Column(String(32), nullable=True)
    time_zone = Column(String(64), nullable=True)

    # Default hourly rate applied to timesheet entries with no explicit rate
    labor_rate = Column(
        Numeric(10, 2),
        nullable=False,
        default=DEFAULT_LABOR_RATE,
    )

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    users = relationship("User", back_populates="shop", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Shop {self.code} {self.name}>"


# ---------------------------------------------------------------------------
# USER
# ---------------------------------------------------------------------------


class User(Base):
    """
    Shop user account.

    A user without a shop (platform staff, half-provisioned accounts) can
    log in but is treated as unauthenticated by every tenant endpoint.
    """

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("shop_id", "email", name="uq_users_shop_email"),
        Index("idx_users_role_active", "role", "is_active"),
    )

    id = Column(String(36), primary_key=True, default=_user_id)

    shop_id = Column(
        String(36),
        ForeignKey("shops.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    email = Column(String(255), nullable=False, index=True)
    first_name = Column(String(128), nullable=False)
    last_name = Column(String(128), nullable=False)

    role = Column(
        Enum(
            UserRole,
            name="user_role_enum",
            values_callable=lambda enum_cls: [m.value for m in enum_cls],
        ),
        nullable=False,
        default=UserRole.MECHANIC,
        index=True,
    )
    certificate_number = Column(String(64), nullable=True)  # A&P / IA number

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    hashed_password = Column(String(255), nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    shop = relationship("Shop", back_populates="users")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
