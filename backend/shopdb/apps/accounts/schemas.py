# backend/shopdb/apps/accounts/schemas.py

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from .models import UserRole


# ---------------------------------------------------------------------------
# SHOP
# ---------------------------------------------------------------------------


class ShopBase(BaseModel):
    code: str
    name: str
    slug: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    faa_repair_station: Optional[str] = None
    time_zone: Optional[str] = None


class ShopCreate(ShopBase):
    labor_rate: Optional[Decimal] = Field(None, ge=0)


class ShopRead(ShopBase):
    id: str
    labor_rate: Decimal
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ---------------------------------------------------------------------------
# USER
# ---------------------------------------------------------------------------


class UserBase(BaseModel):
    email: EmailStr
    first_name: str
    last_name: str
    role: UserRole = UserRole.MECHANIC
    certificate_number: Optional[str] = None


class UserCreate(UserBase):
    shop_id: Optional[str] = None
    password: str = Field(..., min_length=6)


class UserRead(UserBase):
    id: str
    shop_id: Optional[str] = None
    full_name: str
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ---------------------------------------------------------------------------
# AUTH
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    shop_slug: Optional[str] = Field(
        None,
        description="Shop login slug; only needed when the email exists in several shops",
    )


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead
    shop: Optional[ShopRead] = None
