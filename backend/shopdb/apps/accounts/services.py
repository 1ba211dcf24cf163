# backend/shopdb/apps/accounts/services.py

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from shopdb.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    get_password_hash,
    verify_password,
)

from . import models, schemas

logger = logging.getLogger(__name__)


def _normalise_email(value: str) -> str:
    return value.strip().lower()


def _normalise_slug(value: Optional[str]) -> str:
    return (value or "").strip().lower()


# ---------------------------------------------------------------------------
# Shops
# ---------------------------------------------------------------------------


def create_shop(db: Session, data: schemas.ShopCreate) -> models.Shop:
    slug = _normalise_slug(data.slug)
    if db.query(models.Shop).filter(models.Shop.slug == slug).first():
        raise ValueError(f"Shop slug '{slug}' is already in use.")

    shop = models.Shop(
        code=data.code.strip().upper(),
        name=data.name.strip(),
        slug=slug,
        address=data.address,
        phone=data.phone,
        email=data.email,
        faa_repair_station=data.faa_repair_station,
        time_zone=data.time_zone,
        labor_rate=(
            data.labor_rate
            if data.labor_rate is not None
            else models.DEFAULT_LABOR_RATE
        ),
    )
    db.add(shop)
    db.flush()
    return shop


def get_shop(db: Session, shop_id: str) -> Optional[models.Shop]:
    return db.query(models.Shop).filter(models.Shop.id == shop_id).first()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def create_user(db: Session, data: schemas.UserCreate) -> models.User:
    email = _normalise_email(data.email)

    if data.shop_id and not get_shop(db, data.shop_id):
        raise ValueError("Invalid shop id.")

    dup = (
        db.query(models.User)
        .filter(
            models.User.shop_id == data.shop_id,
            models.User.email == email,
        )
        .first()
    )
    if dup:
        raise ValueError("A user with this email already exists in this shop.")

    user = models.User(
        shop_id=data.shop_id,
        email=email,
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        role=data.role,
        certificate_number=data.certificate_number,
        is_active=True,
        hashed_password=get_password_hash(data.password),
    )
    db.add(user)
    db.flush()
    return user


def authenticate_user(
    db: Session,
    *,
    login_req: schemas.LoginRequest,
) -> Optional[models.User]:
    """
    Password login by email, optionally narrowed to one shop by slug.

    Returns the user on success, None on bad credentials, unknown or
    inactive accounts, or when the email is ambiguous across shops and no
    slug was given.
    """
    email = _normalise_email(login_req.email)
    slug = _normalise_slug(login_req.shop_slug)

    query = db.query(models.User).filter(models.User.email == email)
    if slug:
        query = query.join(models.Shop).filter(models.Shop.slug == slug)

    candidates = query.all()
    if len(candidates) != 1:
        logger.info(
            "Login failed",
            extra={"email": email, "shop_slug": slug, "matches": len(candidates)},
        )
        return None

    user = candidates[0]
    if not user.is_active or not verify_password(login_req.password, user.hashed_password):
        logger.info("Login failed", extra={"email": email, "user_id": user.id})
        return None

    user.last_login_at = datetime.now(timezone.utc)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def issue_access_token_for_user(user: models.User) -> Tuple[str, int]:
    """
    Create a JWT access token for the user.

    Returns (token_string, expires_in_seconds).
    """
    expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user.id),
        "shop_id": user.shop_id,
        "role": user.role.value if hasattr(user.role, "value") else str(user.role),
    }
    access_token = create_access_token(data=payload, expires_delta=expires_delta)
    return access_token, int(expires_delta.total_seconds())
