# backend/shopdb/apps/fleet/router.py

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from shopdb.database import get_db, get_read_db
from shopdb.security import get_current_shop_user, require_roles
from shopdb.apps.accounts.models import User, UserRole
from shopdb.apps.customers import models as customer_models

from . import models, schemas

router = APIRouter(prefix="/aircraft", tags=["aircraft"])


def _normalise_registration(value: str) -> str:
    return value.strip().upper()


def _get_aircraft(db: Session, shop_id: str, aircraft_id: int) -> models.Aircraft:
    ac = (
        db.query(models.Aircraft)
        .filter(
            models.Aircraft.id == aircraft_id,
            models.Aircraft.shop_id == shop_id,
        )
        .first()
    )
    if not ac:
        raise HTTPException(status_code=404, detail="Aircraft not found")
    return ac


def _ensure_customer(db: Session, shop_id: str, customer_id: Optional[int]) -> None:
    if not customer_id:
        return
    exists = (
        db.query(customer_models.Customer.id)
        .filter(
            customer_models.Customer.id == customer_id,
            customer_models.Customer.shop_id == shop_id,
        )
        .first()
    )
    if not exists:
        raise HTTPException(status_code=404, detail="Customer not found")


def _ensure_registration_free(
    db: Session, shop_id: str, registration: str, exclude_id: Optional[int] = None
) -> None:
    q = db.query(models.Aircraft).filter(
        models.Aircraft.shop_id == shop_id,
        models.Aircraft.registration == registration,
    )
    if exclude_id is not None:
        q = q.filter(models.Aircraft.id != exclude_id)
    if q.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Aircraft {registration} already exists.",
        )


@router.get("/", response_model=List[schemas.AircraftRead])
def list_aircraft(
    customer_id: Optional[int] = None,
    db: Session = Depends(get_read_db),
    current_user: User = Depends(get_current_shop_user),
):
    q = db.query(models.Aircraft).filter(models.Aircraft.shop_id == current_user.shop_id)
    if customer_id:
        q = q.filter(models.Aircraft.customer_id == customer_id)
    return q.order_by(models.Aircraft.registration.asc()).all()


@router.get("/{aircraft_id}", response_model=schemas.AircraftRead)
def get_aircraft(
    aircraft_id: int,
    db: Session = Depends(get_read_db),
    current_user: User = Depends(get_current_shop_user),
):
    return _get_aircraft(db, current_user.shop_id, aircraft_id)


@router.post(
    "/",
    response_model=schemas.AircraftRead,
    status_code=status.HTTP_201_CREATED,
)
def create_aircraft(
    payload: schemas.AircraftCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.MANAGER, UserRole.MECHANIC)),
):
    registration = _normalise_registration(payload.registration)
    _ensure_registration_free(db, current_user.shop_id, registration)
    _ensure_customer(db, current_user.shop_id, payload.customer_id)

    data = payload.model_dump()
    data["registration"] = registration
    ac = models.Aircraft(shop_id=current_user.shop_id, **data)
    db.add(ac)
    db.commit()
    db.refresh(ac)
    return ac


@router.put("/{aircraft_id}", response_model=schemas.AircraftRead)
def update_aircraft(
    aircraft_id: int,
    payload: schemas.AircraftUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.MANAGER, UserRole.MECHANIC)),
):
    ac = _get_aircraft(db, current_user.shop_id, aircraft_id)
    data = payload.model_dump(exclude_unset=True)

    if data.get("registration"):
        data["registration"] = _normalise_registration(data["registration"])
        _ensure_registration_free(
            db, current_user.shop_id, data["registration"], exclude_id=ac.id
        )
    if "customer_id" in data:
        _ensure_customer(db, current_user.shop_id, data["customer_id"])

    for field, value in data.items():
        setattr(ac, field, value)

    db.add(ac)
    db.commit()
    db.refresh(ac)
    return ac
