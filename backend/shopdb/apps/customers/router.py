# backend/shopdb/apps/customers/router.py

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from shopdb.database import get_db, get_read_db
from shopdb.security import get_current_shop_user, require_roles
from shopdb.apps.accounts.models import User, UserRole

from . import models, schemas

router = APIRouter(prefix="/customers", tags=["customers"])


def _get_customer(db: Session, shop_id: str, customer_id: int) -> models.Customer:
    customer = (
        db.query(models.Customer)
        .filter(
            models.Customer.id == customer_id,
            models.Customer.shop_id == shop_id,
        )
        .first()
    )
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.get("/", response_model=List[schemas.CustomerRead])
def list_customers(
    q: Optional[str] = None,
    include_inactive: bool = False,
    db: Session = Depends(get_read_db),
    current_user: User = Depends(get_current_shop_user),
):
    """List the shop's customers by name; `q` filters on name."""
    query = db.query(models.Customer).filter(models.Customer.shop_id == current_user.shop_id)
    if not include_inactive:
        query = query.filter(models.Customer.is_active.is_(True))
    if q:
        query = query.filter(models.Customer.name.ilike(f"%{q.strip()}%"))
    return query.order_by(models.Customer.name.asc()).all()


@router.get("/{customer_id}", response_model=schemas.CustomerRead)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_read_db),
    current_user: User = Depends(get_current_shop_user),
):
    return _get_customer(db, current_user.shop_id, customer_id)


@router.post(
    "/",
    response_model=schemas.CustomerRead,
    status_code=status.HTTP_201_CREATED,
)
def create_customer(
    payload: schemas.CustomerCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.MANAGER)),
):
    data = payload.model_dump()
    data["name"] = data["name"].strip()
    customer = models.Customer(shop_id=current_user.shop_id, **data)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@router.put("/{customer_id}", response_model=schemas.CustomerRead)
def update_customer(
    customer_id: int,
    payload: schemas.CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.MANAGER)),
):
    customer = _get_customer(db, current_user.shop_id, customer_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(customer, field, value)

    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer
