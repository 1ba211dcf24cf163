# backend/shopdb/apps/timesheets/router.py

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shopdb.database import get_db
from shopdb.security import get_current_shop_user, require_roles
from shopdb.apps.accounts.models import User, UserRole

from . import models, schemas, services

router = APIRouter(prefix="/timesheets", tags=["timesheets"])


@router.get("/", response_model=List[schemas.TimesheetEntryRead])
def list_timesheet_entries(
    user_id: Optional[str] = None,
    work_order_id: Optional[int] = None,
    status: Optional[models.TimesheetStatusEnum] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_shop_user),
):
    """Entries for the caller's shop, newest work date first."""
    return services.list_entries(
        db,
        shop_id=current_user.shop_id,
        user_id=user_id,
        work_order_id=work_order_id,
        status_filter=status,
    )


@router.post(
    "/",
    response_model=schemas.TimesheetEntryRead,
    status_code=status.HTTP_201_CREATED,
)
def create_timesheet_entry(
    payload: schemas.TimesheetEntryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_shop_user),
):
    entry = services.create_entry(
        db, shop_id=current_user.shop_id, payload=payload, actor=current_user
    )
    db.commit()
    db.refresh(entry)
    return entry


@router.get("/{entry_id}", response_model=schemas.TimesheetEntryRead)
def get_timesheet_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_shop_user),
):
    return services.get_entry(db, shop_id=current_user.shop_id, entry_id=entry_id)


@router.put("/{entry_id}", response_model=schemas.TimesheetEntryRead)
def update_timesheet_entry(
    entry_id: int,
    payload: schemas.TimesheetEntryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_shop_user),
):
    entry = services.update_entry(
        db,
        shop_id=current_user.shop_id,
        entry_id=entry_id,
        payload=payload,
        actor=current_user,
    )
    db.commit()
    db.refresh(entry)
    return entry


@router.post("/{entry_id}/approve", response_model=schemas.TimesheetEntryRead)
def approve_timesheet_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.MANAGER)),
):
    """Managers (and admins) approve hours; only approved hours are billed."""
    entry = services.set_entry_status(
        db,
        shop_id=current_user.shop_id,
        entry_id=entry_id,
        new_status=models.TimesheetStatusEnum.APPROVED,
        actor=current_user,
    )
    db.commit()
    db.refresh(entry)
    return entry


@router.post("/{entry_id}/reject", response_model=schemas.TimesheetEntryRead)
def reject_timesheet_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.MANAGER)),
):
    entry = services.set_entry_status(
        db,
        shop_id=current_user.shop_id,
        entry_id=entry_id,
        new_status=models.TimesheetStatusEnum.REJECTED,
        actor=current_user,
    )
    db.commit()
    db.refresh(entry)
    return entry


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_timesheet_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_shop_user),
):
    services.delete_entry(db, shop_id=current_user.shop_id, entry_id=entry_id)
    db.commit()
    return
