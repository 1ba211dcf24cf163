# backend/shopdb/apps/timesheets/services.py

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from shopdb.apps.accounts import models as account_models
from shopdb.apps.audit import services as audit_services
from shopdb.apps.work import models as work_models

from . import models, schemas

logger = logging.getLogger(__name__)

# Edits to these on an approved entry withdraw the approval
_BILLING_FIELDS = ("hours", "rate", "is_billable", "work_order_id")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _snapshot(entry: models.TimesheetEntry) -> dict:
    return {
        "status": entry.status.value if entry.status else None,
        "hours": str(entry.hours) if entry.hours is not None else None,
        "is_billable": entry.is_billable,
        "rate": str(entry.rate) if entry.rate is not None else None,
    }


def _ensure_work_order_in_shop(db: Session, *, shop_id: str, work_order_id: int) -> None:
    exists = (
        db.query(work_models.WorkOrder.id)
        .filter(
            work_models.WorkOrder.id == work_order_id,
            work_models.WorkOrder.shop_id == shop_id,
        )
        .first()
    )
    if not exists:
        raise HTTPException(status_code=404, detail="Work order not found")


def _validate_hours(hours: Optional[Decimal]) -> None:
    if hours is None or hours <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Hours must be greater than 0",
        )


def get_entry(db: Session, *, shop_id: str, entry_id: int) -> models.TimesheetEntry:
    entry = (
        db.query(models.TimesheetEntry)
        .filter(
            models.TimesheetEntry.id == entry_id,
            models.TimesheetEntry.shop_id == shop_id,
        )
        .first()
    )
    if not entry:
        raise HTTPException(status_code=404, detail="Timesheet entry not found")
    return entry


def list_entries(
    db: Session,
    *,
    shop_id: str,
    user_id: Optional[str] = None,
    work_order_id: Optional[int] = None,
    status_filter: Optional[models.TimesheetStatusEnum] = None,
) -> List[models.TimesheetEntry]:
    q = db.query(models.TimesheetEntry).filter(models.TimesheetEntry.shop_id == shop_id)
    if user_id:
        q = q.filter(models.TimesheetEntry.user_id == user_id)
    if work_order_id:
        q = q.filter(models.TimesheetEntry.work_order_id == work_order_id)
    if status_filter:
        q = q.filter(models.TimesheetEntry.status == status_filter)
    return q.order_by(
        models.TimesheetEntry.work_date.desc(),
        models.TimesheetEntry.id.desc(),
    ).all()


def create_entry(
    db: Session,
    *,
    shop_id: str,
    payload: schemas.TimesheetEntryCreate,
    actor: account_models.User,
) -> models.TimesheetEntry:
    """
    Book hours for the acting user. New entries start as pending; the
    rate is the one given, else the shop's labour rate at booking time.
    """
    if payload.work_date is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Work date is required",
        )
    _validate_hours(payload.hours)

    if payload.work_order_id:
        _ensure_work_order_in_shop(db, shop_id=shop_id, work_order_id=payload.work_order_id)

    shop = db.query(account_models.Shop).filter(account_models.Shop.id == shop_id).first()
    rate = payload.rate or (shop.labor_rate if shop else None) or account_models.DEFAULT_LABOR_RATE

    entry = models.TimesheetEntry(
        shop_id=shop_id,
        user_id=actor.id,
        work_order_id=payload.work_order_id,
        description=payload.description,
        task_type=payload.task_type,
        work_date=payload.work_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        hours=payload.hours,
        is_billable=payload.is_billable,
        rate=rate,
        notes=payload.notes,
        status=models.TimesheetStatusEnum.PENDING,
    )
    db.add(entry)
    db.flush()
    return entry


def update_entry(
    db: Session,
    *,
    shop_id: str,
    entry_id: int,
    payload: schemas.TimesheetEntryUpdate,
    actor: account_models.User,
) -> models.TimesheetEntry:
    """
    Partial update. A null `is_billable` keeps the stored flag. Changing
    hours, rate, billability or the work order of an approved entry sends
    it back to pending, so billed labour always has a current approval.
    """
    entry = get_entry(db, shop_id=shop_id, entry_id=entry_id)
    data = payload.model_dump(exclude_unset=True)

    if "hours" in data:
        _validate_hours(data["hours"])
    if data.get("work_order_id"):
        _ensure_work_order_in_shop(db, shop_id=shop_id, work_order_id=data["work_order_id"])
    if "work_date" in data and data["work_date"] is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Work date is required",
        )
    if "is_billable" in data and data["is_billable"] is None:
        del data["is_billable"]

    before = _snapshot(entry)
    billing_changed = any(
        field in data and data[field] != getattr(entry, field) for field in _BILLING_FIELDS
    )

    for field, value in data.items():
        setattr(entry, field, value)

    reopened = billing_changed and entry.status == models.TimesheetStatusEnum.APPROVED
    if reopened:
        entry.status = models.TimesheetStatusEnum.PENDING
        entry.approved_by_user_id = None
        entry.approved_at = None

    db.add(entry)
    db.flush()

    if reopened:
        audit_services.log_event(
            db,
            shop_id=shop_id,
            actor_user_id=actor.id,
            entity_type="TimesheetEntry",
            entity_id=str(entry.id),
            action="reopen",
            before=before,
            after=_snapshot(entry),
            critical=True,
        )
        logger.info(
            "Approved timesheet entry edited; approval withdrawn",
            extra={
                "entry_id": entry.id,
                "shop_id": shop_id,
                "actor_user_id": actor.id,
                "fields": sorted(f for f in _BILLING_FIELDS if f in data),
            },
        )
    return entry


def set_entry_status(
    db: Session,
    *,
    shop_id: str,
    entry_id: int,
    new_status: models.TimesheetStatusEnum,
    actor: account_models.User,
    now: Optional[datetime] = None,
) -> models.TimesheetEntry:
    """
    Approve or reject an entry. Approval records who approved it and when;
    rejecting clears a previous approval so the hours drop out of billing.
    """
    entry = get_entry(db, shop_id=shop_id, entry_id=entry_id)
    before = _snapshot(entry)

    entry.status = new_status
    if new_status == models.TimesheetStatusEnum.APPROVED:
        entry.approved_by_user_id = actor.id
        entry.approved_at = now or _utcnow()
    else:
        entry.approved_by_user_id = None
        entry.approved_at = None

    db.add(entry)
    db.flush()

    audit_services.log_event(
        db,
        shop_id=shop_id,
        actor_user_id=actor.id,
        entity_type="TimesheetEntry",
        entity_id=str(entry.id),
        action=new_status.value,
        before=before,
        after=_snapshot(entry),
        critical=True,
    )
    logger.info(
        "Timesheet entry status changed",
        extra={
            "entry_id": entry.id,
            "shop_id": shop_id,
            "status": new_status.value,
            "actor_user_id": actor.id,
        },
    )
    return entry


def delete_entry(db: Session, *, shop_id: str, entry_id: int) -> None:
    entry = get_entry(db, shop_id=shop_id, entry_id=entry_id)
    db.delete(entry)
    db.flush()
