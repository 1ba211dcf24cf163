# backend/shopdb/apps/work/services.py

"""
Work-order CRUD, scoped to one shop per call.

Status changes are not made here; `cancel_work_order` and every other
status move go through `lifecycle.request_transition`.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopdb.apps.accounts.models import User
from shopdb.apps.audit import services as audit_services
from shopdb.apps.customers import models as customer_models
from shopdb.apps.fleet import models as fleet_models

from . import lifecycle, models, schemas
from .errors import RelatedRecordNotFound, WorkOrderError, WorkOrderNotFound, WorkOrderValidationError
from .numbering import next_work_order_number

logger = logging.getLogger(__name__)

NUMBER_ALLOCATION_ATTEMPTS = 5

_METER_PAIRS = (
    ("Hobbs", "hobbs_in", "hobbs_out"),
    ("Tach", "tach_in", "tach_out"),
)

# NOT NULL columns: an explicit null in an update keeps the stored value
_KEEP_ON_NULL = ("priority",)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _json_value(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return getattr(value, "value", value)


def _record_audit(
    db: Session,
    *,
    shop_id: str,
    wo: models.WorkOrder,
    action: str,
    actor: Optional[User],
    before: Optional[dict],
    after: Optional[dict],
) -> None:
    audit_services.log_event(
        db,
        shop_id=shop_id,
        actor_user_id=actor.id if actor else None,
        entity_type="WorkOrder",
        entity_id=str(wo.id),
        action=action,
        before=before,
        after=after,
    )


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


get_work_order = lifecycle.get_work_order


def get_work_order_by_number(db: Session, *, shop_id: str, wo_number: str) -> models.WorkOrder:
    wo = (
        db.query(models.WorkOrder)
        .filter(
            models.WorkOrder.shop_id == shop_id,
            models.WorkOrder.wo_number == wo_number,
        )
        .first()
    )
    if wo is None:
        raise WorkOrderNotFound()
    return wo


def list_work_orders(
    db: Session,
    *,
    shop_id: str,
    status: Optional[models.WorkOrderStatusEnum] = None,
    aircraft_id: Optional[int] = None,
    customer_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[models.WorkOrder]:
    q = db.query(models.WorkOrder).filter(models.WorkOrder.shop_id == shop_id)
    if status:
        q = q.filter(models.WorkOrder.status == status)
    if aircraft_id:
        q = q.filter(models.WorkOrder.aircraft_id == aircraft_id)
    if customer_id:
        q = q.filter(models.WorkOrder.customer_id == customer_id)
    return (
        q.order_by(models.WorkOrder.created_at.desc(), models.WorkOrder.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def _ensure_aircraft_in_shop(db: Session, *, shop_id: str, aircraft_id: int) -> fleet_models.Aircraft:
    aircraft = (
        db.query(fleet_models.Aircraft)
        .filter(
            fleet_models.Aircraft.id == aircraft_id,
            fleet_models.Aircraft.shop_id == shop_id,
        )
        .first()
    )
    if aircraft is None:
        raise RelatedRecordNotFound("Aircraft not found")
    return aircraft


def _ensure_customer_in_shop(db: Session, *, shop_id: str, customer_id: int) -> None:
    exists = (
        db.query(customer_models.Customer.id)
        .filter(
            customer_models.Customer.id == customer_id,
            customer_models.Customer.shop_id == shop_id,
        )
        .first()
    )
    if not exists:
        raise RelatedRecordNotFound("Customer not found")


def _ensure_meters_in_order(values: dict) -> None:
    for label, in_field, out_field in _METER_PAIRS:
        meter_in = values.get(in_field)
        meter_out = values.get(out_field)
        if meter_in is not None and meter_out is not None and meter_out < meter_in:
            raise WorkOrderValidationError(
                f"{label} out ({meter_out}) cannot be less than {label} in ({meter_in})"
            )


# ---------------------------------------------------------------------------
# Create / update
# ---------------------------------------------------------------------------


def create_work_order(
    db: Session,
    *,
    shop_id: str,
    payload: schemas.WorkOrderCreate,
    actor: Optional[User] = None,
    now: Optional[datetime] = None,
) -> models.WorkOrder:
    """
    Create a draft work order with the next number in the shop's sequence.

    The aircraft (and customer, when given) must belong to the shop. When
    the customer is omitted the aircraft's owner is used.
    """
    aircraft = _ensure_aircraft_in_shop(db, shop_id=shop_id, aircraft_id=payload.aircraft_id)
    customer_id = payload.customer_id or aircraft.customer_id
    if payload.customer_id:
        _ensure_customer_in_shop(db, shop_id=shop_id, customer_id=payload.customer_id)

    now = now or _utcnow()
    for attempt in range(1, NUMBER_ALLOCATION_ATTEMPTS + 1):
        wo = models.WorkOrder(
            shop_id=shop_id,
            wo_number=next_work_order_number(db, shop_id=shop_id, now=now),
            aircraft_id=aircraft.id,
            customer_id=customer_id,
            title=payload.title.strip(),
            description=payload.description,
            work_type=payload.work_type,
            priority=payload.priority or 0,
            status=models.WorkOrderStatusEnum.DRAFT,
            scheduled_start=payload.scheduled_start,
            scheduled_end=payload.scheduled_end,
            hobbs_in=payload.hobbs_in,
            tach_in=payload.tach_in,
            estimated_labor=payload.estimated_labor,
            estimated_parts=payload.estimated_parts,
            assigned_mechanic=payload.assigned_mechanic,
            inspector=payload.inspector,
            notes=payload.notes,
            created_by_user_id=actor.id if actor else None,
            updated_by_user_id=actor.id if actor else None,
        )
        try:
            with db.begin_nested():
                db.add(wo)
                db.flush()
        except IntegrityError:
            logger.info(
                "Work order number collision; retrying",
                extra={"shop_id": shop_id, "wo_number": wo.wo_number, "attempt": attempt},
            )
            continue
        break
    else:
        raise WorkOrderError("Could not allocate a work order number")

    _record_audit(
        db,
        shop_id=shop_id,
        wo=wo,
        action="create",
        actor=actor,
        before=None,
        after={"wo_number": wo.wo_number, "status": wo.status.value, "title": wo.title},
    )
    logger.info(
        "Work order created",
        extra={"work_order_id": wo.id, "wo_number": wo.wo_number, "shop_id": shop_id},
    )
    return wo


def update_work_order(
    db: Session,
    *,
    shop_id: str,
    work_order_id: int,
    payload: schemas.WorkOrderUpdate,
    actor: Optional[User] = None,
) -> models.WorkOrder:
    """
    Partial update. Only fields present in the payload are touched; meter
    readings are checked against the merged result so a lone `hobbs_out`
    is compared with the stored `hobbs_in`.
    """
    wo = get_work_order(db, shop_id=shop_id, work_order_id=work_order_id)
    data = payload.model_dump(exclude_unset=True)

    if "title" in data and not (data["title"] or "").strip():
        raise WorkOrderValidationError("Title is required")
    data = {
        field: value
        for field, value in data.items()
        if not (value is None and field in _KEEP_ON_NULL)
    }
    if data.get("customer_id"):
        _ensure_customer_in_shop(db, shop_id=shop_id, customer_id=data["customer_id"])

    merged = {
        field: data.get(field, getattr(wo, field))
        for _label, in_field, out_field in _METER_PAIRS
        for field in (in_field, out_field)
    }
    _ensure_meters_in_order(merged)

    before = {field: _json_value(getattr(wo, field)) for field in data}
    for field, value in data.items():
        setattr(wo, field, value)
    if actor is not None:
        wo.updated_by_user_id = actor.id

    db.add(wo)
    db.flush()

    _record_audit(
        db,
        shop_id=shop_id,
        wo=wo,
        action="update",
        actor=actor,
        before=before,
        after={field: _json_value(getattr(wo, field)) for field in data},
    )
    return wo


def cancel_work_order(
    db: Session,
    *,
    shop_id: str,
    work_order_id: int,
    actor: Optional[User] = None,
) -> models.WorkOrder:
    """Work orders are never deleted; DELETE cancels through the lifecycle."""
    return lifecycle.request_transition(
        db,
        shop_id=shop_id,
        work_order_id=work_order_id,
        target_status=models.WorkOrderStatusEnum.CANCELLED,
        actor=actor,
    )


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------


def list_items(db: Session, *, shop_id: str, work_order_id: int) -> List[models.WorkOrderItem]:
    wo = get_work_order(db, shop_id=shop_id, work_order_id=work_order_id)
    return (
        db.query(models.WorkOrderItem)
        .filter(models.WorkOrderItem.work_order_id == wo.id)
        .order_by(models.WorkOrderItem.created_at.asc(), models.WorkOrderItem.id.asc())
        .all()
    )


def add_item(
    db: Session,
    *,
    shop_id: str,
    work_order_id: int,
    payload: schemas.WorkOrderItemCreate,
    actor: Optional[User] = None,
) -> models.WorkOrderItem:
    wo = get_work_order(db, shop_id=shop_id, work_order_id=work_order_id)
    if payload.item_type is None or not (payload.description or "").strip():
        raise WorkOrderValidationError("Item type and description are required")

    item = models.WorkOrderItem(
        work_order_id=wo.id,
        item_type=payload.item_type,
        description=payload.description.strip(),
        part_number=payload.part_number,
        quantity=payload.quantity or Decimal("1"),
        unit_price=payload.unit_price,
        hours=payload.hours,
        rate=payload.rate,
        notes=payload.notes,
    )
    db.add(item)
    db.flush()

    _record_audit(
        db,
        shop_id=shop_id,
        wo=wo,
        action="add_item",
        actor=actor,
        before=None,
        after={
            "item_id": item.id,
            "item_type": item.item_type.value,
            "description": item.description,
            "quantity": str(item.quantity),
            "unit_price": _json_value(item.unit_price),
        },
    )
    return item
