# backend/shopdb/apps/work/router.py

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from shopdb.database import get_db, get_read_db
from shopdb.security import get_current_shop_user, require_roles
from shopdb.apps.accounts.models import User, UserRole
from shopdb.apps.audit import schemas as audit_schemas
from shopdb.apps.audit import services as audit_services

from . import billing, lifecycle, models, schemas, services
from .errors import WorkOrderError

router = APIRouter(prefix="/work-orders", tags=["work-orders"])

# Roles allowed to plan and move work orders; ADMIN always passes.
WORK_ORDER_EDITORS = (UserRole.MANAGER, UserRole.MECHANIC, UserRole.INSPECTOR)


def _http_error(exc: WorkOrderError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


# ---------------------------------------------------------------------------
# Work orders
# ---------------------------------------------------------------------------


@router.get("/", response_model=List[schemas.WorkOrderRead])
def list_work_orders(
    status: Optional[models.WorkOrderStatusEnum] = None,
    aircraft_id: Optional[int] = None,
    customer_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_read_db),
    current_user: User = Depends(get_current_shop_user),
):
    """
    List the shop's work orders, newest first, with optional filters by
    status, aircraft and customer.
    """
    return services.list_work_orders(
        db,
        shop_id=current_user.shop_id,
        status=status,
        aircraft_id=aircraft_id,
        customer_id=customer_id,
        skip=skip,
        limit=limit,
    )


@router.get("/by-number/{wo_number}", response_model=schemas.WorkOrderRead)
def get_work_order_by_number(
    wo_number: str,
    db: Session = Depends(get_read_db),
    current_user: User = Depends(get_current_shop_user),
):
    try:
        return services.get_work_order_by_number(
            db, shop_id=current_user.shop_id, wo_number=wo_number
        )
    except WorkOrderError as exc:
        raise _http_error(exc)


@router.get("/{work_order_id}", response_model=schemas.WorkOrderRead)
def get_work_order(
    work_order_id: int,
    db: Session = Depends(get_read_db),
    current_user: User = Depends(get_current_shop_user),
):
    try:
        return services.get_work_order(
            db, shop_id=current_user.shop_id, work_order_id=work_order_id
        )
    except WorkOrderError as exc:
        raise _http_error(exc)


@router.post(
    "/",
    response_model=schemas.WorkOrderRead,
    status_code=status.HTTP_201_CREATED,
)
def create_work_order(
    payload: schemas.WorkOrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*WORK_ORDER_EDITORS)),
):
    """
    Create a new work order in draft, numbered WO<YY><MM>-<seq> within the
    caller's shop.
    """
    try:
        wo = services.create_work_order(
            db, shop_id=current_user.shop_id, payload=payload, actor=current_user
        )
    except WorkOrderError as exc:
        db.rollback()
        raise _http_error(exc)
    db.commit()
    db.refresh(wo)
    return wo


@router.put("/{work_order_id}", response_model=schemas.WorkOrderRead)
def update_work_order(
    work_order_id: int,
    payload: schemas.WorkOrderUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*WORK_ORDER_EDITORS)),
):
    """
    Update planning, meter and estimate fields. Status cannot be changed
    here; use PATCH /work-orders/{id}/status.
    """
    try:
        wo = services.update_work_order(
            db,
            shop_id=current_user.shop_id,
            work_order_id=work_order_id,
            payload=payload,
            actor=current_user,
        )
    except WorkOrderError as exc:
        db.rollback()
        raise _http_error(exc)
    db.commit()
    db.refresh(wo)
    return wo


@router.patch("/{work_order_id}/status", response_model=schemas.WorkOrderRead)
def change_work_order_status(
    work_order_id: int,
    payload: schemas.StatusChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_shop_user),
):
    """
    Move a work order along its lifecycle.

    - 404 if the id is unknown or belongs to another shop
    - 400 "Status is required" when the body has no status
    - 400 "Cannot change status from '<current>' to '<target>'" otherwise
    """
    try:
        wo = lifecycle.request_transition(
            db,
            shop_id=current_user.shop_id,
            work_order_id=work_order_id,
            target_status=payload.status,
            actor=current_user,
        )
    except WorkOrderError as exc:
        db.rollback()
        raise _http_error(exc)
    db.commit()
    db.refresh(wo)
    return wo


@router.delete("/{work_order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_work_order(
    work_order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.MANAGER)),
):
    """
    Cancel a work order. Nothing is physically deleted, and the cancel
    must be a legal transition from the current status.
    """
    try:
        services.cancel_work_order(
            db,
            shop_id=current_user.shop_id,
            work_order_id=work_order_id,
            actor=current_user,
        )
    except WorkOrderError as exc:
        db.rollback()
        raise _http_error(exc)
    db.commit()
    return


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------


@router.get("/{work_order_id}/items", response_model=List[schemas.WorkOrderItemRead])
def list_work_order_items(
    work_order_id: int,
    db: Session = Depends(get_read_db),
    current_user: User = Depends(get_current_shop_user),
):
    try:
        return services.list_items(
            db, shop_id=current_user.shop_id, work_order_id=work_order_id
        )
    except WorkOrderError as exc:
        raise _http_error(exc)


@router.post(
    "/{work_order_id}/items",
    response_model=schemas.WorkOrderItemRead,
    status_code=status.HTTP_201_CREATED,
)
def add_work_order_item(
    work_order_id: int,
    payload: schemas.WorkOrderItemCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*WORK_ORDER_EDITORS)),
):
    try:
        item = services.add_item(
            db,
            shop_id=current_user.shop_id,
            work_order_id=work_order_id,
            payload=payload,
            actor=current_user,
        )
    except WorkOrderError as exc:
        db.rollback()
        raise _http_error(exc)
    db.commit()
    db.refresh(item)
    return item


# ---------------------------------------------------------------------------
# Billing
# ---------------------------------------------------------------------------


@router.get("/{work_order_id}/billing", response_model=schemas.BillingSummaryRead)
def get_work_order_billing(
    work_order_id: int,
    db: Session = Depends(get_read_db),
    current_user: User = Depends(get_current_shop_user),
):
    """
    Labour, parts and subcontract totals. When nothing has been booked yet
    `display_total` falls back to the estimates and `is_provisional` is set.
    """
    try:
        summary = billing.get_billing_summary(
            db, shop_id=current_user.shop_id, work_order_id=work_order_id
        )
    except WorkOrderError as exc:
        raise _http_error(exc)
    return schemas.BillingSummaryRead.model_validate(summary)


@router.get("/{work_order_id}/invoice", response_model=schemas.InvoiceRead)
def get_work_order_invoice(
    work_order_id: int,
    db: Session = Depends(get_read_db),
    current_user: User = Depends(get_current_shop_user),
):
    try:
        invoice = billing.build_invoice(
            db, shop_id=current_user.shop_id, work_order_id=work_order_id
        )
    except WorkOrderError as exc:
        raise _http_error(exc)

    invoice["work_order"] = schemas.WorkOrderRead.model_validate(invoice["work_order"])
    invoice["summary"] = schemas.BillingSummaryRead.model_validate(invoice["summary"])
    return schemas.InvoiceRead(**invoice)


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


@router.get("/{work_order_id}/history", response_model=List[audit_schemas.AuditEventRead])
def get_work_order_history(
    work_order_id: int,
    db: Session = Depends(get_read_db),
    current_user: User = Depends(get_current_shop_user),
):
    """Creation, edits, line items and every status move, oldest first."""
    try:
        wo = services.get_work_order(
            db, shop_id=current_user.shop_id, work_order_id=work_order_id
        )
    except WorkOrderError as exc:
        raise _http_error(exc)
    return audit_services.entity_history(
        db, shop_id=current_user.shop_id, entity_type="WorkOrder", entity_id=str(wo.id)
    )
