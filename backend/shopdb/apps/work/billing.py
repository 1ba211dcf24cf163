# backend/shopdb/apps/work/billing.py

"""
Billing rollup for a work order.

`summarize` is pure arithmetic over records that are already loaded; it
never writes anything back. `get_billing_summary` and `build_invoice` do
the tenant-scoped loading and hand the records to it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from shopdb.apps.accounts import models as account_models
from shopdb.apps.timesheets import models as timesheet_models
from shopdb.utils.identifiers import invoice_number_for

from . import models
from .lifecycle import get_work_order

ZERO = Decimal("0")


@dataclass(frozen=True)
class BillingSummary:
    work_order_id: Optional[int]
    labor_rate: Decimal
    labor_hours: Decimal
    labor_total: Decimal
    parts_total: Decimal
    subcontract_total: Decimal
    grand_total: Decimal
    estimated_total: Decimal
    display_total: Decimal
    is_provisional: bool


def _dec(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _value(value: Any) -> Any:
    return getattr(value, "value", value)


def is_billable_labor(entry: Any) -> bool:
    return bool(entry.is_billable) and _value(entry.status) == (
        timesheet_models.TimesheetStatusEnum.APPROVED.value
    )


def entry_rate(entry: Any, labor_rate: Decimal) -> Decimal:
    """An entry's own rate wins over the shop rate; a zero rate counts as unset."""
    return _dec(entry.rate) if entry.rate else _dec(labor_rate)


def item_amount(item: Any) -> Decimal:
    return _dec(item.quantity) * _dec(item.unit_price)


def summarize(
    work_order: Any,
    *,
    labor_rate: Decimal,
    timesheet_entries: Iterable[Any],
    line_items: Iterable[Any],
) -> BillingSummary:
    labor_hours = ZERO
    labor_total = ZERO
    for entry in timesheet_entries:
        if not is_billable_labor(entry):
            continue
        hours = _dec(entry.hours)
        labor_hours += hours
        labor_total += hours * entry_rate(entry, labor_rate)

    parts_total = ZERO
    subcontract_total = ZERO
    for item in line_items:
        item_type = _value(item.item_type)
        if item_type == models.WorkOrderItemTypeEnum.PARTS.value:
            parts_total += item_amount(item)
        elif item_type == models.WorkOrderItemTypeEnum.SUBCONTRACT.value:
            subcontract_total += item_amount(item)

    grand_total = labor_total + parts_total + subcontract_total
    estimated_total = _dec(getattr(work_order, "estimated_labor", None)) + _dec(
        getattr(work_order, "estimated_parts", None)
    )
    is_provisional = grand_total == ZERO

    return BillingSummary(
        work_order_id=getattr(work_order, "id", None),
        labor_rate=_dec(labor_rate),
        labor_hours=labor_hours,
        labor_total=labor_total,
        parts_total=parts_total,
        subcontract_total=subcontract_total,
        grand_total=grand_total,
        estimated_total=estimated_total,
        display_total=estimated_total if is_provisional else grand_total,
        is_provisional=is_provisional,
    )


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _shop_labor_rate(db: Session, shop_id: str) -> Decimal:
    shop = db.query(account_models.Shop).filter(account_models.Shop.id == shop_id).first()
    if shop is None or shop.labor_rate is None:
        return account_models.DEFAULT_LABOR_RATE
    return _dec(shop.labor_rate)


def _load_entries(db: Session, *, shop_id: str, work_order_id: int):
    return (
        db.query(timesheet_models.TimesheetEntry)
        .filter(
            timesheet_models.TimesheetEntry.shop_id == shop_id,
            timesheet_models.TimesheetEntry.work_order_id == work_order_id,
        )
        .order_by(
            timesheet_models.TimesheetEntry.work_date.asc(),
            timesheet_models.TimesheetEntry.id.asc(),
        )
        .all()
    )


def _load_items(db: Session, *, work_order_id: int):
    return (
        db.query(models.WorkOrderItem)
        .filter(models.WorkOrderItem.work_order_id == work_order_id)
        .order_by(models.WorkOrderItem.created_at.asc(), models.WorkOrderItem.id.asc())
        .all()
    )


def get_billing_summary(db: Session, *, shop_id: str, work_order_id: int) -> BillingSummary:
    wo = get_work_order(db, shop_id=shop_id, work_order_id=work_order_id)
    return summarize(
        wo,
        labor_rate=_shop_labor_rate(db, shop_id),
        timesheet_entries=_load_entries(db, shop_id=shop_id, work_order_id=wo.id),
        line_items=_load_items(db, work_order_id=wo.id),
    )


def build_invoice(
    db: Session,
    *,
    shop_id: str,
    work_order_id: int,
    now: Optional[datetime] = None,
) -> dict:
    """
    Invoice view of a work order.

    Lists the billable labour, parts and subcontract lines next to the
    totals. The invoice date is the completion time, or now for a work
    order that has not been completed yet.
    """
    wo = get_work_order(db, shop_id=shop_id, work_order_id=work_order_id)
    shop = db.query(account_models.Shop).filter(account_models.Shop.id == shop_id).one()
    labor_rate = _shop_labor_rate(db, shop_id)
    entries = _load_entries(db, shop_id=shop_id, work_order_id=wo.id)
    items = _load_items(db, work_order_id=wo.id)

    labor_lines = []
    for entry in entries:
        if not is_billable_labor(entry):
            continue
        rate = entry_rate(entry, labor_rate)
        labor_lines.append(
            {
                "work_date": entry.work_date,
                "description": entry.description,
                "mechanic": entry.user.full_name if entry.user else None,
                "hours": _dec(entry.hours),
                "rate": rate,
                "amount": _dec(entry.hours) * rate,
            }
        )

    def _item_lines(item_type: models.WorkOrderItemTypeEnum) -> list[dict]:
        return [
            {
                "item_type": item.item_type,
                "description": item.description,
                "part_number": item.part_number,
                "quantity": _dec(item.quantity),
                "unit_price": _dec(item.unit_price),
                "amount": item_amount(item),
            }
            for item in items
            if _value(item.item_type) == item_type.value
        ]

    return {
        "invoice_number": invoice_number_for(wo.wo_number),
        "invoice_date": wo.actual_end or now or datetime.now(timezone.utc),
        "work_order": wo,
        "shop_name": shop.name,
        "aircraft_registration": wo.aircraft.registration,
        "customer_name": wo.customer.name if wo.customer else None,
        "labor_lines": labor_lines,
        "parts_lines": _item_lines(models.WorkOrderItemTypeEnum.PARTS),
        "subcontract_lines": _item_lines(models.WorkOrderItemTypeEnum.SUBCONTRACT),
        "summary": summarize(
            wo, labor_rate=labor_rate, timesheet_entries=entries, line_items=items
        ),
    }
