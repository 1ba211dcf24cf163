# backend/shopdb/apps/work/numbering.py

"""Per-shop, per-month work-order numbers: WO<YY><MM>-<seq>."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from shopdb.utils.identifiers import format_work_order_number, work_order_prefix

from . import models


def next_work_order_number(
    db: Session,
    *,
    shop_id: str,
    now: Optional[datetime] = None,
) -> str:
    """
    Next number in the shop's sequence for the month of `now`.

    Work orders are never physically deleted, so the count of numbers
    already issued under this month's prefix is also the highest sequence.
    Two concurrent creations can compute the same number; the unique
    (shop_id, wo_number) constraint rejects the loser, which retries.
    """
    now = now or datetime.now(timezone.utc)
    prefix = work_order_prefix(now.year, now.month)
    issued = (
        db.query(models.WorkOrder)
        .filter(
            models.WorkOrder.shop_id == shop_id,
            models.WorkOrder.wo_number.like(f"{prefix}-%"),
        )
        .count()
    )
    return format_work_order_number(now.year, now.month, issued + 1)
