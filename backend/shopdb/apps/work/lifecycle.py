# backend/shopdb/apps/work/lifecycle.py

"""
Work-order status lifecycle.

The transition table below is the only place that decides which status
moves are legal. `request_transition` is the only code path that writes
`WorkOrder.status` after creation; it stamps `actual_start` / `actual_end`
in the same UPDATE as the status change and makes that UPDATE conditional
on the status it validated against, so two concurrent requests cannot both
succeed from the same starting status.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import FrozenSet, Mapping, Optional, Union

from sqlalchemy import DateTime, func, literal
from sqlalchemy.orm import Session

from shopdb.apps.accounts.models import User
from shopdb.apps.audit import services as audit_services

from . import models
from .errors import (
    InvalidTransition,
    StatusValidationError,
    TransitionConflict,
    WorkOrderNotFound,
)

logger = logging.getLogger(__name__)

Status = models.WorkOrderStatusEnum


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


WORK_ORDER_TRANSITIONS: Mapping[Status, FrozenSet[Status]] = {
    Status.DRAFT: frozenset({Status.OPEN}),
    Status.OPEN: frozenset({Status.IN_PROGRESS, Status.CANCELLED}),
    Status.IN_PROGRESS: frozenset(
        {Status.PENDING_PARTS, Status.COMPLETED, Status.CANCELLED}
    ),
    Status.PENDING_PARTS: frozenset({Status.IN_PROGRESS, Status.CANCELLED}),
    Status.COMPLETED: frozenset({Status.INVOICED, Status.IN_PROGRESS}),
    Status.INVOICED: frozenset(),
    # Reopen path
    Status.CANCELLED: frozenset({Status.OPEN}),
}

# A lost compare-and-set re-reads and re-validates; after this many losses
# in a row the request gives up with TransitionConflict, or InvalidTransition
# when the status it last saw no longer allows the move.
MAX_TRANSITION_ATTEMPTS = 3


def _status_value(value: Union[Status, str]) -> str:
    return value.value if isinstance(value, Status) else str(value)


# ---------------------------------------------------------------------------
# Table helpers
# ---------------------------------------------------------------------------


def parse_status(value: Optional[Union[Status, str]]) -> Status:
    """Coerce a requested status to the enum, or raise StatusValidationError."""
    if isinstance(value, Status):
        return value
    if value is None or not str(value).strip():
        raise StatusValidationError("Status is required")
    try:
        return Status(str(value).strip())
    except ValueError:
        raise StatusValidationError(f"Unknown status '{value}'")


def allowed_transitions(status: Union[Status, str]) -> FrozenSet[Status]:
    return WORK_ORDER_TRANSITIONS.get(Status(_status_value(status)), frozenset())


def can_transition(current: Union[Status, str], target: Union[Status, str]) -> bool:
    try:
        target_status = Status(_status_value(target))
    except ValueError:
        return False
    return target_status in allowed_transitions(current)


def _ensure_valid_transition(current: Status, target: Status) -> None:
    if target not in allowed_transitions(current):
        raise InvalidTransition(current, target)


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


def get_work_order(db: Session, *, shop_id: str, work_order_id: int) -> models.WorkOrder:
    """Tenant-scoped lookup. A foreign id is indistinguishable from a missing one."""
    wo = (
        db.query(models.WorkOrder)
        .filter(
            models.WorkOrder.id == work_order_id,
            models.WorkOrder.shop_id == shop_id,
        )
        .first()
    )
    if wo is None:
        raise WorkOrderNotFound()
    return wo


def _snapshot(wo: models.WorkOrder) -> dict:
    return {
        "status": _status_value(wo.status),
        "actual_start": wo.actual_start.isoformat() if wo.actual_start else None,
        "actual_end": wo.actual_end.isoformat() if wo.actual_end else None,
    }


def _transition_values(target: Status, now: datetime, actor_id: Optional[str]) -> dict:
    """Column values for the single UPDATE that applies a transition."""
    values = {
        models.WorkOrder.status: target,
        models.WorkOrder.updated_at: now,
        models.WorkOrder.updated_by_user_id: actor_id,
    }
    if target == Status.IN_PROGRESS:
        # First entry into in_progress only; later entries keep the original start
        values[models.WorkOrder.actual_start] = func.coalesce(
            models.WorkOrder.actual_start,
            literal(now, DateTime(timezone=True)),
        )
    elif target == Status.COMPLETED:
        # Always the most recent completion
        values[models.WorkOrder.actual_end] = now
    return values


# ---------------------------------------------------------------------------
# Transition
# ---------------------------------------------------------------------------


def request_transition(
    db: Session,
    *,
    shop_id: str,
    work_order_id: int,
    target_status: Optional[Union[Status, str]],
    actor: Optional[User] = None,
    now: Optional[datetime] = None,
) -> models.WorkOrder:
    """
    Move a work order to `target_status` if the table allows it.

    Raises WorkOrderNotFound, StatusValidationError, InvalidTransition or
    TransitionConflict.
    On any error nothing is written. On success the status change, the
    timestamp stamping and the audit event are flushed in the caller's
    transaction; the caller commits.
    """
    wo = get_work_order(db, shop_id=shop_id, work_order_id=work_order_id)
    target = parse_status(target_status)
    now = now or _utcnow()
    actor_id = actor.id if actor is not None else None

    for _attempt in range(MAX_TRANSITION_ATTEMPTS):
        current = Status(_status_value(wo.status))
        try:
            _ensure_valid_transition(current, target)
        except InvalidTransition:
            logger.info(
                "Rejected work order transition",
                extra={
                    "work_order_id": wo.id,
                    "shop_id": shop_id,
                    "from_status": current.value,
                    "to_status": target.value,
                },
            )
            raise

        before = _snapshot(wo)
        updated = (
            db.query(models.WorkOrder)
            .filter(
                models.WorkOrder.id == wo.id,
                models.WorkOrder.shop_id == shop_id,
                models.WorkOrder.status == current,
            )
            .update(_transition_values(target, now, actor_id), synchronize_session=False)
        )
        db.refresh(wo)
        if updated:
            break

        # Someone else moved it between our read and our write
        logger.info(
            "Work order status changed concurrently; re-validating",
            extra={
                "work_order_id": wo.id,
                "shop_id": shop_id,
                "expected_status": current.value,
                "found_status": _status_value(wo.status),
            },
        )
    else:
        if can_transition(wo.status, target):
            logger.warning(
                "Work order transition abandoned after repeated conflicts",
                extra={
                    "work_order_id": wo.id,
                    "shop_id": shop_id,
                    "found_status": _status_value(wo.status),
                    "to_status": target.value,
                    "attempts": MAX_TRANSITION_ATTEMPTS,
                },
            )
            raise TransitionConflict(wo.status, target)
        raise InvalidTransition(wo.status, target)

    audit_services.log_event(
        db,
        shop_id=shop_id,
        actor_user_id=actor_id,
        entity_type="WorkOrder",
        entity_id=str(wo.id),
        action="transition",
        before=before,
        after=_snapshot(wo),
        critical=True,
    )
    logger.info(
        "Work order status changed",
        extra={
            "work_order_id": wo.id,
            "wo_number": wo.wo_number,
            "shop_id": shop_id,
            "from_status": current.value,
            "to_status": target.value,
        },
    )
    return wo
