from __future__ import annotations

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas

logger = logging.getLogger(__name__)


def create_audit_event(
    db: Session,
    *,
    shop_id: str,
    data: schemas.AuditEventCreate,
) -> models.AuditEvent:
    event = models.AuditEvent(shop_id=shop_id, **data.model_dump(exclude={"metadata", "occurred_at"}))
    event.metadata_json = data.metadata
    if data.occurred_at is not None:
        event.occurred_at = data.occurred_at
    db.add(event)
    db.flush()
    return event


def log_event(
    db: Session,
    *,
    shop_id: str,
    actor_user_id: Optional[str],
    entity_type: str,
    entity_id: str,
    action: str,
    before: Optional[dict] = None,
    after: Optional[dict] = None,
    metadata: Optional[dict] = None,
    critical: bool = False,
) -> Optional[models.AuditEvent]:
    """
    Append one audit row in the caller's transaction.

    Status transitions and timesheet approvals pass `critical=True`: if the
    row cannot be written the error propagates and the caller's change is
    rolled back with it. Other events are written inside a savepoint so a
    failed insert is logged and dropped without spoiling the session.
    """
    data = schemas.AuditEventCreate(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor_user_id=actor_user_id,
        before=before,
        after=after,
        metadata=metadata,
    )
    if critical:
        return create_audit_event(db, shop_id=shop_id, data=data)

    try:
        with db.begin_nested():
            return create_audit_event(db, shop_id=shop_id, data=data)
    except SQLAlchemyError:
        logger.warning(
            "Audit event dropped",
            exc_info=True,
            extra={
                "shop_id": shop_id,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "action": action,
            },
        )
        return None


def list_audit_events(
    db: Session,
    *,
    shop_id: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    action: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = 200,
) -> List[models.AuditEvent]:
    """Newest first, always narrowed to one shop."""
    query = db.query(models.AuditEvent).filter(models.AuditEvent.shop_id == shop_id)
    if entity_type:
        query = query.filter(models.AuditEvent.entity_type == entity_type)
    if entity_id:
        query = query.filter(models.AuditEvent.entity_id == entity_id)
    if action:
        query = query.filter(models.AuditEvent.action == action)
    if start:
        query = query.filter(models.AuditEvent.occurred_at >= start)
    if end:
        query = query.filter(models.AuditEvent.occurred_at <= end)
    return (
        query.order_by(models.AuditEvent.occurred_at.desc(), models.AuditEvent.id.desc())
        .limit(limit)
        .all()
    )


def entity_history(
    db: Session,
    *,
    shop_id: str,
    entity_type: str,
    entity_id: str,
) -> List[models.AuditEvent]:
    """Every event for one record, oldest first, e.g. a work order's status trail."""
    return (
        db.query(models.AuditEvent)
        .filter(
            models.AuditEvent.shop_id == shop_id,
            models.AuditEvent.entity_type == entity_type,
            models.AuditEvent.entity_id == entity_id,
        )
        .order_by(models.AuditEvent.occurred_at.asc(), models.AuditEvent.id.asc())
        .all()
    )
