from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from shopdb.apps.accounts import models as account_models
from shopdb.apps.audit import models as audit_models
from shopdb.apps.customers import models as customer_models
from shopdb.apps.fleet import models as fleet_models
from shopdb.apps.work import models as work_models
from shopdb.apps.work import numbering, schemas, services
from shopdb.apps.work.errors import (
    InvalidTransition,
    RelatedRecordNotFound,
    WorkOrderNotFound,
    WorkOrderValidationError,
)
from shopdb.utils.identifiers import format_work_order_number, invoice_number_for

Status = work_models.WorkOrderStatusEnum

OCT = datetime(2026, 10, 5, 10, 0)
NOV = datetime(2026, 11, 2, 10, 0)


def _create_shop(db, code: str) -> account_models.Shop:
    shop = account_models.Shop(code=code, name=f"{code} Aviation", slug=code.lower())
    db.add(shop)
    db.commit()
    db.refresh(shop)
    return shop


def _create_customer(db, shop_id: str, name: str = "Blue Sky Flying Club") -> customer_models.Customer:
    customer = customer_models.Customer(shop_id=shop_id, name=name)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


def _create_aircraft(db, shop_id: str, customer_id=None) -> fleet_models.Aircraft:
    count = db.query(fleet_models.Aircraft).count()
    ac = fleet_models.Aircraft(
        shop_id=shop_id, registration=f"N{count + 200}WO", customer_id=customer_id
    )
    db.add(ac)
    db.commit()
    db.refresh(ac)
    return ac


def _create(db, shop_id, aircraft_id, now=OCT, **fields):
    payload = schemas.WorkOrderCreate(
        aircraft_id=aircraft_id, title=fields.pop("title", "100-hour inspection"), **fields
    )
    wo = services.create_work_order(db, shop_id=shop_id, payload=payload, now=now)
    db.commit()
    db.refresh(wo)
    return wo


@pytest.fixture()
def shop(db_session):
    return _create_shop(db_session, "ALPHA")


@pytest.fixture()
def aircraft(db_session, shop):
    customer = _create_customer(db_session, shop.id)
    return _create_aircraft(db_session, shop.id, customer_id=customer.id)


# ---------------------------------------------------------------------------
# Numbering
# ---------------------------------------------------------------------------


def test_number_format():
    assert format_work_order_number(2026, 10, 1) == "WO2610-001"
    assert format_work_order_number(2031, 3, 1234) == "WO3103-1234"
    assert invoice_number_for("WO2610-004") == "INV2610-004"


def test_numbers_increment_within_month(db_session, shop, aircraft):
    first = _create(db_session, shop.id, aircraft.id)
    second = _create(db_session, shop.id, aircraft.id)

    assert first.wo_number == "WO2610-001"
    assert second.wo_number == "WO2610-002"


def test_numbers_restart_each_month(db_session, shop, aircraft):
    _create(db_session, shop.id, aircraft.id, now=OCT)
    _create(db_session, shop.id, aircraft.id, now=OCT)

    november = _create(db_session, shop.id, aircraft.id, now=NOV)

    assert november.wo_number == "WO2611-001"


def test_numbers_are_per_shop(db_session, shop, aircraft):
    other = _create_shop(db_session, "BRAVO")
    other_aircraft = _create_aircraft(db_session, other.id)
    _create(db_session, shop.id, aircraft.id)
    _create(db_session, shop.id, aircraft.id)

    wo = _create(db_session, other.id, other_aircraft.id)

    assert wo.wo_number == "WO2610-001"
    assert numbering.next_work_order_number(db_session, shop_id=shop.id, now=OCT) == "WO2610-003"


def test_cancelled_work_orders_keep_their_number(db_session, shop, aircraft):
    wo = _create(db_session, shop.id, aircraft.id)
    wo.status = Status.CANCELLED
    db_session.commit()

    assert _create(db_session, shop.id, aircraft.id).wo_number == "WO2610-002"


def test_number_collision_is_retried(db_session, shop, aircraft, monkeypatch):
    _create(db_session, shop.id, aircraft.id)
    issued = iter(["WO2610-001", "WO2610-002"])
    monkeypatch.setattr(services, "next_work_order_number", lambda db, **kw: next(issued))

    wo = _create(db_session, shop.id, aircraft.id)

    assert wo.wo_number == "WO2610-002"
    assert db_session.query(work_models.WorkOrder).count() == 2


# ---------------------------------------------------------------------------
# Create / update
# ---------------------------------------------------------------------------


def test_create_starts_in_draft_with_aircraft_owner(db_session, shop, aircraft):
    wo = _create(
        db_session,
        shop.id,
        aircraft.id,
        hobbs_in=Decimal("2210.4"),
        estimated_labor=Decimal("1400.00"),
    )

    assert wo.status == Status.DRAFT
    assert wo.customer_id == aircraft.customer_id
    assert wo.actual_start is None
    assert wo.actual_end is None

    events = (
        db_session.query(audit_models.AuditEvent)
        .filter(audit_models.AuditEvent.entity_id == str(wo.id))
        .all()
    )
    assert [e.action for e in events] == ["create"]
    assert events[0].after["wo_number"] == "WO2610-001"


def test_create_rejects_aircraft_from_another_shop(db_session, shop):
    other = _create_shop(db_session, "BRAVO")
    foreign = _create_aircraft(db_session, other.id)

    with pytest.raises(RelatedRecordNotFound) as excinfo:
        _create(db_session, shop.id, foreign.id)
    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "Aircraft not found"


def test_create_rejects_customer_from_another_shop(db_session, shop, aircraft):
    other = _create_shop(db_session, "BRAVO")
    foreign = _create_customer(db_session, other.id, name="Elsewhere LLC")

    with pytest.raises(RelatedRecordNotFound):
        _create(db_session, shop.id, aircraft.id, customer_id=foreign.id)


def test_update_checks_meters_against_stored_values(db_session, shop, aircraft):
    wo = _create(db_session, shop.id, aircraft.id, hobbs_in=Decimal("2210.4"))

    with pytest.raises(WorkOrderValidationError) as excinfo:
        services.update_work_order(
            db_session,
            shop_id=shop.id,
            work_order_id=wo.id,
            payload=schemas.WorkOrderUpdate(hobbs_out=Decimal("2200.0")),
        )
    assert excinfo.value.message == "Hobbs out (2200.0) cannot be less than Hobbs in (2210.4)"


def test_update_changes_only_given_fields(db_session, shop, aircraft):
    wo = _create(db_session, shop.id, aircraft.id, notes="Bring logbooks")

    updated = services.update_work_order(
        db_session,
        shop_id=shop.id,
        work_order_id=wo.id,
        payload=schemas.WorkOrderUpdate(tach_out=Decimal("1988.0"), priority=2),
    )
    db_session.commit()

    assert updated.tach_out == Decimal("1988.0")
    assert updated.priority == 2
    assert updated.notes == "Bring logbooks"
    assert updated.status == Status.DRAFT


def test_update_rejects_blank_title(db_session, shop, aircraft):
    wo = _create(db_session, shop.id, aircraft.id)

    with pytest.raises(WorkOrderValidationError):
        services.update_work_order(
            db_session,
            shop_id=shop.id,
            work_order_id=wo.id,
            payload=schemas.WorkOrderUpdate(title="   "),
        )


def test_update_payload_has_no_status():
    payload = schemas.WorkOrderUpdate.model_validate({"status": "invoiced", "notes": "x"})

    assert "status" not in payload.model_dump(exclude_unset=True)


def test_update_unknown_work_order(db_session, shop):
    with pytest.raises(WorkOrderNotFound):
        services.update_work_order(
            db_session,
            shop_id=shop.id,
            work_order_id=999,
            payload=schemas.WorkOrderUpdate(notes="x"),
        )


# ---------------------------------------------------------------------------
# Cancel / lookups
# ---------------------------------------------------------------------------


def test_cancel_follows_lifecycle(db_session, shop, aircraft):
    draft = _create(db_session, shop.id, aircraft.id)

    # draft can only move to open
    with pytest.raises(InvalidTransition):
        services.cancel_work_order(db_session, shop_id=shop.id, work_order_id=draft.id)

    draft.status = Status.OPEN
    db_session.commit()
    cancelled = services.cancel_work_order(db_session, shop_id=shop.id, work_order_id=draft.id)
    db_session.commit()

    assert cancelled.status == Status.CANCELLED
    assert db_session.query(work_models.WorkOrder).count() == 1


def test_get_by_number_is_tenant_scoped(db_session, shop, aircraft):
    wo = _create(db_session, shop.id, aircraft.id)
    other = _create_shop(db_session, "BRAVO")

    found = services.get_work_order_by_number(db_session, shop_id=shop.id, wo_number=wo.wo_number)
    assert found.id == wo.id
    with pytest.raises(WorkOrderNotFound):
        services.get_work_order_by_number(db_session, shop_id=other.id, wo_number=wo.wo_number)


def test_list_filters(db_session, shop, aircraft):
    second_aircraft = _create_aircraft(db_session, shop.id)
    first = _create(db_session, shop.id, aircraft.id)
    second = _create(db_session, shop.id, second_aircraft.id)
    second.status = Status.OPEN
    db_session.commit()

    other = _create_shop(db_session, "BRAVO")
    _create(db_session, other.id, _create_aircraft(db_session, other.id).id)

    assert {wo.id for wo in services.list_work_orders(db_session, shop_id=shop.id)} == {
        first.id,
        second.id,
    }
    assert [
        wo.id for wo in services.list_work_orders(db_session, shop_id=shop.id, status=Status.OPEN)
    ] == [second.id]
    assert [
        wo.id
        for wo in services.list_work_orders(db_session, shop_id=shop.id, aircraft_id=aircraft.id)
    ] == [first.id]


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------


def test_add_item_defaults_quantity(db_session, shop, aircraft):
    wo = _create(db_session, shop.id, aircraft.id)

    item = services.add_item(
        db_session,
        shop_id=shop.id,
        work_order_id=wo.id,
        payload=schemas.WorkOrderItemCreate(
            item_type=work_models.WorkOrderItemTypeEnum.PARTS,
            description="  Oil filter ",
            unit_price=Decimal("32.00"),
        ),
    )
    db_session.commit()

    assert item.quantity == Decimal("1")
    assert item.description == "Oil filter"
    assert [i.id for i in services.list_items(db_session, shop_id=shop.id, work_order_id=wo.id)] == [
        item.id
    ]


@pytest.mark.parametrize(
    "payload",
    [
        {"description": "Oil filter"},
        {"item_type": "parts"},
        {"item_type": "parts", "description": "   "},
    ],
)
def test_add_item_requires_type_and_description(db_session, shop, aircraft, payload):
    wo = _create(db_session, shop.id, aircraft.id)

    with pytest.raises(WorkOrderValidationError) as excinfo:
        services.add_item(
            db_session,
            shop_id=shop.id,
            work_order_id=wo.id,
            payload=schemas.WorkOrderItemCreate(**payload),
        )
    assert excinfo.value.message == "Item type and description are required"


def test_items_of_foreign_work_order_are_hidden(db_session, shop, aircraft):
    wo = _create(db_session, shop.id, aircraft.id)
    other = _create_shop(db_session, "BRAVO")

    with pytest.raises(WorkOrderNotFound):
        services.list_items(db_session, shop_id=other.id, work_order_id=wo.id)
