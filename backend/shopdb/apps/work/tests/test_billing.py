from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from shopdb.apps.accounts import models as account_models
from shopdb.apps.customers import models as customer_models
from shopdb.apps.fleet import models as fleet_models
from shopdb.apps.timesheets import models as timesheet_models
from shopdb.apps.work import billing
from shopdb.apps.work import models as work_models
from shopdb.apps.work.errors import WorkOrderNotFound

Approved = timesheet_models.TimesheetStatusEnum.APPROVED
Pending = timesheet_models.TimesheetStatusEnum.PENDING
Rejected = timesheet_models.TimesheetStatusEnum.REJECTED
ItemType = work_models.WorkOrderItemTypeEnum


def _entry(hours, rate=None, status=Approved, is_billable=True):
    return SimpleNamespace(
        hours=Decimal(str(hours)),
        rate=Decimal(str(rate)) if rate is not None else None,
        status=status,
        is_billable=is_billable,
    )


def _item(item_type, quantity, unit_price):
    return SimpleNamespace(
        item_type=item_type,
        quantity=Decimal(str(quantity)),
        unit_price=Decimal(str(unit_price)) if unit_price is not None else None,
    )


def _work_order(estimated_labor=None, estimated_parts=None):
    return SimpleNamespace(id=1, estimated_labor=estimated_labor, estimated_parts=estimated_parts)


# ---------------------------------------------------------------------------
# summarize
# ---------------------------------------------------------------------------


def test_labor_and_parts_totals():
    summary = billing.summarize(
        _work_order(),
        labor_rate=Decimal("85"),
        timesheet_entries=[_entry(3, 95), _entry(2, 85)],
        line_items=[_item(ItemType.PARTS, 2, "28.50")],
    )

    assert summary.labor_total == Decimal("455")
    assert summary.parts_total == Decimal("57")
    assert summary.subcontract_total == Decimal("0")
    assert summary.grand_total == Decimal("512")
    assert summary.display_total == Decimal("512")
    assert summary.labor_hours == Decimal("5")
    assert summary.is_provisional is False


def test_entry_without_rate_uses_shop_rate():
    summary = billing.summarize(
        _work_order(),
        labor_rate=Decimal("95"),
        timesheet_entries=[_entry("1.5"), _entry(1, 0)],
        line_items=[],
    )

    # a zero rate is treated as unset, like a missing one
    assert summary.labor_total == Decimal("237.5")


def test_unapproved_or_non_billable_entries_do_not_count():
    summary = billing.summarize(
        _work_order(),
        labor_rate=Decimal("85"),
        timesheet_entries=[
            _entry(8, 95, status=Pending),
            _entry(4, 95, status=Rejected),
            _entry(6, 95, is_billable=False),
            _entry(2, 100),
        ],
        line_items=[],
    )

    assert summary.labor_total == Decimal("200")
    assert summary.labor_hours == Decimal("2")


def test_status_values_may_be_plain_strings():
    summary = billing.summarize(
        _work_order(),
        labor_rate=Decimal("85"),
        timesheet_entries=[_entry(1, status="approved"), _entry(1, status="pending")],
        line_items=[_item("parts", 1, 10), _item("subcontract", 1, 40)],
    )

    assert summary.labor_total == Decimal("85")
    assert summary.parts_total == Decimal("10")
    assert summary.subcontract_total == Decimal("40")


def test_subcontract_and_labor_items_are_split():
    summary = billing.summarize(
        _work_order(),
        labor_rate=Decimal("85"),
        timesheet_entries=[],
        line_items=[
            _item(ItemType.SUBCONTRACT, 1, "450.00"),
            _item(ItemType.PARTS, 3, "12.00"),
            _item(ItemType.PARTS, 1, None),
            # labour line items are descriptive; labour is billed from timesheets
            _item(ItemType.LABOR, 2, "95.00"),
        ],
    )

    assert summary.subcontract_total == Decimal("450.00")
    assert summary.parts_total == Decimal("36.00")
    assert summary.labor_total == Decimal("0")
    assert summary.grand_total == Decimal("486.00")


def test_empty_work_order_falls_back_to_estimates():
    wo = _work_order(estimated_labor=Decimal("1400.00"), estimated_parts=Decimal("350.00"))

    summary = billing.summarize(
        wo, labor_rate=Decimal("85"), timesheet_entries=[], line_items=[]
    )

    assert summary.grand_total == Decimal("0")
    assert summary.display_total == Decimal("1750.00")
    assert summary.is_provisional is True
    # the fallback is never written back
    assert wo.estimated_labor == Decimal("1400.00")
    assert wo.estimated_parts == Decimal("350.00")


def test_missing_estimates_count_as_zero():
    summary = billing.summarize(
        _work_order(estimated_parts=Decimal("120")),
        labor_rate=Decimal("85"),
        timesheet_entries=[_entry(3, status=Pending)],
        line_items=[],
    )

    assert summary.grand_total == Decimal("0")
    assert summary.display_total == Decimal("120")

    summary = billing.summarize(
        _work_order(), labor_rate=Decimal("85"), timesheet_entries=[], line_items=[]
    )
    assert summary.display_total == Decimal("0")


# ---------------------------------------------------------------------------
# Loading from the database
# ---------------------------------------------------------------------------


def _seed(db, code="ALPHA", labor_rate=Decimal("95.00")):
    shop = account_models.Shop(code=code, name=f"{code} Aviation", slug=code.lower(), labor_rate=labor_rate)
    db.add(shop)
    db.flush()
    user = account_models.User(
        shop_id=shop.id,
        email=f"mech@{code.lower()}.example.com",
        first_name="Sam",
        last_name="Okafor",
        role=account_models.UserRole.MECHANIC,
        hashed_password="test-hash",
    )
    customer = customer_models.Customer(shop_id=shop.id, name="Blue Sky Flying Club")
    db.add_all([user, customer])
    db.flush()
    aircraft = fleet_models.Aircraft(shop_id=shop.id, registration=f"N{code[:3]}1", customer_id=customer.id)
    db.add(aircraft)
    db.flush()
    wo = work_models.WorkOrder(
        shop_id=shop.id,
        wo_number="WO2610-004",
        aircraft_id=aircraft.id,
        customer_id=customer.id,
        title="Annual inspection",
        status=work_models.WorkOrderStatusEnum.COMPLETED,
        actual_end=datetime(2026, 10, 9, 17, 0),
        estimated_labor=Decimal("1400.00"),
    )
    db.add(wo)
    db.commit()
    return shop, user, wo


def _book(db, shop, user, wo, hours, rate=None, status=Approved, is_billable=True, work_date=None):
    entry = timesheet_models.TimesheetEntry(
        shop_id=shop.id,
        user_id=user.id,
        work_order_id=wo.id,
        work_date=work_date or date(2026, 10, 8),
        hours=Decimal(str(hours)),
        rate=Decimal(str(rate)) if rate is not None else None,
        status=status,
        is_billable=is_billable,
        description="Inspection",
    )
    db.add(entry)
    db.commit()
    return entry


def test_get_billing_summary_uses_shop_rate(db_session):
    shop, user, wo = _seed(db_session)
    _book(db_session, shop, user, wo, 3)                      # shop rate 95
    _book(db_session, shop, user, wo, 2, rate=85)
    _book(db_session, shop, user, wo, 5, status=Pending)
    db_session.add(
        work_models.WorkOrderItem(
            work_order_id=wo.id,
            item_type=ItemType.PARTS,
            description="Spark plug",
            quantity=Decimal("2"),
            unit_price=Decimal("28.50"),
        )
    )
    db_session.commit()

    summary = billing.get_billing_summary(db_session, shop_id=shop.id, work_order_id=wo.id)

    assert summary.work_order_id == wo.id
    assert summary.labor_rate == Decimal("95.00")
    assert summary.labor_total == Decimal("455")
    assert summary.parts_total == Decimal("57")
    assert summary.grand_total == Decimal("512")
    assert summary.is_provisional is False


def test_get_billing_summary_for_empty_work_order(db_session):
    shop, _user, wo = _seed(db_session)

    summary = billing.get_billing_summary(db_session, shop_id=shop.id, work_order_id=wo.id)

    assert summary.grand_total == Decimal("0")
    assert summary.display_total == Decimal("1400.00")
    db_session.refresh(wo)
    assert wo.estimated_labor == Decimal("1400.00")
    assert wo.estimated_parts is None


def test_get_billing_summary_is_tenant_scoped(db_session):
    _shop, _user, wo = _seed(db_session)
    other, _other_user, _other_wo = _seed(db_session, code="BRAVO")

    with pytest.raises(WorkOrderNotFound):
        billing.get_billing_summary(db_session, shop_id=other.id, work_order_id=wo.id)


def test_build_invoice(db_session):
    shop, user, wo = _seed(db_session)
    _book(db_session, shop, user, wo, 3, work_date=date(2026, 10, 7))
    _book(db_session, shop, user, wo, 4, is_billable=False)
    db_session.add_all(
        [
            work_models.WorkOrderItem(
                work_order_id=wo.id,
                item_type=ItemType.PARTS,
                description="Oil filter",
                part_number="CH48110-1",
                quantity=Decimal("1"),
                unit_price=Decimal("32.00"),
            ),
            work_models.WorkOrderItem(
                work_order_id=wo.id,
                item_type=ItemType.SUBCONTRACT,
                description="Prop overhaul",
                quantity=Decimal("1"),
                unit_price=Decimal("2100.00"),
            ),
        ]
    )
    db_session.commit()

    invoice = billing.build_invoice(db_session, shop_id=shop.id, work_order_id=wo.id)

    assert invoice["invoice_number"] == "INV2610-004"
    assert invoice["invoice_date"] == datetime(2026, 10, 9, 17, 0)
    assert invoice["shop_name"] == "ALPHA Aviation"
    assert invoice["aircraft_registration"] == "NALP1"
    assert invoice["customer_name"] == "Blue Sky Flying Club"
    assert len(invoice["labor_lines"]) == 1
    assert invoice["labor_lines"][0]["mechanic"] == "Sam Okafor"
    assert invoice["labor_lines"][0]["amount"] == Decimal("285")
    assert [line["part_number"] for line in invoice["parts_lines"]] == ["CH48110-1"]
    assert invoice["subcontract_lines"][0]["amount"] == Decimal("2100.00")
    assert invoice["summary"].grand_total == Decimal("2417.00")


def test_invoice_date_defaults_to_now_before_completion(db_session):
    shop, _user, wo = _seed(db_session)
    wo.actual_end = None
    db_session.commit()
    now = datetime(2026, 10, 18, 12, 0)

    invoice = billing.build_invoice(db_session, shop_id=shop.id, work_order_id=wo.id, now=now)

    assert invoice["invoice_date"] == now
