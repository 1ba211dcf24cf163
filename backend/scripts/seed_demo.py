from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from shopdb.database import WriteSessionLocal
from shopdb.apps.accounts import models as account_models
from shopdb.apps.accounts import schemas as account_schemas
from shopdb.apps.accounts import services as account_services
from shopdb.apps.customers import models as customer_models
from shopdb.apps.fleet import models as fleet_models
from shopdb.apps.timesheets import models as timesheet_models
from shopdb.apps.timesheets import schemas as timesheet_schemas
from shopdb.apps.timesheets import services as timesheet_services
from shopdb.apps.work import lifecycle
from shopdb.apps.work import models as work_models
from shopdb.apps.work import schemas as work_schemas
from shopdb.apps.work import services as work_services


def _get_or_create_shop(db) -> account_models.Shop:
    shop = db.query(account_models.Shop).filter(account_models.Shop.slug == "demo-shop").first()
    if shop:
        return shop
    shop = account_services.create_shop(
        db,
        account_schemas.ShopCreate(
            code="DEMO",
            name="Demo Aviation Services",
            slug="demo-shop",
            address="1 Hangar Row, Municipal Airport",
            phone="+1-555-0100",
            email="service@demo-shop.example.com",
            faa_repair_station="D3MR123X",
            time_zone="America/Chicago",
            labor_rate=Decimal("95.00"),
        ),
    )
    db.commit()
    db.refresh(shop)
    return shop


def _get_or_create_user(
    db,
    shop: account_models.Shop,
    *,
    email: str,
    first_name: str,
    last_name: str,
    role: account_models.UserRole,
) -> account_models.User:
    user = (
        db.query(account_models.User)
        .filter(account_models.User.shop_id == shop.id, account_models.User.email == email)
        .first()
    )
    if user:
        return user
    user = account_services.create_user(
        db,
        account_schemas.UserCreate(
            shop_id=shop.id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role,
            password="ChangeMe123!",
        ),
    )
    db.commit()
    db.refresh(user)
    return user


def _get_or_create_aircraft(db, shop: account_models.Shop) -> fleet_models.Aircraft:
    aircraft = (
        db.query(fleet_models.Aircraft)
        .filter(fleet_models.Aircraft.shop_id == shop.id, fleet_models.Aircraft.registration == "N123DM")
        .first()
    )
    if aircraft:
        return aircraft

    customer = customer_models.Customer(
        shop_id=shop.id,
        name="Blue Sky Flying Club",
        contact_name="Pat Jordan",
        email="ops@bluesky.example.com",
        phone="+1-555-0142",
        city="Springfield",
        state="IL",
    )
    db.add(customer)
    db.flush()

    aircraft = fleet_models.Aircraft(
        shop_id=shop.id,
        registration="N123DM",
        make="Cessna",
        model="172S",
        serial_number="172S10452",
        year=2008,
        customer_id=customer.id,
        total_time=Decimal("4312.6"),
    )
    db.add(aircraft)
    db.commit()
    db.refresh(aircraft)
    return aircraft


def _seed_annual_inspection(
    db,
    shop: account_models.Shop,
    aircraft: fleet_models.Aircraft,
    mechanic: account_models.User,
    manager: account_models.User,
) -> work_models.WorkOrder:
    """Annual inspection taken through to completed with booked hours and parts."""
    existing = (
        db.query(work_models.WorkOrder)
        .filter(
            work_models.WorkOrder.shop_id == shop.id,
            work_models.WorkOrder.title == "Annual inspection",
        )
        .first()
    )
    if existing:
        return existing

    wo = work_services.create_work_order(
        db,
        shop_id=shop.id,
        payload=work_schemas.WorkOrderCreate(
            aircraft_id=aircraft.id,
            title="Annual inspection",
            description="Annual per 14 CFR 91.409, including compression check.",
            work_type="annual",
            hobbs_in=Decimal("2210.4"),
            tach_in=Decimal("1987.2"),
            estimated_labor=Decimal("1400.00"),
            estimated_parts=Decimal("350.00"),
        ),
        actor=manager,
    )
    db.commit()

    for target in (
        work_models.WorkOrderStatusEnum.OPEN,
        work_models.WorkOrderStatusEnum.IN_PROGRESS,
    ):
        lifecycle.request_transition(
            db, shop_id=shop.id, work_order_id=wo.id, target_status=target, actor=manager
        )
        db.commit()

    work_services.add_item(
        db,
        shop_id=shop.id,
        work_order_id=wo.id,
        payload=work_schemas.WorkOrderItemCreate(
            item_type=work_models.WorkOrderItemTypeEnum.PARTS,
            description="Spark plug, fine wire",
            part_number="REM38E",
            quantity=Decimal("2"),
            unit_price=Decimal("28.50"),
        ),
        actor=mechanic,
    )

    for offset, hours, rate in ((1, Decimal("3"), Decimal("95")), (0, Decimal("2"), Decimal("85"))):
        entry = timesheet_services.create_entry(
            db,
            shop_id=shop.id,
            payload=timesheet_schemas.TimesheetEntryCreate(
                work_order_id=wo.id,
                description="Annual inspection",
                task_type="inspection",
                work_date=date.today() - timedelta(days=offset),
                hours=hours,
                rate=rate,
            ),
            actor=mechanic,
        )
        timesheet_services.set_entry_status(
            db,
            shop_id=shop.id,
            entry_id=entry.id,
            new_status=timesheet_models.TimesheetStatusEnum.APPROVED,
            actor=manager,
        )
    db.commit()

    work_services.update_work_order(
        db,
        shop_id=shop.id,
        work_order_id=wo.id,
        payload=work_schemas.WorkOrderUpdate(hobbs_out=Decimal("2211.1"), tach_out=Decimal("1987.8")),
        actor=mechanic,
    )
    lifecycle.request_transition(
        db,
        shop_id=shop.id,
        work_order_id=wo.id,
        target_status=work_models.WorkOrderStatusEnum.COMPLETED,
        actor=manager,
    )
    db.commit()
    db.refresh(wo)
    return wo


def main() -> None:
    db = WriteSessionLocal()
    try:
        shop = _get_or_create_shop(db)
        manager = _get_or_create_user(
            db,
            shop,
            email="manager@demo-shop.example.com",
            first_name="Dana",
            last_name="Reyes",
            role=account_models.UserRole.MANAGER,
        )
        mechanic = _get_or_create_user(
            db,
            shop,
            email="mechanic@demo-shop.example.com",
            first_name="Sam",
            last_name="Okafor",
            role=account_models.UserRole.MECHANIC,
        )
        aircraft = _get_or_create_aircraft(db, shop)
        wo = _seed_annual_inspection(db, shop, aircraft, mechanic, manager)
        print(f"Seeded {shop.name}: {wo.wo_number} ({wo.status.value})")
    finally:
        db.close()


if __name__ == "__main__":
    main()
