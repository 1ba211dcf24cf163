from __future__ import annotations

import pytest
from fastapi import HTTPException

from shopdb.apps.accounts import models as account_models
from shopdb.apps.customers import router as customers_router
from shopdb.apps.customers import schemas as customer_schemas
from shopdb.apps.fleet import router as fleet_router
from shopdb.apps.fleet import schemas as fleet_schemas


def _create_shop_user(db, code: str) -> account_models.User:
    shop = account_models.Shop(code=code, name=f"{code} Aviation", slug=code.lower())
    db.add(shop)
    db.flush()
    user = account_models.User(
        shop_id=shop.id,
        email=f"manager@{code.lower()}.example.com",
        first_name="Dana",
        last_name="Reyes",
        role=account_models.UserRole.MANAGER,
        hashed_password="test-hash",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def test_registration_is_normalised_and_unique_per_shop(db_session):
    alpha = _create_shop_user(db_session, "ALPHA")
    bravo = _create_shop_user(db_session, "BRAVO")

    ac = fleet_router.create_aircraft(
        fleet_schemas.AircraftCreate(registration=" n123dm ", make="Cessna", model="172S"),
        db=db_session,
        current_user=alpha,
    )
    assert ac.registration == "N123DM"

    with pytest.raises(HTTPException) as excinfo:
        fleet_router.create_aircraft(
            fleet_schemas.AircraftCreate(registration="N123DM"), db=db_session, current_user=alpha
        )
    assert excinfo.value.status_code == 409

    # the same tail number may be on file at another shop
    other = fleet_router.create_aircraft(
        fleet_schemas.AircraftCreate(registration="N123DM"), db=db_session, current_user=bravo
    )
    assert other.shop_id == bravo.shop_id


def test_aircraft_lookups_are_shop_scoped(db_session):
    alpha = _create_shop_user(db_session, "ALPHA")
    bravo = _create_shop_user(db_session, "BRAVO")
    ac = fleet_router.create_aircraft(
        fleet_schemas.AircraftCreate(registration="N77AL"), db=db_session, current_user=alpha
    )

    assert [a.id for a in fleet_router.list_aircraft(db=db_session, current_user=alpha)] == [ac.id]
    assert fleet_router.list_aircraft(db=db_session, current_user=bravo) == []
    with pytest.raises(HTTPException) as excinfo:
        fleet_router.get_aircraft(ac.id, db=db_session, current_user=bravo)
    assert excinfo.value.status_code == 404


def test_aircraft_owner_must_be_in_shop(db_session):
    alpha = _create_shop_user(db_session, "ALPHA")
    bravo = _create_shop_user(db_session, "BRAVO")
    foreign = customers_router.create_customer(
        customer_schemas.CustomerCreate(name="Elsewhere LLC"), db=db_session, current_user=bravo
    )

    with pytest.raises(HTTPException) as excinfo:
        fleet_router.create_aircraft(
            fleet_schemas.AircraftCreate(registration="N88AL", customer_id=foreign.id),
            db=db_session,
            current_user=alpha,
        )
    assert excinfo.value.detail == "Customer not found"


def test_customer_search_and_deactivation(db_session):
    alpha = _create_shop_user(db_session, "ALPHA")
    club = customers_router.create_customer(
        customer_schemas.CustomerCreate(name="  Blue Sky Flying Club "), db=db_session, current_user=alpha
    )
    customers_router.create_customer(
        customer_schemas.CustomerCreate(name="Prairie Ag Services"), db=db_session, current_user=alpha
    )
    assert club.name == "Blue Sky Flying Club"

    found = customers_router.list_customers(q="sky", db=db_session, current_user=alpha)
    assert [c.id for c in found] == [club.id]

    customers_router.update_customer(
        club.id,
        customer_schemas.CustomerUpdate(is_active=False),
        db=db_session,
        current_user=alpha,
    )
    assert customers_router.list_customers(q="sky", db=db_session, current_user=alpha) == []
    assert [
        c.id
        for c in customers_router.list_customers(
            q="sky", include_inactive=True, db=db_session, current_user=alpha
        )
    ] == [club.id]
