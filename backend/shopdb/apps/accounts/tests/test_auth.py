from __future__ import annotations

import bcrypt
import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from jose import jwt

from shopdb import security
from shopdb.database import get_db, get_read_db
from shopdb.main import app
from shopdb.apps.accounts import models as account_models
from shopdb.apps.accounts import schemas, services


def _shop(db, code="ALPHA"):
    shop = services.create_shop(
        db, schemas.ShopCreate(code=code.lower(), name=f"{code} Aviation", slug=f" {code} ")
    )
    db.commit()
    return shop


def _user(db, shop, email="Dana.Reyes@Example.com", role=account_models.UserRole.MANAGER):
    user = services.create_user(
        db,
        schemas.UserCreate(
            shop_id=shop.id,
            email=email,
            first_name=" Dana ",
            last_name="Reyes",
            role=role,
            password="hangar-door-42",
        ),
    )
    db.commit()
    return user


@pytest.fixture()
def client(db_session):
    def _override():
        yield db_session

    app.dependency_overrides[get_db] = _override
    app.dependency_overrides[get_read_db] = _override
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_create_shop_and_user_normalise_input(db_session):
    shop = _shop(db_session)
    user = _user(db_session, shop)

    assert shop.code == "ALPHA"
    assert shop.slug == "alpha"
    assert shop.labor_rate == account_models.DEFAULT_LABOR_RATE
    assert user.email == "dana.reyes@example.com"
    assert user.full_name == "Dana Reyes"
    assert user.hashed_password.startswith("$argon2")
    assert security.verify_password("hangar-door-42", user.hashed_password)


def test_duplicate_email_in_shop_is_rejected(db_session):
    shop = _shop(db_session)
    _user(db_session, shop)

    with pytest.raises(ValueError):
        _user(db_session, shop, email="dana.reyes@example.com")


def test_legacy_bcrypt_hash_still_verifies():
    hashed = bcrypt.hashpw(b"hangar-door-42", bcrypt.gensalt()).decode()

    assert security.verify_password("hangar-door-42", hashed)
    assert not security.verify_password("wrong-password", hashed)


def test_login_returns_token_for_user(client, db_session):
    shop = _shop(db_session)
    user = _user(db_session, shop)

    resp = client.post(
        "/auth/login",
        json={"email": "dana.reyes@example.com", "password": "hangar-door-42"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["id"] == user.id
    assert body["shop"]["slug"] == "alpha"
    claims = jwt.decode(body["access_token"], security.SECRET_KEY, algorithms=[security.JWT_ALGORITHM])
    assert claims["sub"] == user.id
    assert claims["shop_id"] == shop.id

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.json()["email"] == "dana.reyes@example.com"


def test_login_with_bad_password(client, db_session):
    _user(db_session, _shop(db_session))

    resp = client.post(
        "/auth/login",
        json={"email": "dana.reyes@example.com", "password": "not-the-password"},
    )

    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid email or password"}


def test_login_needs_slug_when_email_is_shared(client, db_session):
    alpha = _shop(db_session)
    bravo = _shop(db_session, code="BRAVO")
    _user(db_session, alpha)
    bravo_user = _user(db_session, bravo)
    creds = {"email": "dana.reyes@example.com", "password": "hangar-door-42"}

    assert client.post("/auth/login", json=creds).status_code == 401

    resp = client.post("/auth/login", json={**creds, "shop_slug": "bravo"})
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == bravo_user.id


def test_inactive_user_is_unauthorized(db_session):
    shop = _shop(db_session)
    user = _user(db_session, shop)
    user.is_active = False
    db_session.commit()

    with pytest.raises(HTTPException) as excinfo:
        security.get_current_active_user(current_user=user)
    assert excinfo.value.status_code == 401


def test_user_without_shop_is_unauthorized(db_session):
    user = account_models.User(
        email="floater@example.com",
        first_name="No",
        last_name="Shop",
        role=account_models.UserRole.MECHANIC,
        hashed_password="test-hash",
        is_active=True,
    )

    with pytest.raises(HTTPException) as excinfo:
        security.get_current_shop_user(current_user=user)
    assert excinfo.value.status_code == 401
    assert excinfo.value.detail == "Unauthorized"


def test_require_roles_lets_admin_through(db_session):
    shop = _shop(db_session)
    mechanic = _user(db_session, shop, role=account_models.UserRole.MECHANIC)
    admin = _user(db_session, shop, email="admin@example.com", role=account_models.UserRole.ADMIN)
    managers_only = security.require_roles(account_models.UserRole.MANAGER)

    assert managers_only(current_user=admin) is admin
    with pytest.raises(HTTPException) as excinfo:
        managers_only(current_user=mechanic)
    assert excinfo.value.status_code == 403

    with pytest.raises(ValueError):
        security.require_roles("pilot")


def test_garbage_token_is_unauthorized(db_session):
    with pytest.raises(HTTPException) as excinfo:
        security.get_current_user(token="not-a-jwt", db=db_session)
    assert excinfo.value.status_code == 401
