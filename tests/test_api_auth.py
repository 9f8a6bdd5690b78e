from __future__ import annotations

import logging

from auth import create_access_token, verify_token
from models import UserStatus, UserUpdate


def test_health(client):
    assert client.get("/api/health").json()["status"] == "ok"


def test_register_then_me(client, register):
    user = register("Nina", email="Nina@Example.com")

    response = client.get("/api/auth/me", headers=user["headers"])
    assert response.status_code == 200
    body = response.json()
    assert body["user"]["email"] == "nina@example.com"
    assert body["user"]["role"] == "USER"
    assert body["profile"]["display_name"] == "Nina"


def test_register_duplicate_email(client, register):
    register(email="dup@example.com")
    response = client.post("/api/auth/register", json={
        "email": "dup@example.com", "password": "password123", "display_name": "Again",
    })
    assert response.status_code == 400


def test_register_validates_input(client):
    response = client.post("/api/auth/register", json={
        "email": "not-an-email", "password": "123", "display_name": "x",
    })
    assert response.status_code == 422


def test_login(client, register):
    register(email="volt@example.com", password="chargeup")

    ok = client.post("/api/auth/login", json={"email": "volt@example.com", "password": "chargeup"})
    assert ok.status_code == 200
    assert ok.json()["token_type"] == "bearer"

    bad = client.post("/api/auth/login", json={"email": "volt@example.com", "password": "wrong-one"})
    assert bad.status_code == 401


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_suspended_user_is_locked_out(client, register, storage):
    user = register(email="gone@example.com")
    storage.update_user(user["id"], UserUpdate(status=UserStatus.SUSPENDED))

    assert client.get("/api/auth/me", headers=user["headers"]).status_code == 403
    login = client.post("/api/auth/login", json={"email": "gone@example.com", "password": "password123"})
    assert login.status_code == 403


def test_bad_token_is_logged_and_rejected(caplog):
    caplog.set_level(logging.DEBUG, logger="auth")

    assert verify_token("not.a.jwt") is None
    assert any(r.name == "auth" and r.levelno == logging.DEBUG for r in caplog.records)
    assert verify_token(create_access_token("user-1")) == "user-1"
