from __future__ import annotations

from typing import Callable, Dict, Generator

import pytest
from fastapi.testclient import TestClient

from create_admin import ensure_admin
from main import create_app
from models import InsertCommunity, InsertProfile, InsertUser, User
from storage import IStorage, MemStorage, SqliteStorage


@pytest.fixture(params=["memory", "sqlite"])
def storage(request, tmp_path) -> IStorage:
    """Every storage-level test runs once per backend."""
    if request.param == "memory":
        return MemStorage()
    return SqliteStorage(str(tmp_path / "evconnect-test.sqlite3"))


@pytest.fixture()
def make_user(storage: IStorage) -> Callable[..., User]:
    """Create a user with a profile directly in storage."""
    counter = {"n": 0}

    def _make(display_name: str = None, **fields) -> User:
        counter["n"] += 1
        name = display_name or f"User {counter['n']}"
        user = storage.create_user(InsertUser(
            email=fields.pop("email", f"user{counter['n']}@example.com"),
            password_hash="not-a-real-hash",
            **fields,
        ))
        storage.create_profile(InsertProfile(user_id=user.id, display_name=name))
        return user

    return _make


@pytest.fixture()
def community(storage: IStorage):
    return storage.create_community(InsertCommunity(name="Tesla Owners", slug="tesla-owners", type="BRAND"))


@pytest.fixture()
def client(storage: IStorage) -> Generator[TestClient, None, None]:
    with TestClient(create_app(storage)) as test_client:
        yield test_client


@pytest.fixture()
def register(client: TestClient) -> Callable[..., Dict]:
    """Register through the API; returns the new user's id and auth headers."""
    counter = {"n": 0}

    def _register(display_name: str = None, email: str = None, password: str = "password123") -> Dict:
        counter["n"] += 1
        response = client.post("/api/auth/register", json={
            "email": email or f"driver{counter['n']}@example.com",
            "password": password,
            "display_name": display_name or f"Driver {counter['n']}",
        })
        assert response.status_code == 201, response.text
        body = response.json()
        return {
            "id": body["user"]["id"],
            "headers": {"Authorization": f"Bearer {body['access_token']}"},
        }

    return _register


@pytest.fixture()
def admin(client: TestClient, storage: IStorage) -> Dict:
    user = ensure_admin(storage, "admin@example.com", "adminpass")
    response = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "adminpass"})
    assert response.status_code == 200, response.text
    return {"id": user.id, "headers": {"Authorization": f"Bearer {response.json()['access_token']}"}}
