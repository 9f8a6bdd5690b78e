from __future__ import annotations

import create_admin
from auth import verify_password
from models import UserRole, UserStatus, UserUpdate
from storage import MemStorage, SqliteStorage


def test_creates_admin_with_profile():
    storage = MemStorage()
    user = create_admin.ensure_admin(storage, " Root@Example.com ", "s3cret!")

    assert user.email == "root@example.com"
    assert user.role == UserRole.ADMIN
    assert verify_password("s3cret!", user.password_hash)
    assert storage.get_profile(user.id).display_name == "Admin User"


def test_promotes_existing_user():
    storage = MemStorage()
    first = create_admin.ensure_admin(storage, "root@example.com", "s3cret!")
    storage.update_user(first.id, UserUpdate(role=UserRole.USER, status=UserStatus.BANNED))

    again = create_admin.ensure_admin(storage, "root@example.com", "ignored")
    assert again.id == first.id
    assert again.role == UserRole.ADMIN
    assert again.status == UserStatus.ACTIVE
    assert len(storage.get_users()) == 1


def test_main_writes_sqlite_database(tmp_path):
    db_path = str(tmp_path / "admin.sqlite3")
    assert create_admin.main(["--email", "ops@example.com", "--password", "letmein", "--db-path", db_path]) == 0

    user = SqliteStorage(db_path).get_user_by_email("ops@example.com")
    assert user.role == UserRole.ADMIN
