"""Bootstrap an ADMIN account, or promote an existing user to ADMIN.

    python create_admin.py --email admin@example.com --password s3cret
"""

import argparse
import logging
import sys
from typing import Optional

import config
from auth import hash_password
from logging_config import setup_logging
from models import InsertProfile, InsertUser, User, UserRole, UserStatus, UserUpdate
from storage import IStorage, create_storage

logger = logging.getLogger("create_admin")


def ensure_admin(storage: IStorage, email: str, password: str, display_name: str = "Admin User") -> User:
    """Create the admin if missing; an existing account is promoted and reactivated."""
    email = email.strip().lower()
    existing = storage.get_user_by_email(email)
    if existing:
        if existing.role == UserRole.ADMIN and existing.status == UserStatus.ACTIVE:
            logger.info("Admin user already exists: %s (%s)", existing.email, existing.id)
            return existing
        logger.info("Promoting %s to ADMIN", existing.email)
        return storage.update_user(existing.id, UserUpdate(role=UserRole.ADMIN, status=UserStatus.ACTIVE))

    user = storage.create_user(InsertUser(
        email=email,
        password_hash=hash_password(password),
        role=UserRole.ADMIN,
        status=UserStatus.ACTIVE,
    ))
    storage.create_profile(InsertProfile(user_id=user.id, display_name=display_name, bio="Platform administrator"))
    logger.info("Admin user created: %s (%s)", user.email, user.id)
    return user


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Create or promote an EVConnect admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--display-name", default="Admin User")
    parser.add_argument("--db-path", default=config.DB_PATH, help="SQLite database to write to")
    args = parser.parse_args(argv)

    if len(args.password) < 6:
        parser.error("password must be at least 6 characters long")

    setup_logging(config.LOG_LEVEL)
    # An in-memory admin would vanish with this process
    storage = create_storage("sqlite", args.db_path)
    ensure_admin(storage, args.email, args.password, args.display_name)
    return 0


if __name__ == "__main__":
    sys.exit(main())
