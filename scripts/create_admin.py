"""
Create the bootstrap admin user.

Usage: python -m scripts.create_admin

Runs against the local database when APP_ENV=development or
DB_EMULATOR_ENABLED=true. Re-running reuses the user that already owns the
admin email and overwrites its profile.
"""
import asyncio
import logging
import os
import sys
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from pymongo.errors import DuplicateKeyError

from labor_app.core.config import settings
from labor_app.core.database import get_client, get_database
from labor_app.core.security import get_password_hash
from labor_app.core.timezone_utils import utc_now

logger = logging.getLogger("create-admin")

USERS_COLLECTION = "users"

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "Admin123!")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@labor-system.local")
ADMIN_EMPLOYEE_ID = "EMP001"
ADMIN_NAME = "Admin User"
ADMIN_ROLE_ID = "AM"
ADMIN_DEPARTMENT = "PD01"


def build_admin_document(password_hash: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or utc_now()
    return {
        "employee_id": ADMIN_EMPLOYEE_ID,
        "username": ADMIN_USERNAME,
        "email": ADMIN_EMAIL.lower(),
        "password_hash": password_hash,
        "name": ADMIN_NAME,
        "role_id": ADMIN_ROLE_ID,
        "department": ADMIN_DEPARTMENT,
        "start_date": now,
        "project_location_ids": [],
        "is_active": True,
        "created_at": now,
        "updated_at": now,
        "created_by": "system",
        "updated_by": "system",
    }


async def ensure_indexes(users) -> None:
    await users.create_index("username", unique=True)
    await users.create_index("email", unique=True, sparse=True)


async def upsert_admin_user(users, document: Dict[str, Any]) -> Tuple[Any, bool]:
    """Insert the admin user; on a duplicate email reuse the existing user.

    Returns (user id, created).
    """
    try:
        result = await users.insert_one(dict(document))
        logger.info("User created: %s", result.inserted_id)
        return result.inserted_id, True
    except DuplicateKeyError:
        existing = await users.find_one({"email": document["email"]})
        if existing is None:
            # duplicate on something other than the email, e.g. the username
            raise
        logger.warning("User already exists: %s", existing["_id"])
        await users.replace_one({"_id": existing["_id"]}, dict(document))
        return existing["_id"], False


async def create_admin_user(db) -> Tuple[Any, bool]:
    users = db[USERS_COLLECTION]
    await ensure_indexes(users)
    document = build_admin_document(get_password_hash(ADMIN_PASSWORD))
    logger.info("Password hashed")
    user_id, created = await upsert_admin_user(users, document)
    logger.info("User document %s", "created" if created else "updated")
    return user_id, created


def print_credentials() -> None:
    line = "=" * 50
    print(f"\n{line}")
    print("Admin user created successfully!")
    print(line)
    print("\nLogin Credentials:")
    print("  Username: ", ADMIN_USERNAME)
    print("  Password: ", ADMIN_PASSWORD)
    print("  Email:    ", ADMIN_EMAIL)
    print("  Role:     ", f"Admin ({ADMIN_ROLE_ID})")
    print(f"\n{line}\n")


async def run() -> None:
    use_emulator = settings.is_development or settings.DB_EMULATOR_ENABLED
    client = get_client(use_emulator)
    logger.info("Connected to %s database", "local" if use_emulator else "production")
    try:
        await create_admin_user(get_database(client))
    finally:
        client.close()
    print_credentials()


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="[create-admin] %(message)s")
    try:
        asyncio.run(run())
    except Exception:
        logger.exception("Error creating admin user")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
