"""
Delete all documents in the legacy `User` collection.

Usage:
    local:      DB_EMULATOR_ENABLED=true python -m scripts.delete_legacy_user_collection
    production: DB_EMULATOR_ENABLED=false MONGODB_URL=... python -m scripts.delete_legacy_user_collection

This script ONLY targets the collection named `User` (capital U).
"""
import asyncio
import logging
import sys

from labor_app.core.config import settings
from labor_app.core.database import LEGACY_USER_COLLECTION, get_client, get_database

logger = logging.getLogger("delete-legacy-user")

TARGET_COLLECTION = LEGACY_USER_COLLECTION
BATCH_SIZE = 200
BATCH_DELAY_SECONDS = 0.2


async def delete_batch(collection, batch_size: int = BATCH_SIZE) -> int:
    docs = await collection.find({}, {"_id": 1}).limit(batch_size).to_list(length=batch_size)
    if not docs:
        return 0
    result = await collection.delete_many({"_id": {"$in": [d["_id"] for d in docs]}})
    return result.deleted_count


async def delete_all(collection, batch_size: int = BATCH_SIZE, delay: float = BATCH_DELAY_SECONDS) -> int:
    logger.info('Starting cleanup for collection "%s"', TARGET_COLLECTION)
    total_deleted = 0

    while True:
        deleted = await delete_batch(collection, batch_size)
        if deleted == 0:
            break
        total_deleted += deleted
        logger.info("Deleted %d documents (total %d)", deleted, total_deleted)
        # Avoid overloading the database in production
        await asyncio.sleep(delay)

    logger.info("Completed. Total deleted: %d", total_deleted)
    return total_deleted


async def run() -> int:
    client = get_client(settings.DB_EMULATOR_ENABLED)
    logger.info("Connected to %s database",
                "local" if settings.DB_EMULATOR_ENABLED else "production")
    try:
        return await delete_all(get_database(client)[TARGET_COLLECTION])
    finally:
        client.close()


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="[delete-legacy-user] %(message)s")
    try:
        asyncio.run(run())
    except Exception:
        logger.exception("Failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
