"""
Rename the `Project` document for a project code so that its `_id` matches
the `code` field.

Usage: python -m scripts.fix_project_doc [CODE]   (default P001)

Always runs against the production database (MONGODB_URL).
"""
import asyncio
import logging
import sys
from typing import Optional

from labor_app.core.database import get_client, get_database
from labor_app.models.projects import Project

logger = logging.getLogger("fix-project-doc")

TARGET_CODE = "P001"
PROJECT_COLLECTION = Project.Settings.name


async def fix_project_document(collection, code: str) -> bool:
    """Move the project with `code` to `_id == code`.

    Returns True when the document was moved, False when it already matched.
    """
    docs = await collection.find({"code": code}).to_list(length=None)
    if not docs:
        raise RuntimeError(f"No document found in {PROJECT_COLLECTION} collection with code {code}")

    source = docs[0]
    source_id = source["_id"]
    if source_id == code:
        logger.info("Document for %s already matches the code. No changes made.", code)
        return False

    if await collection.find_one({"_id": code}) is not None:
        raise RuntimeError(f"A {PROJECT_COLLECTION} document with ID {code} already exists. Aborting.")

    data = {k: v for k, v in source.items() if k != "_id"}

    logger.info("Creating new document %s and copying data from %s ...", code, source_id)
    await collection.insert_one({"_id": code, **data})

    logger.info("Deleting old document %s ...", source_id)
    await collection.delete_one({"_id": source_id})

    logger.info("Project document updated successfully. %s -> %s", source_id, code)
    return True


async def run(code: str) -> bool:
    # never the local emulator for this fix
    client = get_client(use_emulator=False)
    try:
        return await fix_project_document(get_database(client)[PROJECT_COLLECTION], code)
    finally:
        client.close()


def main(argv: Optional[list] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="[fix-project-doc] %(message)s")
    argv = sys.argv[1:] if argv is None else argv
    code = (argv[0] if argv else TARGET_CODE).strip().upper()
    try:
        asyncio.run(run(code))
    except Exception:
        logger.exception("Failed to fix project document")
        return 1
    logger.info("Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
