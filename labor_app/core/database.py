import logging
from typing import Optional

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from labor_app.core.config import settings
from labor_app.models.users import User
from labor_app.models.projects import Project
from labor_app.models.daily_reports import DailyReport, EditHistory
from labor_app.models.daily_contractors import DailyContractor

logger = logging.getLogger(__name__)

# legacy portal collection, only touched by scripts/delete_legacy_user_collection.py
LEGACY_USER_COLLECTION = "User"

DOCUMENT_MODELS = [
    User,
    Project,
    DailyReport,
    EditHistory,
    DailyContractor,
]


def get_client(use_emulator: Optional[bool] = None) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(settings.database_url(use_emulator))


def get_database(client: AsyncIOMotorClient):
    return client[settings.MONGODB_DB_NAME]


async def init_db(client: Optional[AsyncIOMotorClient] = None) -> AsyncIOMotorClient:
    client = client or get_client()
    db = get_database(client)
    await init_beanie(database=db, document_models=DOCUMENT_MODELS)
    logger.info(
        "Database initialized (%s, emulator=%s)",
        settings.MONGODB_DB_NAME,
        settings.DB_EMULATOR_ENABLED,
    )
    return client
