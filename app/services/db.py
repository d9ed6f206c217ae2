# app/services/db.py
# Owns the single MongoDB client used by Beanie for the lifetime of the app.
import logging
from typing import Optional

from beanie import init_beanie
from pymongo import AsyncMongoClient

from app.configs import get_setting
from app.models.unit import Unit, UnitHistory

logger = logging.getLogger(__name__)

db_client: Optional[AsyncMongoClient] = None


def get_database_client() -> AsyncMongoClient:
    """Returns the MongoDB async client, creating it on first use."""
    global db_client
    if db_client is None:
        db_client = AsyncMongoClient(
            get_setting("MONGO_URI", "database", "uri", "mongodb://localhost:27017")
        )
    return db_client


async def init_database() -> None:
    """Connects to MongoDB and registers the document models with Beanie."""
    client = get_database_client()
    database_name = get_setting("MONGO_DB", "database", "name", "addresskit")
    await init_beanie(
        database=client[database_name], document_models=[Unit, UnitHistory]
    )
    logger.info(f"Beanie initialised on database '{database_name}'.")


async def close_database() -> None:
    global db_client
    if db_client is not None:
        await db_client.close()
        db_client = None
        logger.info("MongoDB connection closed.")
