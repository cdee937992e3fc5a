"""
app/db/mongo.py

Purpose: MongoDB connection setup

- Motor client sized and retried from Settings
- Collections: verification_codes, users
- Health checks and retry logic
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError
from typing import Optional
import asyncio
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

VERIFICATION_CODES_COLLECTION = "verification_codes"
USERS_COLLECTION = "users"

# Global MongoDB client
_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None


def _new_client() -> AsyncIOMotorClient:
    return AsyncIOMotorClient(
        settings.MONGODB_URL,
        maxPoolSize=settings.MONGODB_MAX_POOL_SIZE,
        serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
        retryWrites=True,
    )


async def connect_to_mongo():
    """
    Opens the client and pings it, retrying with doubling delays.
    Called during application startup and by the scripts.

    Raises:
        ConnectionError: If every attempt fails
    """
    global _client, _database

    if _client is not None:
        logger.warning("MongoDB client already initialized")
        return

    attempts = settings.MONGODB_CONNECT_RETRIES
    delay = settings.MONGODB_RETRY_DELAY_SECONDS

    for attempt in range(1, attempts + 1):
        client = _new_client()
        try:
            await client.admin.command("ping")
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            client.close()
            logger.error(f"MongoDB ping failed (attempt {attempt}/{attempts}): {e}")
            if attempt == attempts:
                raise ConnectionError("Could not establish MongoDB connection") from e
            await asyncio.sleep(delay)
            delay *= 2
            continue

        _client = client
        _database = client[settings.MONGODB_DB_NAME]
        logger.info(f"Connected to MongoDB database {settings.MONGODB_DB_NAME}")
        return


async def close_mongo_connection():
    global _client, _database

    if _client is not None:
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


async def check_database_health() -> bool:
    """True if the client is open and answers a ping."""
    if _client is None:
        return False
    try:
        await _client.admin.command("ping")
    except PyMongoError as e:
        logger.error(f"Database health check failed: {e}")
        return False
    return True


def get_database() -> AsyncIOMotorDatabase:
    """
    Returns the MongoDB database instance.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _database is None:
        raise RuntimeError(
            "Database not initialized. Call connect_to_mongo() during startup."
        )
    return _database


def get_verification_codes_collection() -> AsyncIOMotorCollection:
    """
    Returns the verification_codes collection.

    Fields:
    - _id: str (opaque code id)
    - phone_number: str
    - code: str (6 digits)
    - created_at: int (ms)
    - expires_at: int (ms, indexed for sweeping)
    """
    return get_database()[VERIFICATION_CODES_COLLECTION]


def get_users_collection() -> AsyncIOMotorCollection:
    """
    Returns the users collection.

    Fields:
    - _id / uid: str
    - phone_number: str (unique)
    - first_name, last_name, display_name: str
    - role: str
    - created_at, updated_at: int (ms)
    """
    return get_database()[USERS_COLLECTION]
