"""
Database initialization script

Run once to create collections and indexes:
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

from app.core.logging import setup_logging, get_logger
from app.db.mongo import connect_to_mongo, close_mongo_connection, get_database
from app.db.indexes import create_indexes

setup_logging()
logger = get_logger("scripts.init_db")


async def main():
    """Main initialization"""
    logger.info("Phone auth database setup")

    await connect_to_mongo()
    try:
        await create_indexes()

        db = get_database()
        for collection_name in ["verification_codes", "users"]:
            indexes = await db[collection_name].index_information()
            names = [name for name in indexes if name != "_id_"]
            count = await db[collection_name].count_documents({})
            logger.info(f"{collection_name}: {count} documents, indexes {names}")

        logger.info("Database initialization complete")
    finally:
        await close_mongo_connection()


if __name__ == "__main__":
    asyncio.run(main())
