"""
One-shot expired verification code cleanup

For deployments that run the sweep from cron instead of inside the API
process (SWEEPER_ENABLED=false):
    python scripts/sweep_expired_codes.py
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
from app.db.mongo import connect_to_mongo, close_mongo_connection
from app.db.verification_store import MongoVerificationStore
from app.services.sweeper_service import sweep_expired_codes

setup_logging()
logger = get_logger("scripts.sweep_expired_codes")


async def main():
    await connect_to_mongo()
    try:
        deleted = await sweep_expired_codes(MongoVerificationStore())
        logger.info(f"Sweep finished, {deleted} records deleted")
    finally:
        await close_mongo_connection()


if __name__ == "__main__":
    asyncio.run(main())
