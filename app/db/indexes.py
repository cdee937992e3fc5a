"""
app/db/indexes.py

Purpose: Database index management

- Range index on verification expiry for the sweeper
- Unique phone number index on users (one identity per phone)
"""

from pymongo import ASCENDING

from app.db.mongo import (
    get_verification_codes_collection,
    get_users_collection,
)
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        codes = get_verification_codes_collection()
        users = get_users_collection()

        logger.info("Creating database indexes...")

        # ==============================================
        # VERIFICATION CODES COLLECTION INDEXES
        # ==============================================

        # Sweeper queries expires_at <= now ordered by expiry
        await codes.create_index([("expires_at", ASCENDING)], name="expires_at_idx")
        logger.debug("Created index on verification_codes.expires_at")

        # ==============================================
        # USERS COLLECTION INDEXES
        # ==============================================

        await users.create_index(
            [("phone_number", ASCENDING)],
            unique=True,
            name="phone_number_unique"
        )
        logger.debug("Created unique index on users.phone_number")

        await users.create_index([("created_at", ASCENDING)], name="created_at_idx")
        logger.debug("Created index on users.created_at")

        code_indexes = await codes.index_information()
        user_indexes = await users.index_information()

        logger.info(
            f"Index summary: VerificationCodes={len(code_indexes)}, Users={len(user_indexes)}"
        )

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise
