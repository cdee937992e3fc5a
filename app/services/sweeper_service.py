"""
app/services/sweeper_service.py

Purpose: Expired verification record cleanup

- Deletes every record whose expiry has passed, in one bulk operation
- Backstop for abandoned codes; the verifier already deletes expired
  records it sees
- Runs as a background task on a fixed interval
"""

import asyncio
from typing import Optional

from app.core.logging import get_logger
from app.db.verification_store import VerificationStore
from utils.time_utils import format_timestamp_ms, now_ms

logger = get_logger(__name__)


async def sweep_expired_codes(store: VerificationStore, now: Optional[int] = None) -> int:
    """
    Deletes all records with expires_at <= now.

    Args:
        store: Verification record store
        now: Cutoff in ms, defaults to the current time

    Returns:
        Number of records deleted
    """
    cutoff = now_ms() if now is None else now

    expired_ids = await store.find_expired_ids(cutoff)
    if not expired_ids:
        logger.debug("No expired verification codes to delete")
        return 0

    # Records the verifier deleted in the meantime are simply not counted
    deleted = await store.delete_many(expired_ids)
    logger.info(
        f"Deleted {deleted} expired verification codes "
        f"(matched {len(expired_ids)}, cutoff {format_timestamp_ms(cutoff)})"
    )
    return deleted


async def run_sweeper(store: VerificationStore, interval_seconds: float):
    """
    Sweeps forever, sleeping interval_seconds between runs.
    Stops when the task is cancelled.
    """
    logger.info(f"Expired-code sweeper started (every {interval_seconds:.0f}s)")
    while True:
        try:
            await sweep_expired_codes(store)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Expired-code sweep failed: {e}", exc_info=True)

        await asyncio.sleep(interval_seconds)
