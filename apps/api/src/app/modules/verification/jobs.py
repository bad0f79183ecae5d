"""
Verification Background Jobs

Periodic sweep reclaiming verification records whose code or verified
window has lapsed. Expiry itself is checked on every access; the sweep
only bounds memory for addresses that are never touched again.
"""

import logging
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings
from app.core.scheduler import register_job
from app.modules.verification.service import get_verification_store

logger = logging.getLogger(__name__)

JOB_ID_PURGE_EXPIRED = "verification_purge_expired"


async def purge_expired_verifications() -> dict[str, Any]:
    """Run one sweep over the verification store."""
    store = get_verification_store()
    removed = await store.purge_expired()
    logger.info(f"Verification sweep complete: {removed} records removed")
    return {"removed": removed}


def register_verification_jobs() -> None:
    """Register verification jobs with the scheduler."""
    register_job(
        JOB_ID_PURGE_EXPIRED,
        purge_expired_verifications,
        IntervalTrigger(minutes=settings.verification_sweep_minutes),
    )
    logger.info("Registered verification background jobs")
