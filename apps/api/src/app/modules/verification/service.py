"""
Verification Service

Email OTP flow used by the public application form:

1. request_code: issue a code and email it to the applicant
2. confirm_code: promote the address to Verified for a limited window
3. check_verified: status polling for the form UI
4. consume_verification: single-use check-and-clear before a submission

Email delivery is a side effect of issuance, not part of it: a failed send
is logged and the code stays valid.
"""

import logging

from redis.asyncio import Redis

from app.core.config import settings
from app.core.email import send_verification_code
from app.modules.verification.models import IssuedCode, VerifiedAddress
from app.modules.verification.redis_store import RedisVerificationStore
from app.modules.verification.store import InMemoryVerificationStore, VerificationStore

logger = logging.getLogger(__name__)

_store: VerificationStore | None = None


def build_store(redis_client: Redis | None = None) -> VerificationStore:
    """
    Create the configured verification store.

    Falls back to the in-memory store when VERIFICATION_BACKEND=redis but no
    Redis client is available.
    """
    options = {
        "code_ttl_seconds": settings.otp_code_ttl_seconds,
        "cooldown_seconds": settings.otp_cooldown_seconds,
        "verified_ttl_seconds": settings.verified_ttl_seconds,
    }
    if settings.verification_backend == "redis":
        if redis_client is not None:
            return RedisVerificationStore(redis_client, **options)
        logger.warning("VERIFICATION_BACKEND=redis but Redis is unavailable, using memory store")
    return InMemoryVerificationStore(**options)


def init_verification_store(redis_client: Redis | None = None) -> VerificationStore:
    """Create the process-wide store. Call on application startup."""
    global _store
    _store = build_store(redis_client)
    logger.info(f"Verification store initialized: {type(_store).__name__}")
    return _store


def set_verification_store(store: VerificationStore | None) -> None:
    """Replace the process-wide store."""
    global _store
    _store = store


def get_verification_store() -> VerificationStore:
    """
    FastAPI dependency returning the process-wide store.

    Lazily creates an in-memory store if startup did not run.
    """
    global _store
    if _store is None:
        _store = build_store()
    return _store


async def request_code(store: VerificationStore, email: str) -> IssuedCode:
    """
    Issue a verification code and email it.

    Raises:
        CodeRateLimitedError: If a code was issued within the cooldown
    """
    issued = await store.request_code(email)

    try:
        sent = await send_verification_code(
            to_email=issued.address,
            code=issued.code,
            expires_minutes=max(1, settings.otp_code_ttl_seconds // 60),
        )
        if not sent:
            logger.error(f"Failed to send verification code to {issued.address}")
    except Exception as e:
        logger.error(f"Exception sending verification code to {issued.address}: {e}")

    return issued


async def confirm_code(store: VerificationStore, email: str, code: str) -> VerifiedAddress:
    """
    Confirm a verification code.

    Raises:
        CodeNotFoundError, CodeExpiredError, CodeMismatchError
    """
    return await store.confirm_code(email, code)


async def check_verified(store: VerificationStore, email: str) -> bool:
    return await store.check_verified(email)


async def consume_verification(store: VerificationStore, email: str) -> bool:
    return await store.consume_verification(email)
