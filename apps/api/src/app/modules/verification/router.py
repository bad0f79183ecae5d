"""
Verification Router

Public endpoints for proving control of an email address before submitting
an application.

Endpoints:
- POST /verification/send-code - Email a one-time code
- POST /verification/verify-code - Confirm the code
- POST /verification/check - Whether the address is currently verified
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.modules.verification import service
from app.modules.verification.errors import CodeRateLimitedError, VerificationError
from app.modules.verification.schemas import (
    CheckVerifiedRequest,
    CheckVerifiedResponse,
    SendCodeRequest,
    SendCodeResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from app.modules.verification.service import get_verification_store
from app.modules.verification.store import VerificationStore, normalize_address

logger = logging.getLogger(__name__)

router = APIRouter()

# Per-IP volume cap, separate from the per-address cooldown
SEND_CODE_RATE_LIMIT = 10
SEND_CODE_RATE_WINDOW_SECONDS = 15 * 60


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


@router.post(
    "/send-code",
    response_model=SendCodeResponse,
    summary="Send Verification Code",
    responses={
        429: {
            "description": "A code was requested too recently",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "RATE_LIMITED",
                            "message": "A code was sent recently. Please wait 50 seconds before requesting a new one.",
                            "retry_after_seconds": 50,
                        }
                    }
                }
            },
        },
    },
)
@rate_limit(limit=SEND_CODE_RATE_LIMIT, window_seconds=SEND_CODE_RATE_WINDOW_SECONDS)
async def send_code(
    request: Request,
    data: SendCodeRequest,
    store: VerificationStore = Depends(get_verification_store),
) -> SendCodeResponse:
    """
    Email a 6-digit code to the address.

    Only one code is outstanding per address; requesting a new one
    invalidates the previous code.

    Raises:
        HTTPException 429: Inside the cooldown, with retry_after_seconds
    """
    try:
        issued = await service.request_code(store, data.email)
    except CodeRateLimitedError as e:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": e.error_code,
                "message": e.message,
                "retry_after_seconds": e.retry_after_seconds,
            },
            headers={"Retry-After": str(e.retry_after_seconds)},
        ) from e
    except Exception as e:
        logger.exception(f"Unexpected error sending verification code: {e}")
        raise _internal_error() from e

    return SendCodeResponse(
        email=issued.address,
        expires_at=issued.expires_at,
        expires_in_seconds=settings.otp_code_ttl_seconds,
    )


@router.post(
    "/verify-code",
    response_model=VerifyCodeResponse,
    summary="Verify Code",
    responses={
        400: {
            "description": "Code not found, expired or incorrect",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "CODE_MISMATCH",
                            "reason": "MISMATCH",
                            "message": "Invalid verification code.",
                        }
                    }
                }
            },
        },
    },
)
async def verify_code(
    data: VerifyCodeRequest,
    store: VerificationStore = Depends(get_verification_store),
) -> VerifyCodeResponse:
    """
    Confirm a code. On success the address stays verified for 30 minutes
    or until an application is submitted, whichever comes first.

    Raises:
        HTTPException 400: reason NOT_FOUND, EXPIRED or MISMATCH
    """
    try:
        verified = await service.confirm_code(store, data.email, data.code)
    except VerificationError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": e.error_code, "reason": e.reason, "message": e.message},
        ) from e
    except Exception as e:
        logger.exception(f"Unexpected error verifying code: {e}")
        raise _internal_error() from e

    return VerifyCodeResponse(email=verified.address, verified_until=verified.expires_at)


@router.post("/check", response_model=CheckVerifiedResponse, summary="Check Verification")
async def check_verified(
    data: CheckVerifiedRequest,
    store: VerificationStore = Depends(get_verification_store),
) -> CheckVerifiedResponse:
    """Report whether the address is verified. Does not consume the verification."""
    try:
        verified = await service.check_verified(store, data.email)
    except Exception as e:
        logger.exception(f"Unexpected error checking verification: {e}")
        raise _internal_error() from e

    return CheckVerifiedResponse(email=normalize_address(data.email), verified=verified)
