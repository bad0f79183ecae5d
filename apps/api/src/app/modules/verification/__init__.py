"""
Verification module - Email OTP issuance, confirmation and consumption.
"""

from app.modules.verification.errors import (
    CodeExpiredError,
    CodeMismatchError,
    CodeNotFoundError,
    CodeRateLimitedError,
    VerificationError,
)
from app.modules.verification.router import router
from app.modules.verification.store import InMemoryVerificationStore, VerificationStore

__all__ = [
    "router",
    "VerificationStore",
    "InMemoryVerificationStore",
    "VerificationError",
    "CodeRateLimitedError",
    "CodeNotFoundError",
    "CodeExpiredError",
    "CodeMismatchError",
]
